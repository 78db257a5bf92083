"""
Chat Service - Chat and message operations for the configured session.
Chats are resolved against the session's snapshot; messages are fetched on demand.
"""

import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar

from ..channels.base import Chat, MediaPayload, Message, Participant
from ..channels.invite import build_invite_link, normalize_invite_code
from ..services import media
from .exceptions import BackendOperationFailed, ChatNotFound, GatewayError, MessageNotFound
from .session_registry import Session, SessionRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

MediaLoader = Callable[[str], Awaitable[MediaPayload]]


class ChatService:
    """Query and command façade over one session's chat client."""

    def __init__(
        self,
        registry: SessionRegistry,
        session_name: str,
        media_loader: Optional[MediaLoader] = None,
    ):
        self.registry = registry
        self.session_name = session_name
        self.media_loader = media_loader or media.load_media

    def _resolve(self, chat_id: str) -> Tuple[Session, Chat]:
        session = self.registry.require_ready(self.session_name)
        # Read the snapshot reference once so a concurrent refresh cannot tear this lookup
        snapshot = session.snapshot
        chat = snapshot.find_by_id(chat_id) if snapshot else None
        if chat is None:
            raise ChatNotFound(f"Chat not found: {chat_id}")
        return session, chat

    def _resolve_by_name(self, name: str) -> Tuple[Session, Optional[Chat]]:
        session = self.registry.require_ready(self.session_name)
        snapshot = session.snapshot
        return session, (snapshot.find_by_name(name) if snapshot else None)

    async def _backend(self, operation: str, call: Awaitable[T]) -> T:
        """Await a client call, wrapping anything unexpected as BackendOperationFailed."""
        try:
            return await call
        except GatewayError:
            raise
        except Exception as e:
            logger.exception(f"Backend operation '{operation}' failed (session={self.session_name})")
            raise BackendOperationFailed(f"Error to {operation}: {e}") from e

    # Reads

    def get_all_chats(self) -> Tuple[Chat, ...]:
        session = self.registry.require_ready(self.session_name)
        snapshot = session.snapshot
        return snapshot.chats if snapshot else ()

    async def get_messages(self, chat_id: str, limit: Optional[int] = 1) -> List[Message]:
        """Most recent messages of a chat; a missing or non-positive limit means 1."""
        if limit is None or limit <= 0:
            limit = 1
        session, chat = self._resolve(chat_id)
        return await self._backend("get messages", session.client.fetch_messages(chat.id, limit))

    async def get_last_message(self, chat_id: str) -> Message:
        messages = await self.get_messages(chat_id, 1)
        if not messages:
            raise MessageNotFound(f"Chat {chat_id} has no messages")
        return max(messages, key=lambda m: m.timestamp)

    def get_participants(self, chat_id: str) -> List[Participant]:
        _, chat = self._resolve(chat_id)
        return list(chat.participants)

    def get_admins(self, chat_id: str) -> List[Participant]:
        return [p for p in self.get_participants(chat_id) if p.is_admin]

    # Messages

    async def forward_last_message(self, chat_id: str, destination_chat_id: str) -> bool:
        """Forward the last message of chat_id to destination_chat_id."""
        message = await self.get_last_message(chat_id)
        session, destination = self._resolve(destination_chat_id)
        return await self._backend("forward message", session.client.forward_message(message, destination.id))

    async def send_message_by_name(self, chat_name: str, body: str) -> bool:
        """Send to the first chat with this exact name. False if none matches."""
        session, chat = self._resolve_by_name(chat_name)
        if chat is None:
            logger.info(f"No chat named '{chat_name}'")
            return False
        await self._backend("send message", session.client.send_message(chat.id, body))
        return True

    async def delete_last_message(self, chat_id: str, for_everyone: bool) -> bool:
        """Delete the most recent message. False if the chat has no messages."""
        try:
            message = await self.get_last_message(chat_id)
        except MessageNotFound:
            return False
        session, _ = self._resolve(chat_id)
        await self._backend("delete message", session.client.delete_message(message, for_everyone))
        return True

    # Participants

    async def add_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        session, chat = self._resolve(chat_id)
        await self._backend("add participants", session.client.add_participants(chat.id, participant_ids))

    async def remove_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        session, chat = self._resolve(chat_id)
        await self._backend("remove participants", session.client.remove_participants(chat.id, participant_ids))

    async def promote_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        session, chat = self._resolve(chat_id)
        await self._backend("promote participants", session.client.promote_participants(chat.id, participant_ids))

    async def demote_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        session, chat = self._resolve(chat_id)
        await self._backend("demote participants", session.client.demote_participants(chat.id, participant_ids))

    # Chat state

    async def update_picture(self, chat_id: str, path_media: str) -> bool:
        session, chat = self._resolve(chat_id)
        payload = await self.media_loader(path_media)
        return await self._backend("update picture", session.client.set_picture(chat.id, payload))

    async def _chat_action(self, operation: str, chat_id: str, action: Callable[[Any, str], Awaitable[Any]]) -> None:
        session, chat = self._resolve(chat_id)
        await self._backend(operation, action(session.client, chat.id))

    async def archive_chat(self, chat_id: str) -> None:
        await self._chat_action("archive chat", chat_id, lambda c, cid: c.archive(cid))

    async def unarchive_chat(self, chat_id: str) -> None:
        await self._chat_action("unarchive chat", chat_id, lambda c, cid: c.unarchive(cid))

    async def pin_chat(self, chat_id: str) -> None:
        await self._chat_action("pin chat", chat_id, lambda c, cid: c.pin(cid))

    async def unpin_chat(self, chat_id: str) -> None:
        await self._chat_action("unpin chat", chat_id, lambda c, cid: c.unpin(cid))

    async def mute_chat(self, chat_id: str) -> None:
        await self._chat_action("mute chat", chat_id, lambda c, cid: c.mute(cid))

    async def unmute_chat(self, chat_id: str) -> None:
        await self._chat_action("unmute chat", chat_id, lambda c, cid: c.unmute(cid))

    async def clear_messages(self, chat_id: str) -> None:
        await self._chat_action("clear messages", chat_id, lambda c, cid: c.clear_messages(cid))

    async def delete_chat(self, chat_id: str) -> None:
        await self._chat_action("delete chat", chat_id, lambda c, cid: c.delete_chat(cid))

    # Invites

    async def get_invite_link(self, chat_id: str) -> str:
        session, chat = self._resolve(chat_id)
        code = await self._backend("get invite code", session.client.get_invite_code(chat.id))
        return build_invite_link(code)

    async def revoke_invite(self, chat_id: str) -> str:
        """Revoke the current invite and return the new link."""
        session, chat = self._resolve(chat_id)
        code = await self._backend("revoke invite", session.client.revoke_invite(chat.id))
        return build_invite_link(code)

    async def accept_invite(self, code_or_link: str) -> str:
        """Join a group from a bare code or a full invite link. Returns the chat id."""
        session = self.registry.require_ready(self.session_name)
        code = normalize_invite_code(code_or_link)
        return await self._backend("accept invite", session.client.accept_invite(code))
