"""
Chat Client Base - Abstract capability interface over a chat-automation backend.
Concrete backends (WhatsApp Web via Playwright, test fakes) implement ChatClient.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

EventCallback = Callable[..., Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class Participant:
    """A member of a group chat."""
    id: str
    is_admin: bool = False
    is_super_admin: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "isAdmin": self.is_admin,
            "isSuperAdmin": self.is_super_admin,
        }


@dataclass(frozen=True)
class Chat:
    """
    A conversation thread as seen in a snapshot.
    Participants are empty for individual chats.
    """
    id: str
    name: str
    is_group: bool = False
    participants: Tuple[Participant, ...] = ()
    archived: bool = False
    pinned: bool = False
    muted: bool = False
    unread_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "isGroup": self.is_group,
            "archived": self.archived,
            "pinned": self.pinned,
            "isMuted": self.muted,
            "unreadCount": self.unread_count,
            "participants": [p.to_dict() for p in self.participants],
        }


@dataclass(frozen=True)
class Message:
    """A single message fetched on demand from the backend."""
    id: str
    chat_id: str
    timestamp: int  # epoch seconds
    body: str = ""
    is_deletable_for_everyone: bool = False
    from_me: bool = False
    author: Optional[str] = None
    has_media: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chatId": self.chat_id,
            "timestamp": self.timestamp,
            "body": self.body,
            "fromMe": self.from_me,
            "author": self.author,
            "hasMedia": self.has_media,
            "isDeletableForEveryone": self.is_deletable_for_everyone,
        }


@dataclass(frozen=True)
class MediaPayload:
    """Base64-encoded media ready to hand to a backend."""
    mimetype: str
    data: str
    filename: Optional[str] = None


class ChatClient(ABC):
    """
    Abstract base class for chat-automation backends.

    A client emits three events:
        "qr":           a credential challenge was produced (payload: str)
        "ready":        the backend is authenticated and usable
        "disconnected": the backend handle is gone
    Listeners are registered with on_qr / on_ready / on_disconnected before initialize().
    """

    def __init__(self, session_name: str):
        self.session_name = session_name
        self._listeners: Dict[str, List[EventCallback]] = {"qr": [], "ready": [], "disconnected": []}

    def on_qr(self, callback: EventCallback) -> None:
        self._listeners["qr"].append(callback)

    def on_ready(self, callback: EventCallback) -> None:
        self._listeners["ready"].append(callback)

    def on_disconnected(self, callback: EventCallback) -> None:
        self._listeners["disconnected"].append(callback)

    async def _emit(self, event: str, *args: Any) -> None:
        """Call every listener registered for an event, awaiting coroutine listeners."""
        for callback in list(self._listeners.get(event, [])):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Listener for '{event}' failed (session={self.session_name})")

    # Lifecycle

    @abstractmethod
    async def initialize(self) -> None:
        """Start the backend handle. Raises on failure."""
        pass

    @abstractmethod
    async def destroy(self) -> None:
        """Release all backend resources without invalidating credentials."""
        pass

    @abstractmethod
    async def logout(self) -> None:
        """Invalidate the credential on the backend side, then release resources."""
        pass

    # Chats

    @abstractmethod
    async def get_chats(self) -> List[Chat]:
        """Return every chat known to the backend."""
        pass

    @abstractmethod
    async def fetch_messages(self, chat_id: str, limit: int) -> List[Message]:
        """
        Fetch the most recent messages of a chat.

        Args:
            chat_id: Chat to read
            limit: Maximum number of messages

        Returns:
            Messages ordered oldest to newest
        """
        pass

    @abstractmethod
    async def send_message(self, chat_id: str, body: str) -> Message:
        pass

    @abstractmethod
    async def forward_message(self, message: Message, chat_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_message(self, message: Message, everyone: bool) -> None:
        pass

    # Participants

    @abstractmethod
    async def add_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        pass

    @abstractmethod
    async def remove_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        pass

    @abstractmethod
    async def promote_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        pass

    @abstractmethod
    async def demote_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        pass

    # Chat state

    @abstractmethod
    async def set_picture(self, chat_id: str, media: MediaPayload) -> bool:
        pass

    @abstractmethod
    async def archive(self, chat_id: str) -> None:
        pass

    @abstractmethod
    async def unarchive(self, chat_id: str) -> None:
        pass

    @abstractmethod
    async def pin(self, chat_id: str) -> None:
        pass

    @abstractmethod
    async def unpin(self, chat_id: str) -> None:
        pass

    @abstractmethod
    async def mute(self, chat_id: str) -> None:
        pass

    @abstractmethod
    async def unmute(self, chat_id: str) -> None:
        pass

    @abstractmethod
    async def clear_messages(self, chat_id: str) -> None:
        pass

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> None:
        pass

    # Invites

    @abstractmethod
    async def get_invite_code(self, chat_id: str) -> str:
        """Return the invite code (or a full invite URL) of a group chat."""
        pass

    @abstractmethod
    async def revoke_invite(self, chat_id: str) -> str:
        """Revoke the current invite and return the new code."""
        pass

    @abstractmethod
    async def accept_invite(self, code: str) -> str:
        """Join a group with a bare invite code. Returns the joined chat id."""
        pass
