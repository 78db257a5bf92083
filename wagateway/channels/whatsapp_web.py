"""
WhatsApp Web client driven by Playwright (Chromium).

The browser runs with a persistent profile directory, which is where WhatsApp Web
keeps its authentication. Reusing the directory re-authenticates silently.
Operations are executed inside the page against WhatsApp Web's own module store.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import async_playwright

from .base import Chat, ChatClient, MediaPayload, Message, Participant

logger = logging.getLogger(__name__)


# Installs window.WAGateway: a thin bridge over WhatsApp Web's internal modules.
_BRIDGE_SCRIPT = r"""
() => {
  if (window.WAGateway) return true;
  const r = window.require;
  const C = r('WAWebCollections');
  const Cmd = r('WAWebCmd').Cmd;
  const Wid = r('WAWebWidFactory');
  const Invite = r('WAWebGroupInviteJob');
  const Participants = r('WAWebModifyParticipantsGroupAction');
  const Checks = r('WAWebMsgActionCapability');

  const chatOf = async (id) => {
    const chat = C.Chat.get(id) || await C.Chat.find(Wid.createWid(id));
    if (!chat) throw new Error('chat not found: ' + id);
    return chat;
  };
  const msgOf = (id) => {
    const msg = C.Msg.get(id);
    if (!msg) throw new Error('message not found: ' + id);
    return msg;
  };
  const wids = (ids) => ids.map((id) => Wid.createWid(id));
  const serializeMsg = (m) => ({
    id: m.id._serialized,
    chatId: m.id.remote._serialized || String(m.id.remote),
    timestamp: m.t,
    body: m.body || m.caption || '',
    fromMe: !!m.id.fromMe,
    author: m.author ? m.author._serialized : null,
    hasMedia: !!m.mediaData,
    isDeletableForEveryone: Checks.canSenderRevokeMsg ? Checks.canSenderRevokeMsg(m) : !!m.id.fromMe,
  });
  const serializeChat = (c) => ({
    id: c.id._serialized,
    name: c.formattedTitle || c.name || c.id.user,
    isGroup: !!c.isGroup,
    archived: !!c.archive,
    pinned: !!c.pin,
    muted: !!(c.mute && c.mute.expiration !== 0),
    unreadCount: c.unreadCount || 0,
    participants: c.isGroup && c.groupMetadata
      ? c.groupMetadata.participants.getModelsArray().map((p) => ({
          id: p.id._serialized, isAdmin: !!p.isAdmin, isSuperAdmin: !!p.isSuperAdmin,
        }))
      : [],
  });

  window.WAGateway = {
    getChats: async () => C.Chat.getModelsArray().map(serializeChat),
    fetchMessages: async (chatId, limit) => {
      const chat = await chatOf(chatId);
      let msgs = chat.msgs.getModelsArray().filter((m) => !m.isNotification);
      while (msgs.length < limit) {
        const loaded = await r('WAWebChatLoadMessages').loadEarlierMsgs(chat);
        if (!loaded || !loaded.length) break;
        msgs = [...loaded.filter((m) => !m.isNotification), ...msgs];
      }
      msgs.sort((a, b) => a.t - b.t);
      return msgs.slice(-limit).map(serializeMsg);
    },
    sendMessage: async (chatId, body) => {
      const chat = await chatOf(chatId);
      const [msg] = await r('WAWebSendTextMsgChatAction').sendTextMsgToChat(chat, body);
      return serializeMsg(msg || chat.msgs.last());
    },
    forwardMessage: async (msgId, chatId) => {
      const chat = await chatOf(chatId);
      await Cmd.forwardMessages([chat], [msgOf(msgId)]);
      return true;
    },
    deleteMessage: async (msgId, everyone) => {
      const msg = msgOf(msgId);
      const chat = await chatOf(msg.id.remote._serialized);
      if (everyone) await Cmd.sendRevokeMsgs(chat, { list: [msg], type: 'message' }, { clearMedia: true });
      else await Cmd.sendDeleteMsgs(chat, { list: [msg], type: 'message' }, true);
    },
    addParticipants: async (chatId, ids) => Participants.addParticipants(await chatOf(chatId), wids(ids)),
    removeParticipants: async (chatId, ids) => Participants.removeParticipants(await chatOf(chatId), wids(ids)),
    promoteParticipants: async (chatId, ids) => Participants.promoteParticipants(await chatOf(chatId), wids(ids)),
    demoteParticipants: async (chatId, ids) => Participants.demoteParticipants(await chatOf(chatId), wids(ids)),
    setPicture: async (chatId, mimetype, data) => {
      const chat = await chatOf(chatId);
      const src = 'data:' + mimetype + ';base64,' + data;
      const res = await r('WAWebContactProfilePicThumbBridge').sendSetPicture(chat.id, src, src);
      return !!(res && res.status === 200);
    },
    archive: async (chatId, value) => Cmd.archiveChat(await chatOf(chatId), value),
    pin: async (chatId, value) => Cmd.pinChat(await chatOf(chatId), value),
    mute: async (chatId, value) => {
      const chat = await chatOf(chatId);
      return value ? chat.mute.mute({ expiration: -1 }) : chat.mute.unmute({ sendDevice: true });
    },
    clearMessages: async (chatId) => Cmd.clearChat(await chatOf(chatId), false),
    deleteChat: async (chatId) => Cmd.deleteChat(await chatOf(chatId)),
    inviteCode: async (chatId) => (await Invite.queryGroupInviteCode((await chatOf(chatId)).id)).code,
    revokeInvite: async (chatId) => (await Invite.resetGroupInviteCode((await chatOf(chatId)).id)).code,
    acceptInvite: async (code) => {
      const res = await Invite.joinGroupViaInvite(code);
      return res.gid._serialized;
    },
    logout: async () => r('WAWebSocketModel').Socket.logout(),
  };
  return true;
}
"""


class WhatsAppWebClient(ChatClient):
    """
    ChatClient backed by WhatsApp Web in a Playwright-controlled Chromium.

    Emits "qr" with the raw QR payload each time WhatsApp Web rotates it,
    and "ready" once the chat list is visible and the bridge is installed.
    """

    QR_SELECTOR = "div[data-ref]"
    READY_SELECTORS = ('[data-testid="chat-list"]', "#side")

    def __init__(
        self,
        session_name: str,
        user_data_dir: Path,
        headless: bool = False,
        executable_path: Optional[str] = None,
        browser_args: Optional[List[str]] = None,
        url: str = "https://web.whatsapp.com",
        timeout_ms: int = 60000,
        poll_interval: float = 1.0,
    ):
        """
        Initialize the client. Nothing is launched until initialize().

        Args:
            session_name: Session this client belongs to
            user_data_dir: Persistent browser profile (holds the credentials)
            headless: Run Chromium without a window
            executable_path: Custom Chrome/Chromium binary
            browser_args: Extra Chromium command line switches
            url: WhatsApp Web URL
            timeout_ms: Navigation timeout
            poll_interval: Seconds between QR / readiness checks
        """
        super().__init__(session_name)
        self.user_data_dir = Path(user_data_dir)
        self.headless = headless
        self.executable_path = executable_path
        self.browser_args = browser_args or []
        self.url = url
        self.timeout_ms = timeout_ms
        self.poll_interval = poll_interval
        self._playwright = None
        self._context = None
        self._page = None
        self._monitor_task: Optional[asyncio.Task] = None
        self._closed_task: Optional[asyncio.Task] = None
        self._closing = False
        self._ready = False

    async def initialize(self) -> None:
        """Launch the browser, open WhatsApp Web and start watching for QR/readiness."""
        self.user_data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Launching browser for session {self.session_name} (headless={self.headless})")

        self._playwright = await async_playwright().start()
        try:
            self._context = await self._playwright.chromium.launch_persistent_context(
                user_data_dir=str(self.user_data_dir),
                headless=self.headless,
                executable_path=self.executable_path,
                args=self.browser_args,
                viewport={"width": 1280, "height": 800},
            )
            self._context.on("close", self._on_context_closed)
            pages = self._context.pages
            self._page = pages[0] if pages else await self._context.new_page()
            await self._page.goto(self.url, wait_until="domcontentloaded", timeout=self.timeout_ms)
        except Exception:
            self._closing = True
            await self._close_browser()
            raise

        self._monitor_task = asyncio.create_task(self._monitor())

    async def _monitor(self) -> None:
        """Poll the page until logged in, emitting every new QR payload on the way."""
        last_qr = None
        while not self._ready:
            try:
                if await self._is_logged_in():
                    await self._page.evaluate(_BRIDGE_SCRIPT)
                    self._ready = True
                    logger.info(f"WhatsApp Web is ready (session={self.session_name})")
                    await self._emit("ready")
                    return

                qr_elem = self._page.locator(self.QR_SELECTOR).first
                if await qr_elem.count() > 0:
                    payload = await qr_elem.get_attribute("data-ref")
                    if payload and payload != last_qr:
                        last_qr = payload
                        logger.debug(f"QR payload rotated (session={self.session_name})")
                        await self._emit("qr", payload)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Monitor check failed (session={self.session_name}): {e}")

            await asyncio.sleep(self.poll_interval)

    async def _is_logged_in(self) -> bool:
        for selector in self.READY_SELECTORS:
            if await self._page.locator(selector).count() > 0:
                return True
        return False

    async def _close_browser(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._page = None

    async def _stop_monitor(self) -> None:
        if self._monitor_task and not self._monitor_task.done():
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
        self._monitor_task = None

    def _on_context_closed(self, _context: Any = None) -> None:
        """Browser closed or crashed without destroy() being called."""
        if self._closing:
            return
        logger.warning(f"Browser closed unexpectedly (session={self.session_name})")
        self._closed_task = asyncio.get_running_loop().create_task(self._handle_browser_gone())

    async def _handle_browser_gone(self) -> None:
        self._closing = True
        self._ready = False
        await self._stop_monitor()
        self._context = None
        self._page = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Stopping Playwright failed (session={self.session_name}): {e}")
            self._playwright = None
        await self._emit("disconnected")

    async def destroy(self) -> None:
        self._closing = True
        await self._stop_monitor()
        was_open = self._context is not None
        await self._close_browser()
        self._ready = False
        if was_open:
            await self._emit("disconnected")

    async def logout(self) -> None:
        if self._ready:
            await self._call("logout")
        await self.destroy()

    async def _call(self, fn: str, *args: Any) -> Any:
        """Invoke a bridge function inside the page."""
        if self._page is None or not self._ready:
            raise RuntimeError(f"WhatsApp Web is not ready (session={self.session_name})")
        return await self._page.evaluate(
            "([fn, args]) => window.WAGateway[fn](...args)", [fn, list(args)]
        )

    @staticmethod
    def parse_chat(data: Dict[str, Any]) -> Chat:
        """Convert a serialized chat from the page into a Chat."""
        return Chat(
            id=data["id"],
            name=data.get("name") or "",
            is_group=bool(data.get("isGroup")),
            participants=tuple(
                Participant(
                    id=p["id"],
                    is_admin=bool(p.get("isAdmin")),
                    is_super_admin=bool(p.get("isSuperAdmin")),
                )
                for p in data.get("participants") or []
            ),
            archived=bool(data.get("archived")),
            pinned=bool(data.get("pinned")),
            muted=bool(data.get("muted")),
            unread_count=int(data.get("unreadCount") or 0),
        )

    @staticmethod
    def parse_message(data: Dict[str, Any]) -> Message:
        """Convert a serialized message from the page into a Message."""
        return Message(
            id=data["id"],
            chat_id=data.get("chatId", ""),
            timestamp=int(data.get("timestamp") or 0),
            body=data.get("body") or "",
            is_deletable_for_everyone=bool(data.get("isDeletableForEveryone")),
            from_me=bool(data.get("fromMe")),
            author=data.get("author"),
            has_media=bool(data.get("hasMedia")),
        )

    async def get_chats(self) -> List[Chat]:
        return [self.parse_chat(c) for c in await self._call("getChats")]

    async def fetch_messages(self, chat_id: str, limit: int) -> List[Message]:
        return [self.parse_message(m) for m in await self._call("fetchMessages", chat_id, limit)]

    async def send_message(self, chat_id: str, body: str) -> Message:
        return self.parse_message(await self._call("sendMessage", chat_id, body))

    async def forward_message(self, message: Message, chat_id: str) -> bool:
        return bool(await self._call("forwardMessage", message.id, chat_id))

    async def delete_message(self, message: Message, everyone: bool) -> None:
        await self._call("deleteMessage", message.id, everyone)

    async def add_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        await self._call("addParticipants", chat_id, participant_ids)

    async def remove_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        await self._call("removeParticipants", chat_id, participant_ids)

    async def promote_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        await self._call("promoteParticipants", chat_id, participant_ids)

    async def demote_participants(self, chat_id: str, participant_ids: List[str]) -> None:
        await self._call("demoteParticipants", chat_id, participant_ids)

    async def set_picture(self, chat_id: str, media: MediaPayload) -> bool:
        return bool(await self._call("setPicture", chat_id, media.mimetype, media.data))

    async def archive(self, chat_id: str) -> None:
        await self._call("archive", chat_id, True)

    async def unarchive(self, chat_id: str) -> None:
        await self._call("archive", chat_id, False)

    async def pin(self, chat_id: str) -> None:
        await self._call("pin", chat_id, True)

    async def unpin(self, chat_id: str) -> None:
        await self._call("pin", chat_id, False)

    async def mute(self, chat_id: str) -> None:
        await self._call("mute", chat_id, True)

    async def unmute(self, chat_id: str) -> None:
        await self._call("mute", chat_id, False)

    async def clear_messages(self, chat_id: str) -> None:
        await self._call("clearMessages", chat_id)

    async def delete_chat(self, chat_id: str) -> None:
        await self._call("deleteChat", chat_id)

    async def get_invite_code(self, chat_id: str) -> str:
        return await self._call("inviteCode", chat_id)

    async def revoke_invite(self, chat_id: str) -> str:
        return await self._call("revokeInvite", chat_id)

    async def accept_invite(self, code: str) -> str:
        return await self._call("acceptInvite", code)
