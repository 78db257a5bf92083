"""Session registry: one slot per session name, plus the chat snapshot it owns."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ..channels.base import Chat, ChatClient
from ..models.session import LIVE_STATUSES, SessionStatus
from .exceptions import NotReady

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatSnapshot:
    """Point-in-time copy of every chat. Replaced wholesale, never mutated."""
    chats: Tuple[Chat, ...]
    taken_at: datetime = field(default_factory=_utcnow)

    def find_by_id(self, chat_id: str) -> Optional[Chat]:
        for chat in self.chats:
            if chat.id == chat_id:
                return chat
        return None

    def find_by_name(self, name: str) -> Optional[Chat]:
        """First chat with exactly this name, in snapshot order."""
        for chat in self.chats:
            if chat.name == name:
                return chat
        return None


@dataclass
class Session:
    """A live (or dying) connection to the chat backend."""
    name: str
    client: ChatClient
    status: SessionStatus = SessionStatus.CONNECTING
    created_at: datetime = field(default_factory=_utcnow)
    ready_at: Optional[datetime] = None
    snapshot: Optional[ChatSnapshot] = None
    last_credential: Optional[str] = None
    # Resolved once: with the first QR payload, or None if ready came first
    credential: asyncio.Future = field(
        default_factory=lambda: asyncio.get_running_loop().create_future()
    )

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES


class SessionRegistry:
    """
    Keyed store of sessions.

    The registry exclusively owns each session's client handle. Callers that
    check-then-create must hold lock(name) across both steps.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock(self, name: str) -> asyncio.Lock:
        """Per-name lock guarding creation and teardown."""
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    def get(self, name: str) -> Optional[Session]:
        return self._sessions.get(name)

    def put(self, session: Session) -> None:
        existing = self._sessions.get(session.name)
        if existing is not None and existing is not session and existing.is_live:
            raise RuntimeError(f"Session {session.name} already has a live handle")
        self._sessions[session.name] = session

    def remove(self, name: str, session: Optional[Session] = None) -> Optional[Session]:
        """Remove a slot. If session is given, only remove it if it is still the registered one."""
        current = self._sessions.get(name)
        if current is None or (session is not None and current is not session):
            return None
        return self._sessions.pop(name)

    def names(self) -> List[str]:
        return list(self._sessions)

    def require_ready(self, name: str) -> Session:
        """Return the session if it is ready, otherwise raise NotReady."""
        session = self._sessions.get(name)
        if session is None or session.status != SessionStatus.READY:
            raise NotReady(f"Session {name} is not ready")
        return session

    def status_of(self, name: str) -> SessionStatus:
        session = self._sessions.get(name)
        return session.status if session is not None else SessionStatus.ABSENT
