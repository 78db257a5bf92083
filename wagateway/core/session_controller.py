"""
Session Lifecycle Controller.

Drives a session through connecting -> awaiting_credential -> ready and tears it
down again (destroy / logout). Checking and registering a slot, and every
teardown, happen under the registry's per-name lock, so concurrent connects can
never produce two backend handles.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from ..channels.base import Chat, ChatClient
from ..channels.factory import ClientFactory
from ..models.session import SessionInfo, SessionStatus
from ..services.qr_terminal import render_qr_ascii
from ..storage.credential_store import CredentialStore
from .exceptions import BackendOperationFailed, SessionAbsent
from .session_registry import ChatSnapshot, Session, SessionRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectResult:
    already_connected: bool
    status: SessionStatus


@dataclass(frozen=True)
class CredentialResult:
    """
    Outcome of waiting for a credential.

    timed_out is informational: the connect attempt keeps running and the
    session may still become ready after the caller has given up.
    """
    credential: Optional[str] = None
    timed_out: bool = False
    ready: bool = False


class SessionController:
    """Owns the session state machine over a SessionRegistry."""

    def __init__(
        self,
        registry: SessionRegistry,
        credential_store: CredentialStore,
        client_factory: ClientFactory,
        qr_timeout_ticks: int = 60,
        qr_tick_seconds: float = 1.0,
        print_qr: bool = False,
    ):
        """
        Args:
            registry: Shared session registry
            credential_store: Where persisted credentials live
            client_factory: Builds a ChatClient for (session_name, credential_dir)
            qr_timeout_ticks: Default tick budget for await_credential
            qr_tick_seconds: Length of one tick
            print_qr: Also print QR payloads to the server console
        """
        self.registry = registry
        self.credential_store = credential_store
        self.client_factory = client_factory
        self.qr_timeout_ticks = qr_timeout_ticks
        self.qr_tick_seconds = qr_tick_seconds
        self.print_qr = print_qr

    def _set_status(self, session: Session, status: SessionStatus, reason: Optional[str] = None) -> None:
        previous = session.status
        session.status = status
        if previous != status:
            logger.info(
                f"Session {session.name}: {previous.value} -> {status.value}"
                + (f" ({reason})" if reason else ""),
                extra={"extra_fields": {
                    "session": session.name,
                    "from": previous.value,
                    "to": status.value,
                }}
            )

    async def connect(self, name: str) -> ConnectResult:
        """
        Start a session unless one is already live for this name.

        The lock covers check, create and register only; initialize() runs
        outside it so a concurrent connect or destroy is never held up by a
        slow browser launch.

        Raises:
            BackendOperationFailed: the backend could not be initialized; the
                slot is back to absent and nothing is retried.
        """
        async with self.registry.lock(name):
            existing = self.registry.get(name)
            if existing is not None and existing.is_live:
                logger.info(f"Session {name} already connected ({existing.status.value})")
                return ConnectResult(already_connected=True, status=existing.status)

            client = self.client_factory(name, self.credential_store.path_for(name))
            session = Session(name=name, client=client)
            logger.info(f"Session {name}: absent -> connecting")

            client.on_qr(lambda payload: self._handle_qr(session, payload))
            client.on_ready(lambda: self._handle_ready(session))
            client.on_disconnected(lambda: self._handle_disconnected(session))
            self.registry.put(session)

        try:
            await client.initialize()
        except Exception as e:
            logger.exception(f"Failed to initialize session {name}")
            async with self.registry.lock(name):
                self.registry.remove(name, session)
                self._set_status(session, SessionStatus.ABSENT, reason="initialize failed")
                if not session.credential.done():
                    session.credential.cancel()
            await self._close_quietly(client)
            raise BackendOperationFailed(f"Error to connect session: {e}") from e

        if not session.is_live:
            # destroyed while the browser was starting
            await self._close_quietly(client)
        elif session.status == SessionStatus.CONNECTING:
            self._set_status(session, SessionStatus.AWAITING_CREDENTIAL)
        return ConnectResult(already_connected=False, status=session.status)

    async def _close_quietly(self, client: ChatClient) -> None:
        try:
            await client.destroy()
        except Exception as e:
            logger.warning(f"Closing backend for session {client.session_name} failed: {e}")

    def _handle_qr(self, session: Session, payload: str) -> None:
        if not session.is_live or session.status == SessionStatus.READY:
            return
        session.last_credential = payload
        if session.status == SessionStatus.CONNECTING:
            self._set_status(session, SessionStatus.AWAITING_CREDENTIAL, reason="qr received")
        if not session.credential.done():
            session.credential.set_result(payload)
        if self.print_qr:
            print(render_qr_ascii(payload), flush=True)

    async def _handle_ready(self, session: Session) -> None:
        if not session.is_live:
            return
        try:
            chats = await session.client.get_chats()
        except Exception:
            logger.warning(f"Could not load chats for session {session.name}", exc_info=True)
            chats = []

        # destroy may have run while chats were loading
        if not session.is_live:
            return
        session.snapshot = ChatSnapshot(chats=tuple(chats))
        session.ready_at = datetime.now(timezone.utc)
        session.last_credential = None
        self._set_status(session, SessionStatus.READY, reason=f"{len(chats)} chats loaded")
        if not session.credential.done():
            session.credential.set_result(None)

    def _handle_disconnected(self, session: Session) -> None:
        if not session.is_live:
            return
        logger.warning(f"Session {session.name} disconnected by the backend")
        self._set_status(session, SessionStatus.DESTROYED, reason="backend disconnected")
        if not session.credential.done():
            session.credential.cancel()
        session.snapshot = None
        self.registry.remove(session.name, session)

    async def await_credential(self, name: str, timeout_ticks: Optional[int] = None) -> CredentialResult:
        """
        Wait for the first credential (QR payload) of a connecting session.

        Args:
            name: Session name
            timeout_ticks: Tick budget, defaults to qr_timeout_ticks

        Returns:
            CredentialResult with the payload, ready=True if the session became
            ready without a QR, or timed_out=True.

        Raises:
            SessionAbsent: no live session, or it was destroyed while waiting
        """
        session = self.registry.get(name)
        if session is None or not session.is_live:
            raise SessionAbsent(f"Session {name} is not connecting")
        if session.status == SessionStatus.READY:
            return CredentialResult(ready=True)

        ticks = self.qr_timeout_ticks if timeout_ticks is None else timeout_ticks
        try:
            credential = await asyncio.wait_for(
                asyncio.shield(session.credential), timeout=max(ticks, 0) * self.qr_tick_seconds
            )
        except asyncio.TimeoutError:
            logger.info(f"No credential for session {name} after {ticks} ticks")
            return CredentialResult(timed_out=True)
        except asyncio.CancelledError:
            if session.credential.cancelled():
                raise SessionAbsent(f"Session {name} was closed while waiting for the QR code")
            raise

        if credential is None:
            return CredentialResult(ready=True)
        return CredentialResult(credential=credential)

    async def _release(self, session: Session, logout: bool) -> None:
        """
        Mark destroyed, cancel waiters, free the slot, then close the handle.

        The slot is freed before the backend is closed, so a failing close
        still leaves the session absent.
        """
        self._set_status(session, SessionStatus.DESTROYED, reason="logout" if logout else "destroy")
        if not session.credential.done():
            session.credential.cancel()
        session.snapshot = None
        self.registry.remove(session.name, session)
        try:
            if logout:
                await session.client.logout()
            else:
                await session.client.destroy()
        except Exception as e:
            logger.exception(f"Backend failed to close session {session.name}")
            raise BackendOperationFailed(f"Error closing session: {e}") from e

    async def destroy(self, name: str, purge_credentials: bool = False) -> bool:
        """
        Close the live handle (if any) and optionally delete persisted credentials.

        Credentials are purged even when the backend fails to close; the close
        failure is raised afterwards.

        Returns:
            bool: False if there was neither a live session nor stored credentials
        """
        async with self.registry.lock(name):
            session = self.registry.get(name)
            has_credentials = await self.credential_store.exists(name)
            if session is None and not has_credentials:
                logger.info(f"Nothing to destroy for session {name}")
                return False

            try:
                if session is not None:
                    await self._release(session, logout=False)
            finally:
                if purge_credentials:
                    await self.credential_store.purge(name)
            return True

    async def logout(self, name: str) -> bool:
        """
        Invalidate the credential on the backend side and drop local credentials.

        Local credentials are purged even when the backend logout fails.

        Returns:
            bool: False if there was neither a live session nor stored credentials
        """
        async with self.registry.lock(name):
            session = self.registry.get(name)
            has_credentials = await self.credential_store.exists(name)
            if session is None and not has_credentials:
                return False

            try:
                if session is not None:
                    await self._release(session, logout=True)
            finally:
                await self.credential_store.purge(name)
            return True

    def get_all_chats(self, name: str) -> Tuple[Chat, ...]:
        """Chats from the current snapshot. Raises NotReady unless ready."""
        session = self.registry.require_ready(name)
        return session.snapshot.chats if session.snapshot else ()

    async def refresh_snapshot(self, name: str) -> ChatSnapshot:
        """Re-fetch all chats and swap in a new snapshot."""
        session = self.registry.require_ready(name)
        try:
            chats = await session.client.get_chats()
        except Exception as e:
            logger.exception(f"Failed to refresh chats for session {name}")
            raise BackendOperationFailed(f"Error refreshing chats: {e}") from e

        snapshot = ChatSnapshot(chats=tuple(chats))
        if session.status == SessionStatus.READY:
            session.snapshot = snapshot
        return snapshot

    async def status(self, name: str) -> SessionInfo:
        session = self.registry.get(name)
        has_credentials = await self.credential_store.exists(name)
        if session is None:
            return SessionInfo(session=name, has_credentials=has_credentials)
        return SessionInfo(
            session=name,
            status=session.status,
            created_at=session.created_at,
            ready_at=session.ready_at,
            chat_count=len(session.snapshot.chats) if session.snapshot else 0,
            has_credentials=has_credentials,
        )

    async def shutdown(self) -> None:
        """Close every live session, keeping credentials."""
        for name in self.registry.names():
            try:
                await self.destroy(name, purge_credentials=False)
            except Exception:
                logger.exception(f"Error closing session {name} during shutdown")
