"""Core module - session lifecycle and chat operations."""

from .exceptions import (
    GatewayError,
    NotReady,
    SessionAbsent,
    ChatNotFound,
    MessageNotFound,
    BackendOperationFailed,
    MediaLoadError,
)
from .session_registry import ChatSnapshot, Session, SessionRegistry
from .session_controller import SessionController, ConnectResult, CredentialResult
from .chat_service import ChatService

__all__ = [
    'GatewayError', 'NotReady', 'SessionAbsent', 'ChatNotFound', 'MessageNotFound',
    'BackendOperationFailed', 'MediaLoadError',
    'ChatSnapshot', 'Session', 'SessionRegistry',
    'SessionController', 'ConnectResult', 'CredentialResult',
    'ChatService',
]
