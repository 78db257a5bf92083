"""API module."""

from .session import router as session_router
from .chat import router as chat_router
from .message import router as message_router

__all__ = ['session_router', 'chat_router', 'message_router']
