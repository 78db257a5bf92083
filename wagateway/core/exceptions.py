"""Exception hierarchy for the session gateway."""


class GatewayError(Exception):
    """Base exception for all gateway errors."""

    message = "Gateway error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


# Session
class NotReady(GatewayError):
    """The session is not in the ready state."""

    message = "Client is not ready"


class SessionAbsent(GatewayError):
    """Nothing to act on: no live session and no persisted credentials."""

    message = "Session not found"


# Chats / messages
class ChatNotFound(GatewayError):
    """No chat in the current snapshot matches the given id or name."""

    message = "Chat not found"


class MessageNotFound(GatewayError):
    """The chat has no message to act on."""

    message = "Message not found"


# Backend
class BackendOperationFailed(GatewayError):
    """Wraps any failure raised by the underlying chat client."""

    message = "Backend operation failed"


# Media
class MediaLoadError(GatewayError):
    """A media file or URL could not be loaded."""

    message = "Could not load media"
