"""Models module."""

from .session import SessionStatus, SessionInfo, LIVE_STATUSES
from .requests import (
    ForwardLastMessageRequest,
    SendMessageByNameRequest,
    ParticipantsRequest,
    UpdatePictureRequest,
    AcceptInviteRequest,
)

__all__ = [
    'SessionStatus', 'SessionInfo', 'LIVE_STATUSES',
    'ForwardLastMessageRequest', 'SendMessageByNameRequest', 'ParticipantsRequest',
    'UpdatePictureRequest', 'AcceptInviteRequest',
]
