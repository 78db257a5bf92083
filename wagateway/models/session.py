"""
Session Models - Defines structures for chat backend sessions.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SessionStatus(str, Enum):
    """Lifecycle of a session slot."""
    ABSENT = "absent"
    CONNECTING = "connecting"
    AWAITING_CREDENTIAL = "awaiting_credential"
    READY = "ready"
    DESTROYED = "destroyed"


LIVE_STATUSES = frozenset({
    SessionStatus.CONNECTING,
    SessionStatus.AWAITING_CREDENTIAL,
    SessionStatus.READY,
})


class SessionInfo(BaseModel):
    """Public view of a session slot."""
    model_config = ConfigDict(populate_by_name=True)

    session: str
    status: SessionStatus = SessionStatus.ABSENT
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    ready_at: Optional[datetime] = Field(default=None, alias="readyAt")
    chat_count: int = Field(default=0, alias="chatCount")
    has_credentials: bool = Field(default=False, alias="hasCredentials")
