"""
Request Models - JSON bodies accepted by the chat and message endpoints.
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ForwardLastMessageRequest(_CamelModel):
    chat_id: str = Field(alias="chatId")
    destination_chat_id: str = Field(alias="destinationChatId")


class SendMessageByNameRequest(_CamelModel):
    chat_name: str = Field(alias="chatName")
    message: str


class ParticipantsRequest(_CamelModel):
    chat_id: str = Field(alias="chatId")
    participants: List[str] = Field(min_length=1)


class UpdatePictureRequest(_CamelModel):
    chat_id: str = Field(alias="chatId")
    path_media: str = Field(alias="pathMedia")


class AcceptInviteRequest(_CamelModel):
    invite_code: str = Field(alias="inviteCode", min_length=1)
