"""
Message API endpoints - Read, send, forward and delete messages.
"""

from fastapi import APIRouter, Depends

from ..core import ChatService
from ..models import ForwardLastMessageRequest, SendMessageByNameRequest
from ..utils import parse_flag
from .deps import get_chat_service

router = APIRouter(prefix="/message", tags=["message"])


@router.post("/forward-last-message")
async def forward_last_message(body: ForwardLastMessageRequest, service: ChatService = Depends(get_chat_service)):
    """Forward the last message of chatId to destinationChatId."""
    result = await service.forward_last_message(body.chat_id, body.destination_chat_id)
    return {"result": result, "message": "Send message"}


@router.post("/send-message-by-chat-name")
async def send_message_by_chat_name(body: SendMessageByNameRequest, service: ChatService = Depends(get_chat_service)):
    """Send a text message to the first chat whose name matches exactly."""
    sent = await service.send_message_by_name(body.chat_name, body.message)
    if not sent:
        return {"message": "chat not found"}
    return {"message": "message sent"}


@router.get("/get-count-messages/{id}/{limit}")
async def get_count_messages(id: str, limit: int, service: ChatService = Depends(get_chat_service)):
    """The `limit` most recent messages of a chat (at least one)."""
    messages = await service.get_messages(id, limit)
    return {"messages": [m.to_dict() for m in messages]}


@router.delete("/delete-last-message/{chatId}/{everyone}")
async def delete_last_message(chatId: str, everyone: str, service: ChatService = Depends(get_chat_service)):
    """Delete the most recent message, for everyone when `everyone` is truthy."""
    deleted = await service.delete_last_message(chatId, parse_flag(everyone))
    if not deleted:
        return {"message": "No message to delete"}
    return {"message": "Last message deleted"}
