"""
Chat API endpoints - Chats, participants, chat state and invite links.
"""

from fastapi import APIRouter, Depends

from ..core import ChatService, SessionController
from ..models import AcceptInviteRequest, ParticipantsRequest, UpdatePictureRequest
from .deps import get_chat_service, get_controller, get_session_name

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/get-all-chats")
async def get_all_chats(service: ChatService = Depends(get_chat_service)):
    """All chats from the snapshot taken when the session became ready."""
    chats = service.get_all_chats()
    return {"chats": [c.to_dict() for c in chats], "count": len(chats)}


@router.post("/refresh-chats")
async def refresh_chats(
    controller: SessionController = Depends(get_controller),
    session_name: str = Depends(get_session_name),
):
    """Reload the chat snapshot from WhatsApp."""
    snapshot = await controller.refresh_snapshot(session_name)
    return {"count": len(snapshot.chats), "takenAt": snapshot.taken_at.isoformat()}


@router.get("/get-all-participants/{id}")
async def get_all_participants(id: str, service: ChatService = Depends(get_chat_service)):
    participants = service.get_participants(id)
    return {"participants": [p.to_dict() for p in participants], "count": len(participants)}


@router.get("/get-admins/{id}")
async def get_admins(id: str, service: ChatService = Depends(get_chat_service)):
    admins = service.get_admins(id)
    return {"admins": [p.to_dict() for p in admins]}


@router.post("/add-participants")
async def add_participants(body: ParticipantsRequest, service: ChatService = Depends(get_chat_service)):
    await service.add_participants(body.chat_id, body.participants)
    return {"message": "Participants added"}


@router.post("/remove-participants")
async def remove_participants(body: ParticipantsRequest, service: ChatService = Depends(get_chat_service)):
    await service.remove_participants(body.chat_id, body.participants)
    return {"message": "Participants removed"}


@router.put("/promote-participants")
async def promote_participants(body: ParticipantsRequest, service: ChatService = Depends(get_chat_service)):
    await service.promote_participants(body.chat_id, body.participants)
    return {"message": "Participants promoted to admin"}


@router.put("/demote-participants")
async def demote_participants(body: ParticipantsRequest, service: ChatService = Depends(get_chat_service)):
    await service.demote_participants(body.chat_id, body.participants)
    return {"message": "Participants removed from the admin list"}


@router.put("/update-picture")
async def update_picture(body: UpdatePictureRequest, service: ChatService = Depends(get_chat_service)):
    """Set the group picture from a local file path or an http(s) URL."""
    updated = await service.update_picture(body.chat_id, body.path_media)
    if not updated:
        return {"message": "Picture was not updated"}
    return {"message": "Picture updated"}


@router.delete("/delete-chat/{id}")
async def delete_chat(id: str, service: ChatService = Depends(get_chat_service)):
    await service.delete_chat(id)
    return {"message": "Chat deleted"}


@router.patch("/archive-chat/{id}")
async def archive_chat(id: str, service: ChatService = Depends(get_chat_service)):
    await service.archive_chat(id)
    return {"message": "Chat archived"}


@router.patch("/unarchive-chat/{id}")
async def unarchive_chat(id: str, service: ChatService = Depends(get_chat_service)):
    await service.unarchive_chat(id)
    return {"message": "Chat unarchived"}


@router.patch("/pin-chat/{id}")
async def pin_chat(id: str, service: ChatService = Depends(get_chat_service)):
    await service.pin_chat(id)
    return {"message": "Chat pinned"}


@router.patch("/unpin-chat/{id}")
async def unpin_chat(id: str, service: ChatService = Depends(get_chat_service)):
    await service.unpin_chat(id)
    return {"message": "Chat unpinned"}


@router.patch("/mute-chat/{id}")
async def mute_chat(id: str, service: ChatService = Depends(get_chat_service)):
    await service.mute_chat(id)
    return {"message": "Chat muted"}


@router.patch("/unmute-chat/{id}")
async def unmute_chat(id: str, service: ChatService = Depends(get_chat_service)):
    await service.unmute_chat(id)
    return {"message": "Chat unmuted"}


@router.delete("/clear-messages/{id}")
async def clear_messages(id: str, service: ChatService = Depends(get_chat_service)):
    await service.clear_messages(id)
    return {"message": "Chat messages cleared"}


@router.put("/revoke-invite-chat/{id}")
async def revoke_invite_chat(id: str, service: ChatService = Depends(get_chat_service)):
    """Revoke the current invite link and return the new one."""
    link = await service.revoke_invite(id)
    return {"link": link}


@router.get("/get-invite-code/{id}")
async def get_invite_code(id: str, service: ChatService = Depends(get_chat_service)):
    link = await service.get_invite_link(id)
    return {"link": link}


@router.post("/accept-invite")
async def accept_invite(body: AcceptInviteRequest, service: ChatService = Depends(get_chat_service)):
    """Join a group from an invite code or a full invite link."""
    chat_id = await service.accept_invite(body.invite_code)
    return {"chatId": chat_id, "message": "Joined chat"}
