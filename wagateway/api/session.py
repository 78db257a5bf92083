"""
Session API endpoints - Connect, inspect and close the WhatsApp session.
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..core import BackendOperationFailed, SessionAbsent, SessionController
from ..models import SessionStatus
from ..utils import parse_flag
from .deps import get_controller, get_session_name

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])


@router.get("/connect-session")
async def connect_session(
    controller: SessionController = Depends(get_controller),
    session_name: str = Depends(get_session_name),
):
    """
    Start the session and wait for the login QR code.

    Returns the QR payload to scan, or a message when the session is already
    connected, reconnected silently, or no QR showed up in time. A timeout does
    not stop the connection attempt: it may still complete afterwards.
    """
    try:
        result = await controller.connect(session_name)
    except BackendOperationFailed:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Error to connect session"},
        )

    if result.already_connected:
        body = {"message": "Client is already connected"}
        session = controller.registry.get(session_name)
        if session is not None and session.status == SessionStatus.AWAITING_CREDENTIAL and session.last_credential:
            body["qrCode"] = session.last_credential
        return body

    try:
        credential = await controller.await_credential(session_name)
    except SessionAbsent:
        return {"message": "Session was closed before the QR code was received"}

    if credential.timed_out:
        return {"message": "Time out waiting for the QR code, the connection may still be established"}
    if credential.ready:
        return {"message": "Client connected with saved credentials"}
    return {"message": "Scan the qr code", "qrCode": credential.credential}


@router.delete("/close-and-delete-session/{deleteS}")
async def close_and_delete_session(
    deleteS: str,
    controller: SessionController = Depends(get_controller),
    session_name: str = Depends(get_session_name),
):
    """
    Close the session. When deleteS is truthy the saved credentials are deleted
    too, so the next connect needs a new QR scan.
    """
    found = await controller.destroy(session_name, purge_credentials=parse_flag(deleteS))
    if not found:
        return {"message": "Session not found"}
    return {"message": "successful operation"}


@router.delete("/logout-session")
async def logout_session(
    controller: SessionController = Depends(get_controller),
    session_name: str = Depends(get_session_name),
):
    """Log the device out of WhatsApp and drop the saved credentials."""
    found = await controller.logout(session_name)
    if not found:
        return {"message": "Session not found"}
    return {"message": "Logged out"}


@router.get("/session-status")
async def session_status(
    controller: SessionController = Depends(get_controller),
    session_name: str = Depends(get_session_name),
):
    """Current lifecycle state of the session."""
    info = await controller.status(session_name)
    return info.model_dump(mode="json", by_alias=True)
