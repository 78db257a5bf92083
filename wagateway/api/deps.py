"""Dependencies shared by the routers. Components live on app.state (set up in the lifespan)."""

from fastapi import Request

from ..core import ChatService, SessionController


def get_controller(request: Request) -> SessionController:
    return request.app.state.controller


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_session_name(request: Request) -> str:
    return request.app.state.session_name
