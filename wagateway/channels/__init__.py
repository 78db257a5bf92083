"""Channels module - chat backend interface and implementations."""

from .base import ChatClient, Chat, Participant, Message, MediaPayload
from .invite import INVITE_BASE_URL, normalize_invite_code, build_invite_link
from .whatsapp_web import WhatsAppWebClient
from .factory import ClientFactory, create_chat_client, client_factory_from_settings

__all__ = [
    'ChatClient',
    'Chat',
    'Participant',
    'Message',
    'MediaPayload',
    'INVITE_BASE_URL',
    'normalize_invite_code',
    'build_invite_link',
    'WhatsAppWebClient',
    'ClientFactory',
    'create_chat_client',
    'client_factory_from_settings',
]
