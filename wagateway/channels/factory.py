"""
Chat Client Factory - Creates the configured chat backend instance.
"""

from pathlib import Path
from typing import Any, Callable

from .base import ChatClient
from .whatsapp_web import WhatsAppWebClient

ClientFactory = Callable[[str, Path], ChatClient]


def create_chat_client(
    session_name: str,
    user_data_dir: Path,
    provider: str = "whatsapp_web",
    **kwargs: Any
) -> ChatClient:
    """
    Create a chat client instance based on configuration.

    Args:
        session_name: Session the client belongs to
        user_data_dir: Directory holding the session's persisted credentials
        provider: Backend name (only "whatsapp_web" for now)
        **kwargs: Additional backend-specific parameters

    Returns:
        ChatClient instance (not yet initialized)
    """
    if provider == "whatsapp_web":
        return WhatsAppWebClient(session_name=session_name, user_data_dir=user_data_dir, **kwargs)

    raise ValueError(f"Unsupported chat backend: {provider}")


def client_factory_from_settings(config: Any) -> ClientFactory:
    """Bind the browser settings, leaving session name and credential dir to the caller."""

    def factory(session_name: str, user_data_dir: Path) -> ChatClient:
        return create_chat_client(
            session_name,
            user_data_dir,
            provider=config.chat_backend,
            headless=config.headless,
            executable_path=config.executable_path,
            browser_args=config.browser_args,
            url=config.whatsapp_web_url,
            timeout_ms=config.browser_timeout_ms,
        )

    return factory
