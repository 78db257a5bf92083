"""
WhatsApp Session Gateway - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import chat_router, message_router, session_router
from .channels import ClientFactory, client_factory_from_settings
from .config import Settings, settings
from .core import ChatService, GatewayError, SessionController, SessionRegistry
from .core.logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .services.media import load_media
from .storage import CredentialStore

logger = logging.getLogger(__name__)


def create_app(config: Settings = settings, client_factory: Optional[ClientFactory] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings to use
        client_factory: Chat backend factory, defaults to the one configured in settings
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        setup_logging(config)

        registry = SessionRegistry()
        credential_store = CredentialStore(config.credentials_path)
        controller = SessionController(
            registry,
            credential_store,
            client_factory or client_factory_from_settings(config),
            qr_timeout_ticks=config.qr_timeout_ticks,
            qr_tick_seconds=config.qr_tick_seconds,
            print_qr=config.print_qr_in_terminal,
        )

        async def media_loader(location: str):
            return await load_media(
                location,
                max_bytes=config.media_max_bytes,
                timeout=config.media_download_timeout,
            )

        app.state.session_name = config.session_name
        app.state.controller = controller
        app.state.chat_service = ChatService(registry, config.session_name, media_loader=media_loader)

        logger.info(f"Starting {config.app_name} v{config.app_version}")
        logger.info(f"Session name: {config.session_name}")
        logger.info(f"Credentials path: {credential_store.base_dir}")
        logger.info(f"Headless browser: {config.headless}")
        yield
        logger.info(f"Shutting down {config.app_name}")
        await controller.shutdown()

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="HTTP API over a WhatsApp Web session: connect by QR code, manage chats and messages",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.log_api_requests:
        app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        """Domain failures are reported in the body, not as HTTP errors."""
        logger.warning(f"{request.method} {request.url.path}: {exc.detail}")
        return JSONResponse(status_code=200, content={"message": exc.detail})

    app.include_router(session_router)
    app.include_router(chat_router)
    app.include_router(message_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "app": config.app_name,
            "version": config.app_version,
            "status": "running",
            "domain": f"{config.domain}:{config.port}",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        controller: SessionController = app.state.controller
        return {
            "status": "healthy",
            "session": config.session_name,
            "sessionStatus": controller.registry.status_of(config.session_name).value,
            "version": config.app_version,
        }

    return app


app = create_app()


def run():
    """Run the gateway with uvicorn using the configured host and port."""
    import uvicorn
    uvicorn.run(
        "wagateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()
