"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "WhatsApp Session Gateway"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 7000
    domain: str = "http://localhost"

    # Session
    session_name: str = "session1"
    credentials_path: str = "./.wwebjs_auth"  # one sub-directory per session
    qr_timeout_ticks: int = 60  # how many ticks /connect-session waits for a QR
    qr_tick_seconds: float = 1.0
    print_qr_in_terminal: bool = True

    # Chat backend
    chat_backend: str = "whatsapp_web"

    # Browser (Playwright)
    headless: bool = False
    executable_path: Optional[str] = None  # uses Playwright's bundled Chromium if not set
    whatsapp_web_url: str = "https://web.whatsapp.com"
    browser_args: list[str] = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
    ]
    browser_timeout_ms: int = 60000

    # Media
    media_max_bytes: int = 16 * 1024 * 1024  # 16 MB
    media_download_timeout: float = 30.0

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:7000",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/wagateway.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
