"""
Media Loader - Reads media from a local path or an http(s) URL into a MediaPayload.
"""

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
import httpx

from ..channels.base import MediaPayload
from ..core.exceptions import MediaLoadError

logger = logging.getLogger(__name__)

DEFAULT_MIMETYPE = "application/octet-stream"


def _guess_mimetype(name: str, fallback: Optional[str] = None) -> str:
    mimetype, _ = mimetypes.guess_type(name)
    return mimetype or fallback or DEFAULT_MIMETYPE


async def load_media(
    location: str,
    max_bytes: int = 16 * 1024 * 1024,
    timeout: float = 30.0,
) -> MediaPayload:
    """
    Load media from a file path or URL.

    Args:
        location: Local file path or http(s) URL
        max_bytes: Reject media larger than this
        timeout: Download timeout in seconds

    Returns:
        MediaPayload with base64 data

    Raises:
        MediaLoadError: if the media is missing, unreachable or too large
    """
    if location.startswith(("http://", "https://")):
        return await _load_from_url(location, max_bytes, timeout)
    return await _load_from_path(location, max_bytes)


async def _load_from_path(path: str, max_bytes: int) -> MediaPayload:
    file_path = Path(path).expanduser()
    if not await aiofiles.os.path.isfile(file_path):
        raise MediaLoadError(f"Media file not found: {path}")

    size = await aiofiles.os.path.getsize(file_path)
    if size > max_bytes:
        raise MediaLoadError(f"Media file too large: {size} bytes (max {max_bytes})")

    async with aiofiles.open(file_path, 'rb') as f:
        content = await f.read()

    return MediaPayload(
        mimetype=_guess_mimetype(file_path.name),
        data=base64.b64encode(content).decode("utf-8"),
        filename=file_path.name,
    )


async def _load_from_url(url: str, max_bytes: int, timeout: float) -> MediaPayload:
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            content = resp.content
            content_type = resp.headers.get("content-type")
    except httpx.HTTPError as e:
        logger.warning(f"Media download failed for {url}: {e}")
        raise MediaLoadError(f"Could not download media: {url}") from e

    if len(content) > max_bytes:
        raise MediaLoadError(f"Media too large: {len(content)} bytes (max {max_bytes})")

    filename = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1] or None
    mimetype = content_type.split(";", 1)[0].strip() if content_type else None

    return MediaPayload(
        mimetype=mimetype or _guess_mimetype(filename or "", None),
        data=base64.b64encode(content).decode("utf-8"),
        filename=filename,
    )
