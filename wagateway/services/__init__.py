"""Services module - media loading and QR rendering helpers."""

from .media import load_media
from .qr_terminal import render_qr_ascii

__all__ = ['load_media', 'render_qr_ascii']
