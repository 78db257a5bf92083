"""
Terminal QR rendering - prints the login QR so it can be scanned from the server console.
"""

import io

import qrcode


def render_qr_ascii(payload: str) -> str:
    """Render a QR payload as ASCII art."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=1,
        border=1,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    buf = io.StringIO()
    qr.print_ascii(out=buf, invert=True)
    return buf.getvalue()
