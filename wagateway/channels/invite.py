"""Invite link helpers."""

INVITE_BASE_URL = "https://chat.whatsapp.com/"


def normalize_invite_code(code_or_url: str) -> str:
    """Strip the invite URL prefix, leaving the bare code."""
    code = code_or_url.strip()
    if code.startswith(INVITE_BASE_URL):
        code = code[len(INVITE_BASE_URL):]
    return code.strip("/")


def build_invite_link(code: str) -> str:
    """Prefix a code with the invite URL (normalizing first so it is never doubled)."""
    return f"{INVITE_BASE_URL}{normalize_invite_code(code)}"
