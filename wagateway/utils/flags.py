"""Helpers for loosely-typed flags arriving in URL paths."""

_FALSY = {"", "false", "0"}


def parse_flag(value: str | None) -> bool:
    """
    Interpret a path segment as a boolean.

    Only an empty string, "false" or "0" (case-insensitive) is false;
    anything else counts as true.
    """
    if value is None:
        return False
    return value.strip().lower() not in _FALSY
