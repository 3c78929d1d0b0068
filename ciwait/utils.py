"""Utility functions for parsing setting values."""

import re

__all__ = [
    "parse_bool",
    "parse_int",
]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_bool(value: str | None) -> bool | None:
    """Parse a boolean setting.

    Accepts 1/0 and the aliases true/false, yes/no, on/off (case insensitive).
    Returns None for anything else so the caller can fall back to a default.
    """
    if value is None:
        return None
    s = value.strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return None


def parse_int(value: str | None) -> int | None:
    """Parse a non-negative integer setting, None if it is not one."""
    if value is None:
        return None
    s = value.strip().replace("_", "")
    m = re.match(r"^(\d+)$", s)
    if m:
        return int(m.group(1))
    return None

