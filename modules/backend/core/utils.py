"""
Core Utilities.

Small helpers shared across the backend.
"""

from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    Timestamps are stored naive and assumed to be UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


_FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})


def coerce_bool(value: Any) -> bool:
    """
    Read a loosely typed flag as a bool.

    Form-style strings ("", "0", "false", "no", "off") are False, any other
    string is True; everything else goes through bool().
    """
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)
