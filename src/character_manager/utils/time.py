"""Time helpers."""

from __future__ import annotations

import math
from datetime import datetime, timezone

# Epoch values above this are taken as milliseconds.
_EPOCH_MILLIS_THRESHOLD = 10**11


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def parse_timestamp(value: object) -> datetime | None:
    """Parse a host timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (with or without ``Z``), ``YYYY-MM-DD HH:MM:SS``
    strings, and epoch numbers in seconds or milliseconds. Returns ``None``
    when the value cannot be interpreted. Naive values are taken as UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        seconds = value / 1000 if abs(value) > _EPOCH_MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.isascii() and text.isdigit():
        try:
            return parse_timestamp(int(text))
        except ValueError:
            return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
