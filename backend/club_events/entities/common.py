"""Helpers shared by the entity value types."""
import random
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional

import pytz
from dateutil.parser import isoparse

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ISO_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\-_.@\s]")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_id() -> int:
    """Numeric record id: a random component plus the current epoch milliseconds."""
    return random.randrange(1_000_000_000) + int(time.time() * 1000)


def coerce_numeric_id(value: Any) -> Optional[int]:
    """Turn a URL/form id into the stored integer form; None when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_RE.match(value) is not None


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 datetime (date and time required). Naive values are read as UTC."""
    if not isinstance(value, str) or not ISO_DATETIME_RE.match(value):
        return None
    try:
        parsed = isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sanitize_text(value: Any) -> Any:
    """Keep letters, digits, '-', '_', '.', '@' and whitespace. Non-strings pass through."""
    if not isinstance(value, str):
        return value
    return _UNSAFE_CHARS.sub("", value)


def format_local(value: Any, tz_name: str = "UTC") -> str:
    """Human-readable rendering of an ISO timestamp in the given IANA zone."""
    parsed = parse_iso(value)
    if parsed is None:
        return str(value or "")
    local = parsed.astimezone(pytz.timezone(tz_name))
    return local.strftime("%a, %b %d %Y %I:%M %p %Z")
