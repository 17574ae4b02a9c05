"""Lightweight validation helpers shared by the domain models."""

import re
from datetime import datetime
from typing import Any

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def ensure_present(value: Any, field: str) -> None:
    """Raise ValueError if value is falsy."""
    if value in (None, "", []):
        raise ValueError(f"{field} is required")


def is_blank(value: Any) -> bool:
    """True for None and strings containing only whitespace."""
    return value is None or (isinstance(value, str) and not value.strip())


def is_valid_email(email: str) -> bool:
    """Check the `local@domain.tld` shape without any DNS lookups."""
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def parse_date(value: str) -> datetime:
    """
    Parse a calendar date or ISO-8601 timestamp.

    Accepts `YYYY-MM-DD` as well as full timestamps with a trailing `Z`,
    which is how the billing exports write UTC.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def is_valid_date(value: Any) -> bool:
    """Return True when value parses to a real calendar date."""
    if isinstance(value, datetime):
        return True
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def is_non_negative_number(value: Any) -> bool:
    """Numbers only; booleans are rejected even though they subclass int."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value >= 0
