"""
Core Utilities.

Shared utility functions used across the backend.
All modules should import utilities from this module.
"""

import re
import secrets
import string
from datetime import datetime, timezone
from uuid import UUID

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Honorifics dropped before comparing or storing speaker names
_TITLE_PATTERN = re.compile(r"^(dr|prof|mr|mrs|ms|shri)\.?\s+", re.IGNORECASE)

_BASE36 = string.digits + string.ascii_uppercase
_ALPHANUMERIC = string.ascii_letters + string.digits


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application are timezone-naive
    and assumed to be UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value.strip()) is not None


def is_valid_uuid(value: str | None) -> bool:
    if not value:
        return False
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def strip_title(name: str) -> str:
    """Remove a leading honorific (Dr, Prof, Mr, Mrs, Ms, Shri) from a name."""
    cleaned = name.strip()
    while True:
        stripped = _TITLE_PATTERN.sub("", cleaned, count=1)
        if stripped == cleaned:
            return cleaned
        cleaned = stripped.strip()


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def random_base36(length: int) -> str:
    """Random upper-case base36 string."""
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_token(length: int = 32) -> str:
    """Random alphanumeric token for emailed links."""
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))
