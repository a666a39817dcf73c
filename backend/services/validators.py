"""
Input validation for form and query payloads.

Each helper returns the cleaned value or raises ``ValidationError``; callers
run them before touching any store so a rejected payload has no effects.
"""
import re
from datetime import date
from typing import Optional

from domain.errors import ValidationError

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,30}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ISBN_RE = re.compile(r"^[0-9]{0,12}[0-9X]$")

PASSWORD_MIN = 6
PASSWORD_MAX = 128
COMMENT_MAX = 1000
LETTER_MAX = 5000
TITLE_MAX = 255


def clean_username(raw: Optional[str]) -> str:
    value = (raw or "").strip()
    if not USERNAME_RE.match(value):
        raise ValidationError("Username must be 3-30 letters, digits or underscores")
    return value


def clean_password(raw: Optional[str]) -> str:
    # Passwords are compared verbatim, never stripped.
    value = raw or ""
    if not PASSWORD_MIN <= len(value) <= PASSWORD_MAX:
        raise ValidationError(f"Password must be {PASSWORD_MIN}-{PASSWORD_MAX} characters")
    return value


def clean_email(raw: Optional[str]) -> str:
    value = (raw or "").strip().lower()
    if len(value) > 255 or not EMAIL_RE.match(value):
        raise ValidationError("Invalid email address")
    return value


def normalize_isbn(raw: Optional[str]) -> str:
    """Strip separators and upper-case a trailing X check digit."""
    return re.sub(r"[\s-]", "", raw or "").upper()


def clean_isbn(raw: Optional[str]) -> str:
    value = normalize_isbn(raw)
    if not ISBN_RE.match(value):
        raise ValidationError("Invalid isbn")
    return value


def clean_text(raw: Optional[str], field: str, max_length: int = TITLE_MAX, required: bool = True) -> Optional[str]:
    value = (raw or "").strip()
    if not value:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return value


def parse_release_date(raw: Optional[str]) -> Optional[date]:
    value = (raw or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("release_date must be an ISO date (YYYY-MM-DD)")


def clean_rating(raw) -> int:
    try:
        rating = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("rating must be an integer between 1 and 5")
    if not 1 <= rating <= 5:
        raise ValidationError("rating must be an integer between 1 and 5")
    return rating
