"""
Shared validation functions for Pydantic schemas.

Used by both the signup and profile-update schemas so the two entry points
accept exactly the same field formats.
"""
import re
from urllib.parse import urlparse

# Username format: letters, digits and underscores (e.g., 'jane_doe', 'user42')
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,30}$")

MIN_PASSWORD_LENGTH = 8
# bcrypt ignores everything past 72 bytes; stay well below it
MAX_PASSWORD_LENGTH = 64

MAX_NAME_LENGTH = 50
MAX_BIO_LENGTH = 500
MAX_LOCATION_LENGTH = 100
MAX_URL_LENGTH = 2048


def validate_username(value: str | None) -> str | None:
    """Validate username format, returning the trimmed value."""
    if value is None:
        return None
    value = value.strip()
    if not USERNAME_PATTERN.match(value):
        raise ValueError(
            "Username must be 3-30 characters and contain only letters, numbers, "
            "and underscores",
        )
    return value


def validate_password_strength(value: str) -> str:
    """
    Require a minimum length and a mix of lowercase, uppercase, and digits.

    Raises:
        ValueError: If the password does not meet the policy.
    """
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(value.encode("utf-8")) > MAX_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_LENGTH} bytes")
    if not (
        re.search(r"[a-z]", value)
        and re.search(r"[A-Z]", value)
        and re.search(r"\d", value)
    ):
        raise ValueError("Password must contain uppercase, lowercase, and a number")
    return value


def validate_name(value: str | None, field: str) -> str | None:
    """Validate a first/last name: 1-50 characters after trimming."""
    if value is None:
        return None
    value = value.strip()
    if not value or len(value) > MAX_NAME_LENGTH:
        raise ValueError(f"{field} must be 1-{MAX_NAME_LENGTH} characters")
    return value


def validate_optional_text(value: str | None, field: str, max_length: int) -> str | None:
    """Trim free text; empty strings clear the field."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValueError(f"{field} must be less than {max_length} characters")
    return value


def validate_optional_url(value: str | None, field: str) -> str | None:
    """Require an absolute http(s) URL; empty strings clear the field."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > MAX_URL_LENGTH:
        raise ValueError(f"{field} must be at most {MAX_URL_LENGTH} characters")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field} must be a valid URL")
    return value


def username_from_email(email: str) -> str:
    """
    Derive a default username from the local part of an email.

    Characters outside the username alphabet become underscores and the
    result is padded or truncated to fit the allowed length.
    """
    local = re.sub(r"[^A-Za-z0-9_]", "_", email.split("@")[0])
    return local.ljust(3, "_")[:30]
