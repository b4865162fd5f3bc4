"""
Credential format rules shared by registration and login.

Usernames are restricted to an allow-list of ASCII letters, digits, and
underscores (1-64 characters). Passwords may contain anything but must
be 1-128 characters long. Each validator returns ``(is_valid, error)``
so callers can decide how to surface the message.
"""

from __future__ import annotations

import re

USERNAME_MAX_LENGTH = 64
PASSWORD_MAX_LENGTH = 128

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")

INVALID_USERNAME_MESSAGE = (
    f"Invalid username. Usernames must be 1-{USERNAME_MAX_LENGTH} characters "
    "of letters, digits, or underscores"
)
INVALID_PASSWORD_MESSAGE = (
    f"Invalid password. Passwords must be 1-{PASSWORD_MAX_LENGTH} characters"
)


def validate_username(value: object) -> tuple[bool, str | None]:
    """
    Check a candidate username against the allow-list.

    Args:
        value: Raw value taken from the request.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not isinstance(value, str) or not value:
        return False, INVALID_USERNAME_MESSAGE
    if len(value) > USERNAME_MAX_LENGTH:
        return False, INVALID_USERNAME_MESSAGE
    # fullmatch so that a trailing newline or space never slips through
    if USERNAME_PATTERN.fullmatch(value) is None:
        return False, INVALID_USERNAME_MESSAGE
    return True, None


def validate_password(value: object) -> tuple[bool, str | None]:
    """Check a candidate password's length."""
    if not isinstance(value, str) or not value:
        return False, INVALID_PASSWORD_MESSAGE
    if len(value) > PASSWORD_MAX_LENGTH:
        return False, INVALID_PASSWORD_MESSAGE
    return True, None


def validate_credentials(username: object, password: object) -> tuple[bool, str | None]:
    """Validate both fields, reporting the first failure."""
    is_valid, error = validate_username(username)
    if not is_valid:
        return is_valid, error
    return validate_password(password)
