"""Validation utilities for user input.

Provides validation for:
- Usernames
- Password length
"""

import re
from typing import NamedTuple


# ==============================================================================
# Constants for validation rules
# ==============================================================================

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6

# Letters (any script), digits, underscore and hyphen
_USERNAME_PATTERN = re.compile(r"^[\w-]+$")


class ValidationResult(NamedTuple):
    """Result of a validation check."""

    valid: bool
    message: str | None = None


def validate_username(username: str) -> ValidationResult:
    """Validate a username.

    Requirements:
    - 3 to 20 characters after trimming
    - No whitespace or punctuation other than ``_`` and ``-``

    Examples:
        >>> validate_username("rizhi_lu")
        ValidationResult(valid=True, message=None)
        >>> validate_username("ab")
        ValidationResult(valid=False, message='Username must be 3-20 characters')
    """
    username = username.strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        return ValidationResult(
            False,
            f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters",
        )

    if not _USERNAME_PATTERN.match(username):
        return ValidationResult(
            False, "Username may only contain letters, digits, '_' and '-'"
        )

    return ValidationResult(True)


def validate_password(password: str) -> ValidationResult:
    """Validate password length.

    Examples:
        >>> validate_password("secret1")
        ValidationResult(valid=True, message=None)
        >>> validate_password("abc")
        ValidationResult(valid=False, message='Password must be at least 6 characters')
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        return ValidationResult(
            False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )

    return ValidationResult(True)
