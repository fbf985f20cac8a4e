"""
Input validation for the authentication flows.

All checks raise BadRequestError before any persistence I/O happens, so a
malformed request never reaches the database.
"""

import re
from typing import Any, List

from email_validator import EmailNotValidError, validate_email as check_email_syntax

from app.core.config import settings
from app.core.errors import BadRequestError

MAX_EMAIL_LENGTH = 320
MIN_RESET_TOKEN_LENGTH = 32
SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_email(email: Any) -> str:
    """Check email shape and return it lower-cased."""
    if _is_blank(email):
        raise BadRequestError("Email is required")
    if not isinstance(email, str):
        raise BadRequestError("Email must be a string")

    email = email.strip()
    if len(email) > MAX_EMAIL_LENGTH:
        raise BadRequestError("Email address too long")

    try:
        check_email_syntax(email, check_deliverability=False)
    except EmailNotValidError:
        raise BadRequestError("Invalid email format")

    return email.lower()


def password_policy_errors(password: str) -> List[str]:
    """
    Collect every policy violation for a password.

    The order is fixed (length, uppercase, lowercase, number, special,
    blocked pattern) so the same input always yields the same list.
    """
    errors = []
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long.")
    if settings.PASSWORD_REQUIRE_UPPERCASE and not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter.")
    if settings.PASSWORD_REQUIRE_LOWERCASE and not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter.")
    if settings.PASSWORD_REQUIRE_NUMBERS and not re.search(r"\d", password):
        errors.append("Password must contain at least one number.")
    if settings.PASSWORD_REQUIRE_SPECIAL and not SPECIAL_CHARACTERS.search(password):
        errors.append("Password must contain at least one special character.")

    lowered = password.lower()
    if any(pattern in lowered for pattern in settings.PASSWORD_BLOCKED_PATTERNS):
        errors.append("Password contains common weak patterns.")

    return errors


def validate_password(password: Any) -> None:
    if _is_blank(password):
        raise BadRequestError("Password is required")
    if not isinstance(password, str):
        raise BadRequestError("Password must be a string")

    errors = password_policy_errors(password)
    if errors:
        raise BadRequestError(f"Password validation failed: {' '.join(errors)}")


def validate_username(username: Any) -> str:
    if _is_blank(username):
        raise BadRequestError("Username is required")
    if not isinstance(username, str):
        raise BadRequestError("Username must be a string")
    username = username.strip()
    if len(username) < 3 or len(username) > 50:
        raise BadRequestError("Username must be between 3 and 50 characters long.")
    return username


def validate_otp_format(otp: Any) -> None:
    if _is_blank(otp):
        raise BadRequestError("OTP is required")
    if not isinstance(otp, str):
        raise BadRequestError("OTP must be a string")
    if not re.fullmatch(rf"\d{{{settings.OTP_LENGTH}}}", otp):
        raise BadRequestError(f"OTP must be a {settings.OTP_LENGTH}-digit number.")


def validate_reset_token(reset_token: Any) -> None:
    if _is_blank(reset_token):
        raise BadRequestError("Reset token is required")
    if not isinstance(reset_token, str):
        raise BadRequestError("Reset token must be a string")
    if len(reset_token) < MIN_RESET_TOKEN_LENGTH:
        raise BadRequestError(f"Reset token must be at least {MIN_RESET_TOKEN_LENGTH} characters")


def validate_refresh_token(refresh_token: Any) -> None:
    if refresh_token is None:
        raise BadRequestError("Refresh token is required")
    if not isinstance(refresh_token, str):
        raise BadRequestError("Refresh token must be a string")
    if not refresh_token.strip():
        raise BadRequestError("Refresh token is required")
