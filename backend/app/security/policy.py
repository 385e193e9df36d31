# backend/app/security/policy.py
"""
Input rules for emails, passwords and provider API keys.

Each check raises ValidationError (a ValueError) naming the field, so the
same functions serve both the pydantic request schemas and the service.
"""
import re
import string

from email_validator import EmailNotValidError, validate_email

from backend.app.core.exceptions import ValidationError

PASSWORD_MIN_LENGTH = 8
# bcrypt only reads the first 72 bytes of its input
PASSWORD_MAX_BYTES = 72
PASSWORD_SYMBOLS = "@$!%*?&"

API_KEY_MAX_LENGTH = 512

PASSWORD_RULES_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one number, and one special character"
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_email(email: str) -> str:
    """Validate email syntax and return the normalized address."""
    if not email or not email.strip():
        raise ValidationError("email", "Email is required")
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("email", "Please provide a valid email address") from None
    return normalize_email(email)


def check_password_strength(password: str) -> str:
    if not password:
        raise ValidationError("password", "Password is required")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            "password",
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
        )
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(
            "password", f"Password must be at most {PASSWORD_MAX_BYTES} bytes long"
        )

    has_lower = any(c in string.ascii_lowercase for c in password)
    has_upper = any(c in string.ascii_uppercase for c in password)
    has_digit = any(c in string.digits for c in password)
    has_symbol = any(c in PASSWORD_SYMBOLS for c in password)
    if not (has_lower and has_upper and has_digit and has_symbol):
        raise ValidationError("password", PASSWORD_RULES_MESSAGE)
    return password


def check_api_key(api_key: str, prefix: str = "sk-") -> str:
    """Validate the provider key shape: ``<prefix>`` followed by non-blank characters."""
    if not api_key:
        raise ValidationError("api_key", "API key is required")
    api_key = api_key.strip()
    if len(api_key) > API_KEY_MAX_LENGTH:
        raise ValidationError("api_key", "API key is too long")
    if not re.fullmatch(re.escape(prefix) + r"\S+", api_key):
        raise ValidationError(
            "api_key", f'Invalid API key format. API keys start with "{prefix}"'
        )
    return api_key
