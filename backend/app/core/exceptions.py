# backend/app/core/exceptions.py
"""
Error taxonomy for the account & session service.

Every failure the service reports to a caller is one of these classes.
Persistence errors never escape raw: they are translated to ServiceError.
The HTTP layer maps each class to a status code via ``status_code``.
"""
from typing import Optional


class AuthError(Exception):
    """Base class for errors reported to API callers."""

    status_code: int = 400
    error: str = "Request failed"
    message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AuthError, ValueError):
    """Malformed email, password or API key. Names the offending field."""

    status_code = 400
    error = "Validation failed"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class DuplicateAccountError(AuthError):
    status_code = 400
    error = "Registration failed"
    message = "An account with this email already exists"


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password. The two cases are never distinguished."""

    status_code = 401
    error = "Login failed"
    message = "Invalid email or password"


class UnauthenticatedError(AuthError):
    status_code = 401
    error = "Authentication required"
    message = "No session provided"


class InvalidSessionError(AuthError):
    status_code = 401
    error = "Invalid session"
    message = "Session expired or invalid"


class RateLimitedError(AuthError):
    status_code = 429
    error = "Too many authentication attempts"
    message = "Please try again later"

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__()


class ServiceError(AuthError):
    """Infrastructure fault. Details are logged server-side only."""

    status_code = 500
    error = "Internal server error"
    message = "Something went wrong. Please try again."
