# backend/app/api/deps.py
"""
Request gate: session lookup and auth rate limiting as FastAPI dependencies.

The session token is read from the ``X-Session-Id`` header first, then the
``sessionId`` cookie. Validity is checked against the database on every
request; nothing is cached between requests.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    InvalidSessionError,
    ServiceError,
    UnauthenticatedError,
)
from backend.app.db.base import AsyncSessionLocal
from backend.app.models.account import Account
from backend.app.security.rate_limit import SlidingWindowRateLimiter
from backend.app.services.auth_service import AuthService

logger = logging.getLogger(__name__)


@lru_cache()
def get_auth_service() -> AuthService:
    return AuthService(AsyncSessionLocal, settings)


@lru_cache()
def get_rate_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(
        max_attempts=settings.AUTH_RATE_LIMIT_ATTEMPTS,
        window_seconds=settings.AUTH_RATE_LIMIT_WINDOW_MINUTES * 60,
    )


@dataclass(frozen=True)
class CurrentAccount:
    """Identity attached to an authenticated request."""

    id: int
    email: str
    has_secret: bool
    session_token: str

    @classmethod
    def from_account(cls, account: Account, token: str) -> "CurrentAccount":
        return cls(
            id=account.id,
            email=account.email,
            has_secret=account.has_secret,
            session_token=token,
        )


def get_session_token(request: Request) -> Optional[str]:
    """Extract the session token from the header or the cookie."""
    token = request.headers.get(settings.SESSION_HEADER_NAME)
    if token:
        return token.strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


def client_address(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def require_session(
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> CurrentAccount:
    token = get_session_token(request)
    if not token:
        raise UnauthenticatedError()

    account = await service.validate_session(token)
    if account is None:
        raise InvalidSessionError()

    current = CurrentAccount.from_account(account, token)
    request.state.account = current
    return current


async def optional_session(
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> Optional[CurrentAccount]:
    """Like require_session, but a missing or bad token just means anonymous."""
    token = get_session_token(request)
    if not token:
        return None

    try:
        account = await service.validate_session(token)
    except ServiceError:
        logger.warning("Session lookup failed, continuing unauthenticated")
        return None
    if account is None:
        return None

    current = CurrentAccount.from_account(account, token)
    request.state.account = current
    return current


async def auth_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> None:
    """Throttle register/login per client address before any auth logic runs."""
    limiter.hit(client_address(request))
