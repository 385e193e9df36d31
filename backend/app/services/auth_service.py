# backend/app/services/auth_service.py
"""
Account & session authentication service.

The single authority for identity, credentials and the stored provider
API key. Routes, the request gate and the cleanup job all go through it;
nothing else hashes passwords, compares them or touches the secret column.

Every operation runs in its own unit of work: one AsyncSession, one
transaction. Any SQLAlchemy error is logged with detail and re-raised as
ServiceError; nothing is retried.
"""
import logging
import secrets
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Callable, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from backend.app.core.config import Settings, get_settings
from backend.app.core.exceptions import (
    DuplicateAccountError,
    InvalidCredentialsError,
    ServiceError,
)
from backend.app.models.account import Account
from backend.app.security import hashing, policy
from backend.app.security.secret_box import SecretCipher
from backend.app.stores import AccountStore, SessionStore

logger = logging.getLogger(__name__)

SESSION_TOKEN_BYTES = 32


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_session_token() -> str:
    return secrets.token_hex(SESSION_TOKEN_BYTES)


@dataclass(frozen=True)
class AccountView:
    """What callers are allowed to see of an account."""

    id: int
    email: str
    has_secret: bool

    @classmethod
    def from_account(cls, account: Account) -> "AccountView":
        return cls(id=account.id, email=account.email, has_secret=account.has_secret)


@dataclass(frozen=True)
class AuthResult:
    account: AccountView
    session_token: str
    message: str


class AuthService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Optional[Settings] = None,
        cipher: Optional[SecretCipher] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings or get_settings()
        self._session_factory = session_factory
        self._cipher = cipher or SecretCipher.from_settings(self.settings)
        self._clock = clock

    @property
    def session_lifetime(self) -> timedelta:
        return timedelta(days=self.settings.SESSION_LIFETIME_DAYS)

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[Tuple[AccountStore, SessionStore]]:
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    yield AccountStore(db), SessionStore(db)
        except SQLAlchemyError as exc:
            logger.exception("Database operation failed: %s", exc)
            raise ServiceError() from exc

    async def _open_session(self, sessions: SessionStore, account_id: int, now: datetime) -> str:
        token = new_session_token()
        await sessions.add(token, account_id, now + self.session_lifetime, now)
        return token

    # ─────────────────────────────────────────────────────────────
    # Registration & login
    # ─────────────────────────────────────────────────────────────

    async def register(self, email: str, password: str) -> AuthResult:
        """
        Create an account and log it in.

        Raises ValidationError for a malformed email or weak password and
        DuplicateAccountError when the normalized email is taken. The
        account and its first session are written in one transaction.
        """
        email = policy.check_email(email)
        policy.check_password_strength(password)

        # Hash before taking a connection: bcrypt is slow on purpose
        password_hash = await run_in_threadpool(
            hashing.get_password_hash, password, self.settings.BCRYPT_ROUNDS
        )
        now = self._clock()

        async with self._unit_of_work() as (accounts, sessions):
            if await accounts.email_exists(email):
                raise DuplicateAccountError()
            try:
                account = await accounts.add(email, password_hash, now)
            except IntegrityError:
                # Lost a race with a concurrent registration for the same email
                raise DuplicateAccountError() from None

            token = await self._open_session(sessions, account.id, now)

        logger.info("Registered account %s", account.id)
        return AuthResult(
            account=AccountView.from_account(account),
            session_token=token,
            message="Account created successfully",
        )

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Verify credentials and issue a new session.

        Unknown email and wrong password raise the same
        InvalidCredentialsError.
        """
        if not email or not password:
            raise InvalidCredentialsError()

        email = policy.normalize_email(email)
        async with self._unit_of_work() as (accounts, _):
            account = await accounts.get_by_email(email)

        if account is None:
            await run_in_threadpool(
                hashing.burn_verification, password, self.settings.BCRYPT_ROUNDS
            )
            raise InvalidCredentialsError()

        if not await run_in_threadpool(
            hashing.verify_password, password, account.password_hash
        ):
            logger.info("Failed login for account %s", account.id)
            raise InvalidCredentialsError()

        now = self._clock()
        async with self._unit_of_work() as (accounts, sessions):
            # Re-read: the account may have been removed while hashing
            account = await accounts.get(account.id)
            if account is None:
                raise InvalidCredentialsError()
            await accounts.touch(account, now)
            token = await self._open_session(sessions, account.id, now)

        logger.info("Account %s logged in", account.id)
        return AuthResult(
            account=AccountView.from_account(account),
            session_token=token,
            message="Login successful",
        )

    # ─────────────────────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────────────────────

    async def validate_session(self, token: str) -> Optional[Account]:
        """Resolve a session token to its active account, or None."""
        if not token:
            return None

        now = self._clock()
        async with self._unit_of_work() as (accounts, sessions):
            # Expiry is fixed at creation; only last_active_at moves
            session = await sessions.get_valid(token, now)
            if session is None:
                return None

            account = await accounts.get(session.account_id)
            if account is None:
                return None

            await accounts.touch(account, now)

        return account

    async def logout(self, token: str) -> None:
        if not token:
            return
        async with self._unit_of_work() as (_, sessions):
            deleted = await sessions.delete(token)
        logger.debug("Logout removed %d session(s)", deleted)

    # ─────────────────────────────────────────────────────────────
    # Stored provider API key
    # ─────────────────────────────────────────────────────────────

    async def update_secret(self, account_id: int, secret: str) -> bool:
        api_key = policy.check_api_key(secret, self.settings.API_KEY_PREFIX)
        ciphertext = self._cipher.encrypt(api_key)

        async with self._unit_of_work() as (accounts, _):
            updated = await accounts.set_secret(account_id, ciphertext)

        if updated:
            logger.info("Updated API key for account %s", account_id)
        else:
            logger.warning("API key update for unknown account %s", account_id)
        return updated

    async def get_secret(self, account_id: int) -> Optional[str]:
        async with self._unit_of_work() as (accounts, _):
            ciphertext = await accounts.get_secret(account_id)

        try:
            return self._cipher.decrypt(ciphertext)
        except ValueError as exc:
            logger.error("Cannot decrypt API key for account %s: %s", account_id, exc)
            raise ServiceError() from exc

    # ─────────────────────────────────────────────────────────────
    # Cleanup sweeps
    # ─────────────────────────────────────────────────────────────

    async def cleanup_expired_sessions(self) -> int:
        now = self._clock()
        async with self._unit_of_work() as (_, sessions):
            removed = await sessions.delete_expired(now)
        logger.info("Cleaned up %d expired sessions", removed)
        return removed

    async def cleanup_inactive_accounts(self) -> int:
        """Hard-delete accounts unused for ACCOUNT_INACTIVITY_DAYS or more."""
        cutoff = self._clock() - timedelta(days=self.settings.ACCOUNT_INACTIVITY_DAYS)
        async with self._unit_of_work() as (accounts, sessions):
            orphaned = await sessions.delete_for_inactive_accounts(cutoff)
            removed = await accounts.delete_inactive(cutoff)
        logger.info(
            "Cleaned up %d inactive accounts (%d sessions)", removed, orphaned
        )
        return removed
