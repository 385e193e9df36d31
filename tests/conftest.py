"""Pytest configuration and fixtures for the account & session backend."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backend.app.api import deps
from backend.app.core.config import Settings
from backend.app.db import init_models
from backend.app.db.session import enable_sqlite_foreign_keys
from backend.app.main import create_app
from backend.app.models import Account, AuthSession
from backend.app.security.rate_limit import SlidingWindowRateLimiter
from backend.app.services.auth_service import AuthService


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def test_settings():
    return Settings(
        BCRYPT_ROUNDS=4,
        SECRET_KEY="test-secret-key",
        SECRET_ENCRYPTION_KEY="",
        CLEANUP_ENABLED=False,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def auth_service(session_factory, test_settings, clock):
    return AuthService(session_factory, test_settings, clock=clock)


@pytest.fixture
def rate_limiter():
    return SlidingWindowRateLimiter(max_attempts=10, window_seconds=15 * 60)


@pytest_asyncio.fixture
async def client(auth_service, rate_limiter):
    app = create_app(use_lifespan=False)
    app.dependency_overrides[deps.get_auth_service] = lambda: auth_service
    app.dependency_overrides[deps.get_rate_limiter] = lambda: rate_limiter

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def count_rows(session_factory):
    """Count rows of a model, optionally filtered."""

    async def _count(model, *criteria):
        async with session_factory() as db:
            query = select(func.count()).select_from(model)
            if criteria:
                query = query.where(*criteria)
            result = await db.execute(query)
            return result.scalar_one()

    return _count


@pytest.fixture
def load_account(session_factory):
    async def _load(account_id):
        async with session_factory() as db:
            return await db.get(Account, account_id)

    return _load


@pytest.fixture
def load_session(session_factory):
    async def _load(token):
        async with session_factory() as db:
            return await db.get(AuthSession, token)

    return _load
