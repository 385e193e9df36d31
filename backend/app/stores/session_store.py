# backend/app/stores/session_store.py
from datetime import datetime
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.account import Account
from backend.app.models.session import AuthSession


class SessionStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(
        self, token: str, account_id: int, expires_at: datetime, now: datetime
    ) -> AuthSession:
        session = AuthSession(
            token=token,
            account_id=account_id,
            expires_at=expires_at,
            created_at=now,
        )
        self.db.add(session)
        await self.db.flush()
        return session

    async def get_valid(self, token: str, now: datetime) -> Optional[AuthSession]:
        result = await self.db.execute(
            select(AuthSession).where(
                AuthSession.token == token,
                AuthSession.expires_at > now,  # expired at exactly expires_at
            )
        )
        return result.scalars().first()

    async def delete(self, token: str) -> int:
        result = await self.db.execute(
            delete(AuthSession)
            .where(AuthSession.token == token)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def delete_expired(self, now: datetime) -> int:
        result = await self.db.execute(
            delete(AuthSession)
            .where(AuthSession.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def delete_for_inactive_accounts(self, cutoff: datetime) -> int:
        inactive_ids = select(Account.id).where(Account.last_active_at <= cutoff)
        result = await self.db.execute(
            delete(AuthSession)
            .where(AuthSession.account_id.in_(inactive_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
