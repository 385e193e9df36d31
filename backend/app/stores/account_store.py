# backend/app/stores/account_store.py
"""Credential store: the only code that reads or writes Account rows."""
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.account import Account


class AccountStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, account_id: int, active_only: bool = True) -> Optional[Account]:
        query = select(Account).where(Account.id == account_id)
        if active_only:
            query = query.where(Account.is_active == True)  # noqa: E712
        result = await self.db.execute(query)
        return result.scalars().first()

    async def get_by_email(self, email: str, active_only: bool = True) -> Optional[Account]:
        query = select(Account).where(Account.email == email)
        if active_only:
            query = query.where(Account.is_active == True)  # noqa: E712
        result = await self.db.execute(query)
        return result.scalars().first()

    async def email_exists(self, email: str) -> bool:
        result = await self.db.execute(select(Account.id).where(Account.email == email))
        return result.first() is not None

    async def add(self, email: str, password_hash: str, now: datetime) -> Account:
        account = Account(
            email=email,
            password_hash=password_hash,
            is_active=True,
            created_at=now,
            last_active_at=now,
        )
        self.db.add(account)
        # unique constraint fires here, id assigned
        await self.db.flush()
        return account

    async def touch(self, account: Account, now: datetime) -> None:
        account.last_active_at = now
        await self.db.flush()

    async def set_secret(self, account_id: int, secret: Optional[str]) -> bool:
        result = await self.db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(secret=secret)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def get_secret(self, account_id: int) -> Optional[str]:
        result = await self.db.execute(
            select(Account.secret).where(Account.id == account_id)
        )
        return result.scalar_one_or_none()

    async def delete_inactive(self, cutoff: datetime) -> int:
        result = await self.db.execute(
            delete(Account)
            .where(Account.last_active_at <= cutoff)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
