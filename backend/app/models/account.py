# backend/app/models/account.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship

from backend.app.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    __tablename__ = "accounts"
    # AUTOINCREMENT keeps SQLite from handing a deleted id to a new account
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Always stored lower-cased
    email = Column(String(255), unique=True, index=True, nullable=False)

    # bcrypt hash, never the plaintext
    password_hash = Column(String(255), nullable=False)

    # Provider API key, Fernet-encrypted. NULL until the user configures one.
    secret = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_active_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    sessions = relationship(
        "AuthSession",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def has_secret(self) -> bool:
        return self.secret is not None

    def __repr__(self):
        return f"<Account(id={self.id}, email={self.email})>"
