# backend/app/models/session.py
"""
Server-side login sessions.

The token is the primary key and doubles as the bearer credential handed
to the client in the ``sessionId`` cookie. Expiry is fixed at creation and
never extended.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from backend.app.db.base import Base
from backend.app.models.account import utcnow


class AuthSession(Base):
    __tablename__ = "sessions"

    # 32 random bytes, hex-encoded
    token = Column(String(64), primary_key=True)

    account_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    account = relationship("Account", back_populates="sessions")

    def __repr__(self):
        return f"<AuthSession(account_id={self.account_id}, expires_at={self.expires_at})>"
