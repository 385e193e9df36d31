# backend/app/db/base.py
"""
SQLAlchemy declarative base and re-exports.

This module defines the Base class for all ORM models and re-exports
database session components from db/session.py.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Usage:
        class Account(Base):
            __tablename__ = "accounts"
            id = Column(Integer, primary_key=True)
            ...
    """
    pass


from backend.app.db.session import (  # noqa: E402
    engine,
    AsyncSessionLocal,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
]
