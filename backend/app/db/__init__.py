import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


def ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return
    if not url.database or url.database == ":memory:":
        return
    data_dir = Path(url.database).expanduser().resolve().parent
    if not data_dir.exists():
        data_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Created data directory %s", data_dir)


async def init_models(bind: Optional[AsyncEngine] = None, drop_existing: bool = False) -> None:
    """Create all tables on ``bind`` (the application engine by default)."""
    from backend.app.db.base import Base, engine
    from backend.app import models  # noqa: F401  registers tables on Base.metadata

    bind = bind or engine
    ensure_sqlite_directory(str(bind.url))

    try:
        async with bind.begin() as conn:
            if drop_existing:
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema initialized")
    except Exception:
        logger.exception("Error initializing database schema")
        raise
