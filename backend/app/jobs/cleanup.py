"""
Daily cleanup of expired sessions and abandoned accounts.

- run_cleanup_now(): one pass, errors propagate (manual/operational use)
- CleanupScheduler: APScheduler cron job that runs the same pass once a
  day at a fixed UTC time; a failed pass is logged and the next day's run
  still happens

Run a pass by hand with:
    python -m backend.app.jobs.cleanup
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from backend.app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "daily-cleanup"


@dataclass(frozen=True)
class CleanupReport:
    expired_sessions: int
    inactive_accounts: int


async def run_cleanup_now(service: AuthService) -> CleanupReport:
    """Sweep expired sessions, then inactive accounts."""
    logger.info("Running cleanup...")
    expired_sessions = await service.cleanup_expired_sessions()
    inactive_accounts = await service.cleanup_inactive_accounts()
    report = CleanupReport(expired_sessions, inactive_accounts)
    logger.info(
        "Cleanup completed: %d sessions, %d accounts",
        report.expired_sessions,
        report.inactive_accounts,
    )
    return report


class CleanupScheduler:
    def __init__(self, service: AuthService, hour: int = 2, minute: int = 0):
        self.service = service
        self.hour = hour
        self.minute = minute
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def job(self):
        if self._scheduler is None:
            return None
        return self._scheduler.get_job(CLEANUP_JOB_ID)

    async def run_once(self) -> Optional[CleanupReport]:
        """One scheduled pass. Never raises."""
        try:
            return await run_cleanup_now(self.service)
        except Exception:
            logger.exception("Cleanup job failed")
            return None

    def start(self) -> None:
        # Needs a running event loop (called from the app lifespan)
        if self.running:
            logger.warning("Cleanup scheduler already running")
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self.run_once,
            "cron",
            hour=self.hour,
            minute=self.minute,
            timezone=timezone.utc,
            id=CLEANUP_JOB_ID,
            replace_existing=True,
            # A late run still happens, once
            coalesce=True,
            misfire_grace_time=3600,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "Daily cleanup job scheduled (runs at %02d:%02d UTC)", self.hour, self.minute
        )

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Cleanup scheduler stopped")


async def _main() -> None:
    from backend.app.core.config import settings
    from backend.app.db import init_models
    from backend.app.db.base import AsyncSessionLocal, engine

    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    await init_models()
    try:
        await run_cleanup_now(AuthService(AsyncSessionLocal, settings))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(_main())
