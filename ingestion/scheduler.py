import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.config import settings
from core.database import async_session_maker, write_lock
from core.exceptions import ETLException
from export.institution_loader import InstitutionLoader
from merge.engine import MergeEngine

logger = logging.getLogger(__name__)


class BuildScheduler:
    """Rebuilds the canonical table and pushes it downstream on an interval"""

    def __init__(self, interval_minutes: Optional[int] = None, push: bool = True):
        self.scheduler = AsyncIOScheduler()
        self.interval_minutes = interval_minutes or settings.BUILD_INTERVAL_MINUTES
        self.push = push and bool(settings.TARGET_DATABASE_URL)
        self.SessionLocal = async_session_maker

    async def run_build_job(self) -> bool:
        """Job to build (and optionally push) the canonical table"""
        logger.info("Scheduler: Starting build job")
        async with write_lock, self.SessionLocal() as session:
            try:
                built = await MergeEngine(session).build()
                if not built:
                    logger.warning("Scheduler: build skipped, uploads incomplete")
                    return False

                if self.push:
                    count = await InstitutionLoader(session).push()
                    logger.info(f"Scheduler: pushed {count} institutions")
                return True
            except ETLException as e:
                logger.error(f"Scheduler: build job failed - {e}", extra={"error_context": e.to_dict()})
                return False

    def start(self):
        """Start the scheduler"""
        if not self.interval_minutes:
            logger.info("Build scheduler disabled")
            return

        self.scheduler.add_job(
            self.run_build_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="build_job",
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self.scheduler.start()
        logger.info(f"Build scheduler started, every {self.interval_minutes} minutes")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Build scheduler stopped")
