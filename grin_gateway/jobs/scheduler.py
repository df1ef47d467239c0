"""Hourly reconciliation of pending GRIN payments"""

from datetime import datetime, timedelta

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore

from grin_gateway.config import (
    RECONCILIATION_INTERVAL_MINUTES,
    RECONCILIATION_LOOKBACK_HOURS,
)
from grin_gateway.database.database import sessionLocal
from grin_gateway.models.schemas.settings import GatewaySettings
from grin_gateway.services.exceptions import ConfigurationError
from grin_gateway.services.reconciliation import ReconciliationService
from grin_gateway.services.verification import build_oracle
from grin_gateway.utils.logging import get_logger

logger = get_logger(__name__)

RECONCILIATION_JOB_ID = "grin_reconciliation"


async def run_reconciliation_job(session_factory=sessionLocal) -> None:
    """One reconciliation pass over the last RECONCILIATION_LOOKBACK_HOURS"""
    try:
        settings = GatewaySettings.from_env()
    except ConfigurationError as e:
        logger.error(f"Skipping GRIN reconciliation: {e}")
        return

    db = session_factory()
    try:
        service = ReconciliationService(db, build_oracle(settings))
        await service.run_reconciliation_pass(
            now=datetime.now(pytz.UTC),
            lookback_window=timedelta(hours=RECONCILIATION_LOOKBACK_HOURS),
        )
    finally:
        db.close()


class ReconciliationScheduler:
    """Runs the reconciliation pass on a fixed interval"""

    def __init__(self, interval_minutes: int = RECONCILIATION_INTERVAL_MINUTES):
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 300,
            },
            timezone="UTC",
        )

    def setup_jobs(self):
        if self.scheduler.get_job(RECONCILIATION_JOB_ID):
            return

        self.scheduler.add_job(
            run_reconciliation_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=RECONCILIATION_JOB_ID,
            name="Reconcile pending GRIN payments",
            replace_existing=True,
        )
        logger.info(f"Scheduled GRIN reconciliation every {self.interval_minutes} minutes")

    def start(self):
        self.setup_jobs()
        self.scheduler.start()

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
