"""
Scheduler - Orchestration Layer

Runs a scoring pass on a fixed cadence. A failed pass is logged and left
for the next cadence; it is never retried in-process.
"""

import schedule
import time
from typing import Optional

from ..coreutils.errors import PersistError, PopulationFetchError
from .engine import ScoringPass
from .pipeline import ScoringOrchestrator
import logging

logger = logging.getLogger(__name__)


class ScoringScheduler:
    """Periodic scoring passes"""

    def __init__(
        self,
        orchestrator: ScoringOrchestrator,
        interval_minutes: int = 60,
        poll_seconds: float = 1.0,
    ):
        self.orchestrator = orchestrator
        self.interval_minutes = interval_minutes
        self.poll_seconds = poll_seconds
        self.scheduler = schedule.Scheduler()
        self.running = False

    def run_scoring_job(self) -> Optional[ScoringPass]:
        """Run one pass; failures are logged, never raised"""
        try:
            return self.orchestrator.run_scoring_pass()
        except PopulationFetchError as e:
            logger.error(f"❌ Could not read farm population, retrying next cycle: {e}")
        except PersistError as e:
            logger.error(f"❌ Could not persist scores, retrying next cycle: {e}")
        except Exception:
            logger.exception("❌ Scoring pass failed, retrying next cycle")
        return None

    def start(self, run_immediately: bool = True):
        """Start the scheduler"""
        logger.info("🚀 Starting scoring scheduler...")

        self.scheduler.every(self.interval_minutes).minutes.do(self.run_scoring_job)
        self.running = True
        logger.info(f"📅 Scheduler started - every {self.interval_minutes} minutes")

        if run_immediately:
            self.run_scoring_job()

        try:
            while self.running:
                self.scheduler.run_pending()
                time.sleep(self.poll_seconds)

        except KeyboardInterrupt:
            logger.info("🛑 Scheduler stopped by user")
            self.running = False

    def stop(self):
        """Stop the scheduler"""
        logger.info("🛑 Stopping scheduler...")
        self.running = False
        self.scheduler.clear()


def create_scheduler(
    orchestrator: ScoringOrchestrator, interval_minutes: int = 60
) -> ScoringScheduler:
    return ScoringScheduler(orchestrator, interval_minutes=interval_minutes)
