"""
Pipeline Orchestrator - one scoring pass

Fetches the population snapshot, runs the scoring engine, persists scores
and optionally exports the scored farms. A population that cannot be read
fails the pass; the scheduler retries on its next cadence.
"""

import logging
from datetime import datetime
from typing import Optional

from ..extract.farms_api import FarmsAPIClient
from ..load.local_storage import FarmDocumentStore, save_scored_farms
from .engine import PopulationSource, SafetyScoringEngine, ScoreWriter, ScoringPass
from .settings import ScoringSettings

logger = logging.getLogger(__name__)


class ScoringOrchestrator:
    """Wires a population source, a score writer and the scoring engine"""

    def __init__(
        self,
        source: PopulationSource,
        writer: Optional[ScoreWriter] = None,
        engine: Optional[SafetyScoringEngine] = None,
        dry_run: bool = False,
        export_dir: Optional[str] = None,
    ):
        """
        Initialize the scoring orchestrator

        Args:
            source: Provides the farm population snapshot
            writer: Receives per-farm scores (ignored in dry run)
            engine: Scoring engine (default rules and weights if not provided)
            dry_run: If true, compute scores without persisting them
            export_dir: If set, export scored farms to Parquet + JSON there
        """
        self.source = source
        self.writer = writer
        self.engine = engine or SafetyScoringEngine()
        self.dry_run = dry_run
        self.export_dir = export_dir
        self.last_run: Optional[datetime] = None

        if self.dry_run:
            logger.info("🔍 DRY RUN MODE: scores will not be persisted")

    def run_scoring_pass(self) -> ScoringPass:
        """
        Run one complete scoring pass

        Returns:
            ScoringPass: Scored frame and report

        Raises:
            PopulationFetchError: If the population cannot be read
            PersistError: If pending writes cannot be flushed
        """
        logger.info("🚀 Starting scoring pass")

        # Step 1: Read the population snapshot
        logger.info("🔄 Step 1: Fetching farm population...")
        documents = self.source.fetch_population()
        logger.info(f"✅ Fetched {len(documents)} farm documents")

        # Step 2: Score and persist
        logger.info("🔄 Step 2: Scoring farms...")
        writer = None if self.dry_run else self.writer
        scoring_pass = self.engine.run(documents, writer)

        # Step 3: Flush buffered writes
        flush = getattr(writer, "flush", None)
        if callable(flush):
            logger.info("💾 Step 3: Flushing score updates...")
            flush()

        # Step 4: Export
        if self.export_dir:
            logger.info("🔄 Step 4: Exporting scored farms...")
            save_scored_farms(scoring_pass.scored_df, self.export_dir)

        self.last_run = datetime.now()
        report = scoring_pass.report
        if report.failed:
            logger.warning(
                f"⚠️ Scoring pass finished with {len(report.failed)} failed writes"
            )
        else:
            logger.info("🎉 Scoring pass completed successfully!")
        return scoring_pass

    def get_pipeline_status(self) -> dict:
        return {
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "dry_run": self.dry_run,
            "source": type(self.source).__name__,
            "writer": type(self.writer).__name__ if self.writer else None,
            "export_dir": self.export_dir,
        }


def create_orchestrator(
    settings: ScoringSettings,
    dry_run: bool = False,
) -> ScoringOrchestrator:
    """
    Build an orchestrator from settings

    The farm store is always the writer. It is also the source unless a
    farms API URL is configured.

    Args:
        settings: Runtime settings
        dry_run: If True, don't persist scores

    Returns:
        ScoringOrchestrator: Ready to run
    """
    store = FarmDocumentStore(settings.farm_store_path)
    source = FarmsAPIClient(settings.farms_api_url) if settings.farms_api_url else store

    engine = SafetyScoringEngine(
        rules=settings.eligibility_rules(),
        fixed_base_apr_assets=settings.fixed_base_apr_assets,
        persist_retry_attempts=settings.persist_retry_attempts,
        persist_retry_delay=settings.persist_retry_delay,
    )
    return ScoringOrchestrator(
        source=source,
        writer=store,
        engine=engine,
        dry_run=dry_run,
        export_dir=settings.export_dir,
    )
