"""
Safety Scoring Engine

One stateless batch pass over a population snapshot:

    migrate score fields -> eligibility -> metric extraction
    -> sub-scorers -> weighted combiner -> population rescaler -> persist

The engine never reads or writes storage itself; it is handed the
documents and a writer.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol

import polars as pl

from ..transformation.composite import (
    DEFAULT_WEIGHTS,
    ScoreWeights,
    combine_scores,
    rescale_population,
)
from ..transformation.documents import extract_farm_metrics, read_identity
from ..transformation.eligibility import (
    EligibilityRules,
    filter_eligible,
    migrate_score_fields,
)
from ..transformation.models import (
    DiagnosticKind,
    FarmIdentity,
    FarmMetrics,
    MetricDiagnostic,
    ScoredFarm,
    ScoreSet,
    ScoringReport,
)
from ..transformation.schemas import SCORED_FARMS_SCHEMA
from ..transformation.scorers import (
    DEFAULT_FIXED_BASE_APR_ASSETS,
    build_metrics_frame,
    score_population,
)
import logging

logger = logging.getLogger(__name__)


class PopulationSource(Protocol):
    def fetch_population(self) -> List[Dict[str, Any]]: ...


class ScoreWriter(Protocol):
    def persist_score(self, identity: FarmIdentity, scores: ScoreSet) -> None: ...


@dataclass
class ScoringPass:
    """Scored frame (for export) and report of one pass"""

    scored_df: pl.DataFrame
    report: ScoringReport


class SafetyScoringEngine:
    def __init__(
        self,
        rules: Optional[EligibilityRules] = None,
        weights: ScoreWeights = DEFAULT_WEIGHTS,
        fixed_base_apr_assets: Optional[Mapping[str, float]] = None,
        persist_retry_attempts: int = 3,
        persist_retry_delay: float = 0.5,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            rules: Eligibility exclusions (defaults: no exclusions, sushiswap always live)
            weights: Sub-score weights
            fixed_base_apr_assets: Asset symbol -> fixed base APR score
            persist_retry_attempts: Write attempts per farm before giving up on it
            persist_retry_delay: First retry delay in seconds, doubled per attempt
            max_workers: Threads for metric extraction; None or 1 runs inline
        """
        self.rules = rules or EligibilityRules()
        self.weights = weights
        self.fixed_base_apr_assets = (
            DEFAULT_FIXED_BASE_APR_ASSETS
            if fixed_base_apr_assets is None
            else fixed_base_apr_assets
        )
        self.persist_retry_attempts = max(1, persist_retry_attempts)
        self.persist_retry_delay = persist_retry_delay
        self.max_workers = max_workers

    def _extract_all(self, documents: List[Dict[str, Any]]):
        if self.max_workers and self.max_workers > 1 and len(documents) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                return list(executor.map(extract_farm_metrics, documents))
        return [extract_farm_metrics(document) for document in documents]

    def score(self, documents: List[Dict[str, Any]]) -> ScoringPass:
        """
        Score a population snapshot without writing anything

        Args:
            documents: Every farm document of the snapshot

        Returns:
            ScoringPass: Scored frame and report
        """
        documents, migrated_documents = migrate_score_fields(documents)
        migrated = []
        for document in migrated_documents:
            try:
                migrated.append(read_identity(document))
            except ValueError:
                continue

        eligible = filter_eligible(documents, self.rules)

        population: List[FarmMetrics] = []
        diagnostics: List[MetricDiagnostic] = []
        seen = set()
        for metrics, farm_diagnostics in self._extract_all(eligible):
            diagnostics.extend(farm_diagnostics)
            if metrics is None:
                continue
            # One record per identity; later copies would share its score fields
            key = metrics.identity.as_key()
            if key in seen:
                diagnostics.append(
                    MetricDiagnostic(
                        kind=DiagnosticKind.DUPLICATE_IDENTITY,
                        message="Farm identity appears more than once, keeping the first record",
                        identity=metrics.identity,
                    )
                )
                continue
            seen.add(key)
            population.append(metrics)

        metrics_df = build_metrics_frame(population, self.fixed_base_apr_assets)
        scores_df = combine_scores(score_population(metrics_df), self.weights)
        scored_df, degenerate = rescale_population(scores_df)
        scored_df = scored_df.select(list(SCORED_FARMS_SCHEMA.names()))

        if degenerate:
            diagnostics.append(
                MetricDiagnostic(
                    kind=DiagnosticKind.DEGENERATE_POPULATION,
                    message=(
                        f"All {scored_df.height} raw scores are equal; "
                        "total scores set to 0"
                    ),
                )
            )

        for diagnostic in diagnostics:
            logger.warning(
                f"⚠️ {diagnostic.kind.value}: {diagnostic.message}"
                + (f" [{diagnostic.identity}]" if diagnostic.identity else "")
            )

        report = ScoringReport(
            scored=[self._to_scored_farm(row) for row in scored_df.to_dicts()],
            diagnostics=diagnostics,
            eligible_count=len(population),
            migrated=migrated,
            degenerate=degenerate,
        )
        logger.info(
            f"Scored {len(report.scored)} farms "
            f"({len(diagnostics)} diagnostics, {len(migrated)} migrated)"
        )
        return ScoringPass(scored_df=scored_df, report=report)

    @staticmethod
    def _to_scored_farm(row: Dict[str, Any]) -> ScoredFarm:
        return ScoredFarm(
            identity=FarmIdentity(
                id=row["id"],
                chef=row["chef"],
                chain=row["chain"],
                protocol=row["protocol"],
                asset_address=row["asset_address"],
            ),
            tvl_score=row["tvl_score"],
            base_apr_score=row["base_apr_score"],
            reward_apr_score=row["reward_apr_score"],
            rewards_score=row["rewards_score"],
            raw_score=row["raw_score"],
            total_score=row["total_score"],
        )

    def _persist_with_retry(
        self, writer: ScoreWriter, identity: FarmIdentity, scores: ScoreSet
    ) -> bool:
        for attempt in range(self.persist_retry_attempts):
            try:
                writer.persist_score(identity, scores)
                return True
            except Exception as e:
                if attempt == self.persist_retry_attempts - 1:
                    logger.error(
                        f"❌ Failed to persist scores for {identity} after "
                        f"{self.persist_retry_attempts} attempts: {e}"
                    )
                    return False
                wait_time = self.persist_retry_delay * 2**attempt
                logger.warning(
                    f"Attempt {attempt + 1} to persist {identity} failed, "
                    f"retrying in {wait_time}s..."
                )
                time.sleep(wait_time)
        return False

    def run(
        self, documents: List[Dict[str, Any]], writer: Optional[ScoreWriter] = None
    ) -> ScoringPass:
        """
        Score a population snapshot and persist every farm's scores

        A farm whose write keeps failing is reported in report.failed; it
        does not stop the other farms from being written.

        Args:
            documents: Every farm document of the snapshot
            writer: Score writer; None computes scores without persisting

        Returns:
            ScoringPass: Scored frame and report
        """
        scoring_pass = self.score(documents)
        report = scoring_pass.report

        if writer is None:
            logger.info("🔍 No writer given: skipping score persistence")
            return scoring_pass

        scored_keys = {farm.identity.as_key() for farm in report.scored}
        for identity in report.migrated:
            if identity.as_key() not in scored_keys:
                if not self._persist_with_retry(writer, identity, ScoreSet.zero()):
                    report.failed.append(identity)

        for farm in report.scored:
            if self._persist_with_retry(writer, farm.identity, farm.scores()):
                report.persisted_count += 1
            else:
                report.failed.append(farm.identity)

        logger.info(
            f"✅ Persisted scores for {report.persisted_count}/{len(report.scored)} farms"
        )
        return scoring_pass
