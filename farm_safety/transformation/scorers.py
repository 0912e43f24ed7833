"""
Sub-Scorers - population-wide scores in [0, 1]

Each scorer is a polars expression evaluated over the whole eligible
population, since relative scores need the population maximum.
"""

from typing import Dict, Iterable, Mapping, Optional

import polars as pl

from .models import FarmMetrics, FarmType
from .normalizer import daily_rewards_usd
from .schemas import FARM_METRICS_SCHEMA
import logging

logger = logging.getLogger(__name__)

# (lower bound in USD, score), highest bucket first; below the last bound scores 0
TVL_BUCKETS = [
    (10_000_000.0, 1.00),
    (1_000_000.0, 0.85),
    (100_000.0, 0.75),
    (10_000.0, 0.60),
    (1_000.0, 0.50),
]

STABLE_AMM_BASE_APR_SCORE = 0.60
SINGLE_STAKING_BASE_APR_SCORE = 0.30

# Assets whose base APR is not computed upstream yet
DEFAULT_FIXED_BASE_APR_ASSETS = {
    "wstKSM-xcKSM LP": 0.5,
    "wstDOT-xcDOT LP": 0.5,
}


def tvl_bucket_score(tvl_usd: float) -> float:
    """Score a single TVL value against the fixed buckets"""
    for lower_bound, score in TVL_BUCKETS:
        if tvl_usd >= lower_bound:
            return score
    return 0.0


def tvl_score_expr(column: str = "tvl_usd") -> pl.Expr:
    value = pl.col(column)
    lower_bound, score = TVL_BUCKETS[0]
    expr = pl.when(value >= lower_bound).then(pl.lit(score))
    for lower_bound, score in TVL_BUCKETS[1:]:
        expr = expr.when(value >= lower_bound).then(pl.lit(score))
    return expr.otherwise(pl.lit(0.0))


def population_maximum(metrics_df: pl.DataFrame, column: str) -> float:
    """Population maximum of a column, never below zero (0.0 when empty)"""
    maximum = metrics_df.get_column(column).max()
    return max(maximum, 0.0) if maximum is not None else 0.0


def relative_to_max_expr(column: str, maximum: float) -> pl.Expr:
    """
    Score a column relative to its population maximum

    A farm at the maximum scores 1.0, others value / maximum. When the
    maximum is zero every farm scores 0.0. Results are clipped to [0, 1],
    so negative inputs score 0.
    """
    if maximum == 0.0:
        return pl.lit(0.0)
    value = pl.col(column)
    return (
        pl.when(value == maximum)
        .then(pl.lit(1.0))
        .otherwise(value / maximum)
        .clip(lower_bound=0.0, upper_bound=1.0)
    )


def fixed_base_apr_score(farm_type: FarmType) -> Optional[float]:
    """Fixed base APR score of a farm type, or None if it is ranked on raw APR"""
    if farm_type is FarmType.STABLE_AMM:
        return STABLE_AMM_BASE_APR_SCORE
    elif farm_type is FarmType.SINGLE_STAKING:
        return SINGLE_STAKING_BASE_APR_SCORE
    elif farm_type in (FarmType.STANDARD_AMM, FarmType.CONCENTRATED_LIQUIDITY):
        return None
    raise ValueError(f"Unhandled farm type: {farm_type!r}")


def base_apr_override(
    metrics: FarmMetrics, fixed_base_apr_assets: Mapping[str, float]
) -> Optional[float]:
    """Farm type overrides win over asset overrides"""
    score = fixed_base_apr_score(metrics.farm_type)
    if score is not None:
        return score
    return fixed_base_apr_assets.get(metrics.asset_symbol)


def metrics_row(
    metrics: FarmMetrics, fixed_base_apr_assets: Mapping[str, float]
) -> Dict[str, object]:
    """Flatten one farm's metrics into a FARM_METRICS_SCHEMA row"""
    identity = metrics.identity
    return {
        "id": identity.id,
        "chef": identity.chef,
        "chain": identity.chain,
        "protocol": identity.protocol,
        "asset_address": identity.asset_address,
        "asset_symbol": metrics.asset_symbol,
        "farm_type": metrics.farm_type.value,
        "tvl_usd": metrics.tvl_usd,
        "base_apr": metrics.base_apr,
        "reward_apr": metrics.reward_apr,
        "rewards_usd": daily_rewards_usd(metrics.rewards),
        "base_apr_override": base_apr_override(metrics, fixed_base_apr_assets),
    }


def build_metrics_frame(
    population: Iterable[FarmMetrics],
    fixed_base_apr_assets: Optional[Mapping[str, float]] = None,
) -> pl.DataFrame:
    """
    Build the metrics frame for a population

    Args:
        population: Extracted metrics of every eligible farm
        fixed_base_apr_assets: Asset symbol -> fixed base APR score

    Returns:
        pl.DataFrame: One row per farm with FARM_METRICS_SCHEMA
    """
    if fixed_base_apr_assets is None:
        fixed_base_apr_assets = DEFAULT_FIXED_BASE_APR_ASSETS

    rows = [metrics_row(metrics, fixed_base_apr_assets) for metrics in population]
    return pl.DataFrame(rows, schema=FARM_METRICS_SCHEMA)


def score_population(metrics_df: pl.DataFrame) -> pl.DataFrame:
    """
    Add the four sub-score columns to a metrics frame

    Args:
        metrics_df: Frame with FARM_METRICS_SCHEMA

    Returns:
        pl.DataFrame: Input frame plus tvl_score, base_apr_score,
        reward_apr_score and rewards_score
    """
    logger.info(f"Scoring {metrics_df.height} farms")

    maxima = {
        column: population_maximum(metrics_df, column)
        for column in ("base_apr", "reward_apr", "rewards_usd")
    }
    return metrics_df.with_columns(
        [
            tvl_score_expr("tvl_usd").alias("tvl_score"),
            pl.coalesce(
                pl.col("base_apr_override"),
                relative_to_max_expr("base_apr", maxima["base_apr"]),
            ).alias("base_apr_score"),
            relative_to_max_expr("reward_apr", maxima["reward_apr"]).alias(
                "reward_apr_score"
            ),
            relative_to_max_expr("rewards_usd", maxima["rewards_usd"]).alias(
                "rewards_score"
            ),
        ]
    )
