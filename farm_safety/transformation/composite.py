"""
Weighted Combiner and Population Rescaler

The four sub-scores are combined with fixed weights into a raw score, then
raw scores are min-max rescaled over the population. Rescaled scores are
only comparable within one pass.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import polars as pl
import logging

logger = logging.getLogger(__name__)

# Keeps the best farm of a pass strictly below 1.0
RESCALE_HEADROOM = 1.01


@dataclass(frozen=True)
class ScoreWeights:
    tvl: float = 0.45
    base_apr: float = 0.20
    reward_apr: float = 0.15
    rewards: float = 0.20

    def __post_init__(self):
        total = self.tvl + self.base_apr + self.reward_apr + self.rewards
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Score weights must sum to 1.0, got {total}")
        if min(self.tvl, self.base_apr, self.reward_apr, self.rewards) < 0:
            raise ValueError("Score weights must be non-negative")


DEFAULT_WEIGHTS = ScoreWeights()


def combined_score(
    tvl_score: float,
    base_apr_score: float,
    reward_apr_score: float,
    rewards_score: float,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> float:
    """Weighted raw score of a single farm"""
    return (
        weights.tvl * tvl_score
        + weights.base_apr * base_apr_score
        + weights.reward_apr * reward_apr_score
        + weights.rewards * rewards_score
    )


def combine_scores(
    scores_df: pl.DataFrame, weights: ScoreWeights = DEFAULT_WEIGHTS
) -> pl.DataFrame:
    """
    Add raw_score, the weighted sum of the four sub-scores

    Args:
        scores_df: Frame with the four sub-score columns
        weights: Sub-score weights

    Returns:
        pl.DataFrame: Input frame plus raw_score
    """
    return scores_df.with_columns(
        (
            pl.col("tvl_score") * weights.tvl
            + pl.col("base_apr_score") * weights.base_apr
            + pl.col("reward_apr_score") * weights.reward_apr
            + pl.col("rewards_score") * weights.rewards
        ).alias("raw_score")
    )


def is_degenerate(scores_df: pl.DataFrame) -> bool:
    """True when every raw score in a non-empty population is the same"""
    if scores_df.height == 0:
        return False
    raw = scores_df.get_column("raw_score")
    return raw.max() == raw.min()


def rescale_population(scores_df: pl.DataFrame) -> Tuple[pl.DataFrame, bool]:
    """
    Min-max rescale raw scores into total_score

    total_score = (raw - min) / ((max - min) * 1.01). A degenerate
    population (all raw scores equal, including a single farm) has no
    spread to rescale against, so every farm gets total_score 0.0.

    Args:
        scores_df: Frame with raw_score

    Returns:
        Tuple of (frame plus total_score, whether the population was degenerate)
    """
    degenerate = is_degenerate(scores_df)
    if degenerate:
        logger.warning(
            f"⚠️ Degenerate population: all {scores_df.height} raw scores are equal, "
            "setting total scores to 0"
        )

    if degenerate or scores_df.height == 0:
        total = pl.lit(0.0)
    else:
        raw = scores_df.get_column("raw_score")
        lowest, highest = raw.min(), raw.max()
        total = (pl.col("raw_score") - lowest) / ((highest - lowest) * RESCALE_HEADROOM)

    rescaled_df = scores_df.with_columns(total.alias("total_score"))
    return rescaled_df, degenerate
