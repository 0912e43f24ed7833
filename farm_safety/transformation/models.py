"""
Typed farm models for the scoring engine.

FarmMetrics is what the engine reads, ScoredFarm is what it produces.
Both carry the same FarmIdentity, the key used to write scores back.
"""

import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FarmType(str, Enum):
    STANDARD_AMM = "StandardAmm"
    STABLE_AMM = "StableAmm"
    SINGLE_STAKING = "SingleStaking"
    CONCENTRATED_LIQUIDITY = "ConcentratedLiquidity"

    @classmethod
    def parse(cls, value: str) -> "FarmType":
        """Parse a farm type regardless of casing ('stableAmm', 'StableAmm')"""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown farm type: {value!r}")


class RewardFrequency(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    ANNUALLY = "Annually"

    @classmethod
    def parse(cls, value: str) -> "RewardFrequency":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown reward frequency: {value!r}")


class FarmIdentity(BaseModel):
    """Unique key of a farm across protocols and chains"""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Pool id inside the chef contract")
    chef: str = Field(..., description="Chef / pool manager identifier")
    chain: str = Field(..., description="Chain name (e.g. 'moonriver')")
    protocol: str = Field(..., description="Protocol name (e.g. 'solarbeam')")
    asset_address: str = Field(..., description="Address of the staked asset")

    def as_key(self) -> tuple:
        return (self.id, self.chef, self.chain, self.protocol, self.asset_address)

    def __str__(self) -> str:
        return f"{self.protocol}/{self.chain}/{self.chef}#{self.id} ({self.asset_address})"


class Reward(BaseModel):
    amount: float = Field(0.0, description="Reward token amount per period")
    asset_symbol: str = Field("", description="Reward token symbol")
    value_usd: float = Field(0.0, description="USD value paid per period")
    frequency: RewardFrequency = Field(
        RewardFrequency.DAILY, description="Payout period of value_usd"
    )


class FarmMetrics(BaseModel):
    """Already-computed per-farm metrics consumed by the sub-scorers"""

    identity: FarmIdentity
    asset_symbol: str = Field("", description="Staked asset symbol")
    farm_type: FarmType = Field(FarmType.STANDARD_AMM)
    tvl_usd: float = Field(0.0, description="Total value locked in USD")
    base_apr: float = Field(0.0, description="Base APR in percent")
    reward_apr: float = Field(0.0, description="Reward APR in percent")
    rewards: List[Reward] = Field(default_factory=list)

    @field_validator("tvl_usd", "base_apr", "reward_apr")
    @classmethod
    def validate_finite(cls, v):
        """Metrics must be finite numbers"""
        if not math.isfinite(v):
            raise ValueError("Metric values must be finite")
        return v


class ScoreSet(BaseModel):
    """The five persisted score fields of a farm"""

    tvl: float = 0.0
    base_apr: float = 0.0
    reward_apr: float = 0.0
    rewards: float = 0.0
    total: float = 0.0

    @classmethod
    def zero(cls) -> "ScoreSet":
        return cls()


class ScoredFarm(BaseModel):
    identity: FarmIdentity
    tvl_score: float = Field(..., ge=0.0, le=1.0)
    base_apr_score: float = Field(..., ge=0.0, le=1.0)
    reward_apr_score: float = Field(..., ge=0.0, le=1.0)
    rewards_score: float = Field(..., ge=0.0, le=1.0)
    raw_score: float = Field(..., description="Weighted score before rescaling")
    total_score: float = Field(..., description="Score rescaled over the population")

    def scores(self) -> ScoreSet:
        return ScoreSet(
            tvl=self.tvl_score,
            base_apr=self.base_apr_score,
            reward_apr=self.reward_apr_score,
            rewards=self.rewards_score,
            total=self.total_score,
        )


class DiagnosticKind(str, Enum):
    MISSING_METRIC = "MissingMetric"
    UNKNOWN_FARM_TYPE = "UnknownFarmType"
    UNREADABLE_IDENTITY = "UnreadableIdentity"
    DEGENERATE_POPULATION = "DegeneratePopulation"
    DUPLICATE_IDENTITY = "DuplicateIdentity"


class MetricDiagnostic(BaseModel):
    """Non-fatal problem found during a pass"""

    kind: DiagnosticKind
    message: str
    identity: Optional[FarmIdentity] = None
    field: Optional[str] = None


class ScoringReport(BaseModel):
    """Outcome of one scoring pass"""

    scored: List[ScoredFarm] = Field(default_factory=list)
    diagnostics: List[MetricDiagnostic] = Field(default_factory=list)
    eligible_count: int = 0
    migrated: List[FarmIdentity] = Field(default_factory=list)
    persisted_count: int = 0
    failed: List[FarmIdentity] = Field(default_factory=list)
    degenerate: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failed
