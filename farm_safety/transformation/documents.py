"""
Farm Documents - reading persisted farm documents into typed metrics

Farm documents use the store's camelCase layout:

    {
        "id": 3, "chef": "0x...", "chain": "moonriver", "protocol": "solarbeam",
        "farmType": "StandardAmm", "allocPoint": 100, "tvl": 1250000.0,
        "asset": {"symbol": "SOLAR-WMOVR LP", "address": "0x..."},
        "apr": {"base": 12.5, "reward": 40.1},
        "rewards": [{"amount": 10.0, "asset": "SOLAR", "valueUSD": 70.0, "freq": "Weekly"}],
        "tvlScore": 0.85, ..., "totalScore": 0.41
    }

A metric that is missing or unparseable is read as 0.0 and reported as a
diagnostic instead of failing the pass.
"""

import math
from typing import Any, Dict, List, Optional, Tuple

from .models import (
    DiagnosticKind,
    FarmIdentity,
    FarmMetrics,
    FarmType,
    MetricDiagnostic,
    Reward,
    RewardFrequency,
    ScoreSet,
)
import logging

logger = logging.getLogger(__name__)

# ScoreSet attribute -> document field
SCORE_FIELDS = {
    "tvl": "tvlScore",
    "base_apr": "baseAPRScore",
    "reward_apr": "rewardAPRScore",
    "rewards": "rewardsScore",
    "total": "totalScore",
}


def score_fields_document(scores: ScoreSet) -> Dict[str, float]:
    """Render a ScoreSet as the document fields it is stored under"""
    return {field: getattr(scores, attr) for attr, field in SCORE_FIELDS.items()}


def parse_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None when it is not one"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _lookup(document: Dict[str, Any], path: str) -> Any:
    value: Any = document
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def read_asset(document: Dict[str, Any]) -> Dict[str, Any]:
    asset = document.get("asset")
    return asset if isinstance(asset, dict) else {}


def read_asset_symbol(document: Dict[str, Any]) -> str:
    symbol = read_asset(document).get("symbol")
    return symbol if isinstance(symbol, str) else ""


def read_identity(document: Dict[str, Any]) -> FarmIdentity:
    """
    Read the 5-part farm identity from a document

    Raises:
        ValueError: If any identity part is missing or malformed
    """
    raw_id = document.get("id")
    if isinstance(raw_id, bool) or not isinstance(raw_id, (int, float, str)):
        raise ValueError(f"Farm id is missing or malformed: {raw_id!r}")
    try:
        farm_id = int(raw_id)
    except (ValueError, OverflowError):
        raise ValueError(f"Farm id is not an integer: {raw_id!r}")

    parts = {
        "chef": document.get("chef"),
        "chain": document.get("chain"),
        "protocol": document.get("protocol"),
        "asset_address": read_asset(document).get("address"),
    }
    for name, value in parts.items():
        if not isinstance(value, str) or not value:
            raise ValueError(f"Farm {name} is missing or malformed: {value!r}")

    return FarmIdentity(id=farm_id, **parts)


def _read_metric(
    document: Dict[str, Any],
    path: str,
    identity: FarmIdentity,
    diagnostics: List[MetricDiagnostic],
) -> float:
    raw = _lookup(document, path)
    value = parse_number(raw)
    if value is None:
        diagnostics.append(
            MetricDiagnostic(
                kind=DiagnosticKind.MISSING_METRIC,
                message=f"'{path}' is missing or unparseable ({raw!r}), using 0",
                identity=identity,
                field=path,
            )
        )
        return 0.0
    return value


def _read_farm_type(
    document: Dict[str, Any],
    identity: FarmIdentity,
    diagnostics: List[MetricDiagnostic],
) -> FarmType:
    raw = document.get("farmType", document.get("farm_type"))
    try:
        return FarmType.parse(raw)
    except ValueError:
        diagnostics.append(
            MetricDiagnostic(
                kind=DiagnosticKind.UNKNOWN_FARM_TYPE,
                message=f"Unknown farm type {raw!r}, scoring as StandardAmm",
                identity=identity,
                field="farmType",
            )
        )
        return FarmType.STANDARD_AMM


def _read_rewards(
    document: Dict[str, Any],
    identity: FarmIdentity,
    diagnostics: List[MetricDiagnostic],
) -> List[Reward]:
    raw_rewards = document.get("rewards")
    if not isinstance(raw_rewards, list):
        diagnostics.append(
            MetricDiagnostic(
                kind=DiagnosticKind.MISSING_METRIC,
                message=f"'rewards' is missing or not a list ({raw_rewards!r}), using 0",
                identity=identity,
                field="rewards",
            )
        )
        return []

    rewards = []
    for index, entry in enumerate(raw_rewards):
        field = f"rewards[{index}]"
        if not isinstance(entry, dict):
            diagnostics.append(
                MetricDiagnostic(
                    kind=DiagnosticKind.MISSING_METRIC,
                    message=f"'{field}' is not an object, ignoring it",
                    identity=identity,
                    field=field,
                )
            )
            continue

        value_usd = parse_number(entry.get("valueUSD"))
        try:
            frequency = RewardFrequency.parse(entry.get("freq"))
        except ValueError:
            frequency = None

        if value_usd is None or frequency is None:
            diagnostics.append(
                MetricDiagnostic(
                    kind=DiagnosticKind.MISSING_METRIC,
                    message=(
                        f"'{field}' has unusable valueUSD={entry.get('valueUSD')!r} "
                        f"or freq={entry.get('freq')!r}, counting it as 0"
                    ),
                    identity=identity,
                    field=field,
                )
            )
            continue

        asset = entry.get("asset")
        rewards.append(
            Reward(
                amount=parse_number(entry.get("amount")) or 0.0,
                asset_symbol=asset if isinstance(asset, str) else "",
                value_usd=value_usd,
                frequency=frequency,
            )
        )
    return rewards


def extract_farm_metrics(
    document: Dict[str, Any],
) -> Tuple[Optional[FarmMetrics], List[MetricDiagnostic]]:
    """
    Extract typed metrics from one farm document

    Args:
        document: Farm document as stored

    Returns:
        Tuple of (metrics, diagnostics). metrics is None when the document's
        identity cannot be read, since its scores could never be written back.
    """
    diagnostics: List[MetricDiagnostic] = []

    try:
        identity = read_identity(document)
    except ValueError as e:
        diagnostics.append(
            MetricDiagnostic(
                kind=DiagnosticKind.UNREADABLE_IDENTITY,
                message=f"Skipping farm document: {e}",
            )
        )
        return None, diagnostics

    metrics = FarmMetrics(
        identity=identity,
        asset_symbol=read_asset_symbol(document),
        farm_type=_read_farm_type(document, identity, diagnostics),
        tvl_usd=_read_metric(document, "tvl", identity, diagnostics),
        base_apr=_read_metric(document, "apr.base", identity, diagnostics),
        reward_apr=_read_metric(document, "apr.reward", identity, diagnostics),
        rewards=_read_rewards(document, identity, diagnostics),
    )
    return metrics, diagnostics
