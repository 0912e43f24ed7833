"""
Farm document extraction - typed metrics and non-fatal diagnostics
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from farm_safety.transformation.documents import (
    extract_farm_metrics,
    parse_number,
    read_identity,
    score_fields_document,
)
from farm_safety.transformation.models import DiagnosticKind, FarmType, ScoreSet
from farm_factory import farm_document


def test_extracts_typed_metrics():
    """A well-formed document yields metrics and no diagnostics"""
    metrics, diagnostics = extract_farm_metrics(
        farm_document(farm_id=7, farm_type="stableAmm", tvl=2500.0, base_apr=1.5)
    )

    assert diagnostics == []
    assert metrics.identity.id == 7
    assert metrics.identity.asset_address == "0xasset7"
    assert metrics.farm_type is FarmType.STABLE_AMM
    assert metrics.tvl_usd == 2500.0
    assert metrics.base_apr == 1.5
    assert metrics.reward_apr == 20.0
    assert metrics.rewards[0].value_usd == 70.0


def test_missing_metric_reads_as_zero_with_diagnostic():
    document = farm_document(tvl="not-a-number")
    del document["apr"]["reward"]

    metrics, diagnostics = extract_farm_metrics(document)

    assert metrics.tvl_usd == 0.0
    assert metrics.reward_apr == 0.0
    assert {d.field for d in diagnostics} == {"tvl", "apr.reward"}
    assert all(d.kind is DiagnosticKind.MISSING_METRIC for d in diagnostics)


def test_non_finite_metric_reads_as_zero():
    metrics, diagnostics = extract_farm_metrics(farm_document(base_apr=float("nan")))

    assert metrics.base_apr == 0.0
    assert diagnostics[0].field == "apr.base"


def test_malformed_reward_entries_count_as_zero():
    rewards = [
        {"amount": 1.0, "asset": "SOLAR", "valueUSD": 700.0, "freq": "Weekly"},
        {"amount": 1.0, "asset": "SOLAR", "valueUSD": "??", "freq": "Daily"},
        {"amount": 1.0, "asset": "SOLAR", "valueUSD": 10.0, "freq": "Hourly"},
        "garbage",
    ]
    metrics, diagnostics = extract_farm_metrics(farm_document(rewards=rewards))

    assert len(metrics.rewards) == 1
    assert len(diagnostics) == 3
    assert {d.field for d in diagnostics} == {"rewards[1]", "rewards[2]", "rewards[3]"}


def test_unknown_farm_type_falls_back_to_standard_amm():
    metrics, diagnostics = extract_farm_metrics(farm_document(farm_type="Vault"))

    assert metrics.farm_type is FarmType.STANDARD_AMM
    assert diagnostics[0].kind is DiagnosticKind.UNKNOWN_FARM_TYPE


def test_unreadable_identity_skips_the_farm():
    document = farm_document()
    del document["chef"]

    metrics, diagnostics = extract_farm_metrics(document)

    assert metrics is None
    assert diagnostics[0].kind is DiagnosticKind.UNREADABLE_IDENTITY


def test_read_identity_rejects_bad_ids():
    with pytest.raises(ValueError):
        read_identity(farm_document(farm_id="abc"))
    with pytest.raises(ValueError):
        read_identity(farm_document(farm_id=True))


def test_parse_number():
    assert parse_number(3) == 3.0
    assert parse_number(" 2.5 ") == 2.5
    assert parse_number(None) is None
    assert parse_number(False) is None
    assert parse_number("inf") is None
    assert parse_number([1]) is None


def test_score_fields_document():
    fields = score_fields_document(
        ScoreSet(tvl=0.85, base_apr=0.6, reward_apr=0.5, rewards=0.25, total=0.4)
    )
    assert fields == {
        "tvlScore": 0.85,
        "baseAPRScore": 0.6,
        "rewardAPRScore": 0.5,
        "rewardsScore": 0.25,
        "totalScore": 0.4,
    }
