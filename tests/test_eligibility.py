"""
Eligibility filter and score field migration
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from farm_safety.transformation.eligibility import (
    EligibilityRules,
    filter_eligible,
    is_eligible,
    migrate_score_fields,
)
from farm_factory import farm_document


def test_positive_alloc_point_is_eligible():
    assert is_eligible(farm_document(alloc_point=100), EligibilityRules())


def test_zero_or_missing_alloc_point_is_not_eligible():
    rules = EligibilityRules()
    assert not is_eligible(farm_document(alloc_point=0), rules)
    assert not is_eligible(farm_document(alloc_point=None), rules)
    assert not is_eligible(farm_document(alloc_point="n/a"), rules)


def test_sushiswap_is_eligible_without_alloc_point():
    rules = EligibilityRules()
    assert is_eligible(farm_document(protocol="sushiswap", alloc_point=None), rules)
    assert is_eligible(farm_document(protocol="sushiswap", alloc_point=0), rules)


def test_deprecated_farms_are_excluded():
    rules = EligibilityRules.build(deprecated_farms=[(3, "0xCHEF")])

    assert not is_eligible(farm_document(farm_id=3, chef="0xchef"), rules)
    assert is_eligible(farm_document(farm_id=4, chef="0xchef"), rules)
    assert is_eligible(farm_document(farm_id=3, chef="0xother"), rules)


def test_blacklisted_assets_are_excluded():
    rules = EligibilityRules.build(asset_blacklist=["veSOLAR"])

    assert not is_eligible(farm_document(symbol="veSOLAR"), rules)
    assert is_eligible(farm_document(symbol="SOLAR-WMOVR LP"), rules)


def test_filter_keeps_input_order():
    documents = [
        farm_document(farm_id=1),
        farm_document(farm_id=2, alloc_point=0),
        farm_document(farm_id=3),
    ]
    eligible = filter_eligible(documents, EligibilityRules())
    assert [d["id"] for d in eligible] == [1, 3]


def test_migration_zero_initializes_unscored_documents():
    scored = farm_document(farm_id=1, totalScore=0.5)
    unscored = farm_document(farm_id=2, alloc_point=0)
    for field in ("tvlScore", "baseAPRScore", "rewardAPRScore", "rewardsScore", "totalScore"):
        del unscored[field]

    documents, migrated = migrate_score_fields([scored, unscored])

    assert [d["id"] for d in migrated] == [2]
    assert documents[0] is scored
    assert documents[1]["totalScore"] == 0.0
    assert documents[1]["tvlScore"] == 0.0
    # The snapshot itself is left untouched
    assert "totalScore" not in unscored
