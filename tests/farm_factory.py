"""
Farm document and metrics builders shared by the tests
"""

from farm_safety.transformation.models import (
    FarmIdentity,
    FarmMetrics,
    FarmType,
    Reward,
    RewardFrequency,
)


def farm_document(
    farm_id=1,
    chef="0xchef",
    chain="moonriver",
    protocol="solarbeam",
    address=None,
    symbol="SOLAR-WMOVR LP",
    farm_type="StandardAmm",
    tvl=1_000_000.0,
    base_apr=10.0,
    reward_apr=20.0,
    rewards=None,
    alloc_point=100,
    **extra,
):
    """A farm document as the store keeps it"""
    document = {
        "id": farm_id,
        "chef": chef,
        "chain": chain,
        "protocol": protocol,
        "farmType": farm_type,
        "tvl": tvl,
        "asset": {"symbol": symbol, "address": address or f"0xasset{farm_id}"},
        "apr": {"base": base_apr, "reward": reward_apr},
        "rewards": (
            rewards
            if rewards is not None
            else [{"amount": 10.0, "asset": "SOLAR", "valueUSD": 70.0, "freq": "Weekly"}]
        ),
        "allocPoint": alloc_point,
        "tvlScore": 0.0,
        "baseAPRScore": 0.0,
        "rewardAPRScore": 0.0,
        "rewardsScore": 0.0,
        "totalScore": 0.0,
    }
    if alloc_point is None:
        del document["allocPoint"]
    document.update(extra)
    return document


def farm_metrics(
    farm_id=1,
    farm_type=FarmType.STANDARD_AMM,
    symbol="SOLAR-WMOVR LP",
    tvl=1_000_000.0,
    base_apr=10.0,
    reward_apr=20.0,
    daily_rewards=100.0,
):
    """Typed metrics with a single daily reward entry"""
    return FarmMetrics(
        identity=FarmIdentity(
            id=farm_id,
            chef="0xchef",
            chain="moonriver",
            protocol="solarbeam",
            asset_address=f"0xasset{farm_id}",
        ),
        asset_symbol=symbol,
        farm_type=farm_type,
        tvl_usd=tvl,
        base_apr=base_apr,
        reward_apr=reward_apr,
        rewards=[
            Reward(
                amount=1.0,
                asset_symbol="SOLAR",
                value_usd=daily_rewards,
                frequency=RewardFrequency.DAILY,
            )
        ],
    )
