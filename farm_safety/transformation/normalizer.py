"""
Reward normalization: every reward entry is brought to a daily USD figure.
"""

from typing import Iterable

from .models import Reward, RewardFrequency

FREQUENCY_DIVISORS = {
    RewardFrequency.DAILY: 1.0,
    RewardFrequency.WEEKLY: 7.0,
    RewardFrequency.MONTHLY: 30.0,
    RewardFrequency.ANNUALLY: 365.0,
}


def daily_value_usd(reward: Reward) -> float:
    """USD paid per day by a single reward entry"""
    return reward.value_usd / FREQUENCY_DIVISORS[reward.frequency]


def daily_rewards_usd(rewards: Iterable[Reward]) -> float:
    """
    Sum a farm's reward entries as a daily-equivalent USD value

    Args:
        rewards: Reward entries, each tagged with its payout frequency

    Returns:
        float: Total USD paid per day
    """
    return sum((daily_value_usd(reward) for reward in rewards), 0.0)
