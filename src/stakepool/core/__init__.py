"""
Accounting core.

Pure functions over an explicit ``PoolState`` handle: accrual math,
stake book, reward ledger, and the funding schedule.
"""

from .models import ParticipantAccount, PeriodState, PoolState
from .accrual import checkpoint, earned, last_time_reward_applicable, reward_per_token
from .schedule import (
    blended_rate,
    leftover,
    notify_reward_amount,
    period_state,
    reward_for_duration,
    set_rewards_duration,
)

__all__ = [
    "ParticipantAccount",
    "PeriodState",
    "PoolState",
    "checkpoint",
    "earned",
    "last_time_reward_applicable",
    "reward_per_token",
    "blended_rate",
    "leftover",
    "notify_reward_amount",
    "period_state",
    "reward_for_duration",
    "set_rewards_duration",
]
