"""
Reward Schedule

Funding and period-extension state machine. A funding call that arrives
while a period is still running folds the unspent reward of the old rate
into the new one and restarts the horizon from now:

    leftover = (period_finish - now) * reward_rate
    reward_rate = (reward + leftover) // duration

Integer division truncates, so the pool never schedules more than it was
given; the dust becomes part of the next funding's leftover.
"""

from __future__ import annotations

import logging
from typing import Optional

from stakepool.core.accrual import checkpoint
from stakepool.core.models import PeriodState, PoolState
from stakepool.exceptions import PeriodNotFinished, SolvencyError, ValidationError
from stakepool.fixed_point import checked, mul

logger = logging.getLogger(__name__)


def period_state(pool: PoolState, now: int) -> PeriodState:
    """Classify the schedule as unfunded, active, or expired at *now*."""
    if not pool.funded:
        return PeriodState.UNFUNDED
    if now < pool.period_finish:
        return PeriodState.ACTIVE
    return PeriodState.EXPIRED


def leftover(pool: PoolState, now: int) -> int:
    """Reward still to be emitted by the current period after *now*."""
    if now >= pool.period_finish:
        return 0
    return mul(pool.period_finish - now, pool.reward_rate)


def blended_rate(pool: PoolState, reward: int, duration: int, now: int) -> int:
    """Rate a funding of *reward* over *duration* would set at *now*."""
    return checked(reward + leftover(pool, now)) // duration


def reward_for_duration(pool: PoolState) -> int:
    """Total reward emitted over one default-length period at the current rate."""
    return mul(pool.reward_rate, pool.rewards_duration)


def validate_duration(duration: Optional[int]) -> None:
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise ValidationError(f"Duration must be a positive number of seconds, got {duration!r}")


def notify_reward_amount(
    pool: PoolState,
    reward: int,
    duration: int,
    now: int,
    available: int,
) -> int:
    """Start or extend a reward period and return the new rate.

    Args:
        pool: Pool to update.
        reward: Newly funded reward in scaled units.
        duration: Length of the new period in seconds.
        now: Current timestamp.
        available: Reward-asset balance the pool can pay from, including
            the incoming reward and excluding staked principal.

    Raises:
        ValidationError: If the reward is negative or the duration is not positive.
        SolvencyError: If ``rate * duration`` exceeds *available*.
    """
    if isinstance(reward, bool) or not isinstance(reward, int) or reward < 0:
        raise ValidationError(f"Reward must be a non-negative integer, got {reward!r}")
    validate_duration(duration)

    checkpoint(pool, None, now)

    was_active = now < pool.period_finish
    rate = blended_rate(pool, reward, duration, now)
    if mul(rate, duration) > available:
        raise SolvencyError(
            f"Reward rate {rate} over {duration}s needs {rate * duration} "
            f"but only {available} is available"
        )

    pool.reward_rate = rate
    pool.last_update_time = now
    pool.period_finish = checked(now + duration)
    pool.funded = True

    logger.info(
        "Reward funded: reward=%d duration=%d rate=%d finish=%d blended=%s",
        reward,
        duration,
        rate,
        pool.period_finish,
        was_active,
    )
    return rate


def set_rewards_duration(pool: PoolState, duration: int, now: int) -> None:
    """Change the default period length once the current period has ended."""
    if now <= pool.period_finish:
        raise PeriodNotFinished(
            f"Previous rewards period must complete before changing the duration "
            f"(finishes at {pool.period_finish}, now {now})"
        )
    validate_duration(duration)
    pool.rewards_duration = duration
