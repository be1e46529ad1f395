"""
Accrual Clock

Pure reward-per-token and earned computations plus the checkpoint that
settles them into the pool record.

The accumulator grows by ``elapsed * reward_rate * 1e18 / total_staked``
per interval, so a participant's share over any window is
``balance * (rpt_end - rpt_start) / 1e18`` regardless of how many other
stakers came and went in between.
"""

from __future__ import annotations

import logging
from typing import Optional

from stakepool.core.models import ParticipantAccount, PoolState
from stakepool.fixed_point import SCALE, checked, mul, mul_div

logger = logging.getLogger(__name__)


def last_time_reward_applicable(pool: PoolState, now: int) -> int:
    """Return ``min(now, period_finish)``."""
    return min(now, pool.period_finish)


def reward_per_token(pool: PoolState, now: int) -> int:
    """Return the accumulator value as of *now* without persisting it.

    Time that passes while nothing is staked is not credited to anyone.
    """
    if pool.total_staked == 0:
        return pool.reward_per_token_stored
    elapsed = max(0, last_time_reward_applicable(pool, now) - pool.last_update_time)
    increment = mul_div(mul(elapsed, pool.reward_rate), SCALE, pool.total_staked)
    return checked(pool.reward_per_token_stored + increment)


def earned(pool: PoolState, account: Optional[ParticipantAccount], now: int) -> int:
    """Return the claimable reward of *account* as of *now*."""
    if account is None:
        return 0
    delta = reward_per_token(pool, now) - account.user_reward_per_token_paid
    return checked(mul_div(account.balance, delta, SCALE) + account.rewards)


def checkpoint(pool: PoolState, participant: Optional[str], now: int) -> None:
    """Settle global accrual, and optionally one participant's, up to *now*.

    Must run before any change to a balance, the total supply, or the
    reward rate so that past accrual is computed with the old values.
    """
    rpt = reward_per_token(pool, now)
    pool.reward_per_token_stored = rpt
    # last_update_time is monotonic
    pool.last_update_time = max(pool.last_update_time, last_time_reward_applicable(pool, now))

    if participant is None:
        logger.debug("Checkpoint rpt=%d at t=%d", rpt, pool.last_update_time)
        return

    account = pool.account(participant)
    account.rewards = earned(pool, account, now)
    account.user_reward_per_token_paid = rpt
    logger.debug(
        "Checkpoint %s rewards=%d rpt=%d at t=%d",
        participant,
        account.rewards,
        rpt,
        pool.last_update_time,
    )
