"""
Reward Ledger

Per-participant unclaimed reward. Claiming reads the amount settled by the
last checkpoint and zeroes it; the controller performs the payout.
"""

from __future__ import annotations

from stakepool.core.models import PoolState


def rewards(pool: PoolState, participant: str) -> int:
    """Unclaimed reward settled at the participant's last checkpoint."""
    account = pool.peek(participant)
    return account.rewards if account else 0


def user_reward_per_token_paid(pool: PoolState, participant: str) -> int:
    account = pool.peek(participant)
    return account.user_reward_per_token_paid if account else 0


def take_rewards(pool: PoolState, participant: str) -> int:
    """Zero and return the participant's settled reward.

    Returns 0 for unknown participants or when nothing has accrued.
    """
    account = pool.peek(participant)
    if account is None or account.rewards == 0:
        return 0
    amount = account.rewards
    account.rewards = 0
    return amount
