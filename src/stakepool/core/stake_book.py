"""
Stake Book

Participant balances and the pool's total staked supply. These functions
only touch the book; ledger transfers and checkpoints are sequenced by
the controller.
"""

from __future__ import annotations

from stakepool.core.models import PoolState
from stakepool.exceptions import InsufficientBalance, ValidationError
from stakepool.fixed_point import checked


def require_positive(amount: int, what: str = "amount") -> None:
    """Reject zero, negative, and non-integer amounts."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"{what} must be an integer number of units")
    if amount <= 0:
        raise ValidationError(f"{what} must be greater than zero, got {amount}")


def balance_of(pool: PoolState, participant: str) -> int:
    account = pool.peek(participant)
    return account.balance if account else 0


def require_withdrawable(pool: PoolState, participant: str, amount: int) -> None:
    """Check that *participant* can withdraw *amount*."""
    require_positive(amount)
    balance = balance_of(pool, participant)
    if amount > balance:
        raise InsufficientBalance(
            f"Cannot withdraw {amount} from {participant}: balance is {balance}"
        )


def credit(pool: PoolState, participant: str, amount: int) -> None:
    """Add *amount* to the participant's balance and the total supply."""
    require_positive(amount)
    account = pool.account(participant)
    pool.total_staked = checked(pool.total_staked + amount)
    account.balance = checked(account.balance + amount)


def debit(pool: PoolState, participant: str, amount: int) -> None:
    """Remove *amount* from the participant's balance and the total supply."""
    require_withdrawable(pool, participant, amount)
    account = pool.account(participant)
    pool.total_staked -= amount
    account.balance -= amount
