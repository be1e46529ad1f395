"""
Pool aggregate models.

``PoolState`` is the single record a pool instance owns. It is passed by
handle to every core function; nothing in the core keeps ambient state.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PeriodState(str, Enum):
    """Lifecycle of the reward schedule."""

    UNFUNDED = "unfunded"
    ACTIVE = "active"
    EXPIRED = "expired"


class ParticipantAccount(BaseModel):
    """Stake and reward bookkeeping for a single participant.

    Attributes:
        balance: Staked amount.
        rewards: Accrued, unclaimed reward as of the last checkpoint.
        user_reward_per_token_paid: Accumulator value at the last checkpoint.
    """

    balance: int = Field(default=0, ge=0)
    rewards: int = Field(default=0, ge=0)
    user_reward_per_token_paid: int = Field(default=0, ge=0)


class PoolState(BaseModel):
    """Complete state of one staking pool.

    Amounts are 18-decimal fixed-point integers and times are Unix seconds.
    """

    owner: str = Field(..., description="Principal allowed to reconfigure the pool")
    rewards_distribution: str = Field(..., description="Principal allowed to fund rewards")
    rewards_duration: int = Field(..., gt=0, description="Default funding duration in seconds")

    total_staked: int = Field(default=0, ge=0)
    reward_rate: int = Field(default=0, ge=0)
    reward_per_token_stored: int = Field(default=0, ge=0)
    last_update_time: int = Field(default=0, ge=0)
    period_finish: int = Field(default=0, ge=0)
    funded: bool = Field(default=False, description="True once the first funding arrived")
    paused: bool = Field(default=False)

    accounts: dict[str, ParticipantAccount] = Field(default_factory=dict)

    def account(self, participant: str) -> ParticipantAccount:
        """Return the participant's account, creating it on first use."""
        acct = self.accounts.get(participant)
        if acct is None:
            acct = ParticipantAccount()
            self.accounts[participant] = acct
        return acct

    def peek(self, participant: str) -> Optional[ParticipantAccount]:
        """Return the participant's account without creating one."""
        return self.accounts.get(participant)

    def restore(self, snapshot: "PoolState") -> None:
        """Overwrite every field with the values from *snapshot*."""
        for name in type(self).model_fields:
            setattr(self, name, getattr(snapshot, name))
