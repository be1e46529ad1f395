# Copyright (c) Stakepool Contributors. All rights reserved.
# Licensed under the MIT License.
"""Centralized exception hierarchy for stakepool.

All stakepool exceptions inherit from StakePoolError. Every error aborts
the pool operation that raised it; no partial effects persist.
"""


class StakePoolError(Exception):
    """Base exception for all stakepool errors."""


class ValidationError(StakePoolError):
    """Invalid call arguments (zero or negative amount, bad duration)."""


class InsufficientBalance(ValidationError):
    """Raised when a withdrawal exceeds the participant's staked balance."""


class FixedPointOverflow(ValidationError):
    """Raised when a fixed-point value exceeds the uint256 range."""


class AuthorizationError(StakePoolError):
    """Caller is not the principal allowed to perform the operation."""


class PermitError(StakePoolError):
    """Errors related to signed transfer permits."""


class ExpiredPermit(PermitError):
    """Raised when a permit is used after its deadline."""


class InvalidSignature(PermitError):
    """Raised when a permit signature cannot be verified or was replayed."""


class SolvencyError(StakePoolError):
    """Raised when a funded reward rate exceeds the fundable balance."""


class StateError(StakePoolError):
    """Operation not allowed in the pool's current state."""


class PeriodNotFinished(StateError):
    """Raised when reconfiguring while a reward period is still active."""


class PoolPaused(StateError):
    """Raised when staking into a paused pool."""


class LedgerError(StakePoolError):
    """Errors reported by an asset ledger adapter."""


class TransferFailure(LedgerError):
    """Raised when the ledger rejects a transfer."""


__all__ = [
    "StakePoolError",
    "ValidationError",
    "InsufficientBalance",
    "FixedPointOverflow",
    "AuthorizationError",
    "PermitError",
    "ExpiredPermit",
    "InvalidSignature",
    "SolvencyError",
    "StateError",
    "PeriodNotFinished",
    "PoolPaused",
    "LedgerError",
    "TransferFailure",
]
