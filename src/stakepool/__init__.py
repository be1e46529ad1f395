"""
stakepool - Time-weighted reward accounting for staking pools

Stake · Accrue · Fund · Claim

Participants stake one asset and continuously accrue a reward asset in
proportion to stake-time. A distributor funds reward periods; funding an
active period blends the unspent remainder into the new rate.

Version: 0.1.0
"""

__version__ = "0.1.0"

# Accounting core
from .core import (
    ParticipantAccount,
    PeriodState,
    PoolState,
)

# Orchestration
from .controller import PoolController
from .config import PoolConfig
from .clock import Clock, ManualClock, SystemClock

# Ledger adapters
from .ledger import (
    AssetLedger,
    Ed25519PermitVerifier,
    InMemoryLedger,
    PermitMessage,
    PermitSignature,
    PermitSigner,
    PermitVerifier,
)

# Fixed-point helpers
from .fixed_point import SCALE, from_units, to_units

# Exceptions
from .exceptions import (
    StakePoolError,
    ValidationError,
    InsufficientBalance,
    FixedPointOverflow,
    AuthorizationError,
    PermitError,
    ExpiredPermit,
    InvalidSignature,
    SolvencyError,
    StateError,
    PeriodNotFinished,
    PoolPaused,
    LedgerError,
    TransferFailure,
)

__all__ = [
    # Version
    "__version__",

    # Core
    "ParticipantAccount",
    "PeriodState",
    "PoolState",

    # Orchestration
    "PoolController",
    "PoolConfig",
    "Clock",
    "ManualClock",
    "SystemClock",

    # Ledger
    "AssetLedger",
    "Ed25519PermitVerifier",
    "InMemoryLedger",
    "PermitMessage",
    "PermitSignature",
    "PermitSigner",
    "PermitVerifier",

    # Fixed point
    "SCALE",
    "from_units",
    "to_units",

    # Exceptions
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
