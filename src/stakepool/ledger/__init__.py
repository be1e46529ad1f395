"""Asset ledger adapters and permit verification."""

from .permit import (
    Ed25519PermitVerifier,
    PermitMessage,
    PermitSignature,
    PermitSigner,
    PermitVerifier,
)
from .base import AssetLedger
from .memory import InMemoryLedger

__all__ = [
    "AssetLedger",
    "InMemoryLedger",
    "PermitMessage",
    "PermitSignature",
    "PermitSigner",
    "PermitVerifier",
    "Ed25519PermitVerifier",
]
