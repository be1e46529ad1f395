"""
Permit Signing & Verification

A permit is an off-band signed message that authorizes a spender to move
an owner's tokens without a prior on-ledger approval. The pool never
checks signatures itself; it hands the permit to the ledger, which asks a
``PermitVerifier`` who signed it.

The reference verifier uses Ed25519 keys. A signature is carried as the
``(r, s)`` halves of the 64-byte Ed25519 signature plus ``v``, the
version of the signer's key that produced it.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Protocol, runtime_checkable

from cryptography import exceptions as crypto_exceptions
from cryptography.hazmat.primitives.asymmetric import ed25519
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PermitMessage(BaseModel):
    """The fields a permit signature commits to."""

    domain: str = Field(..., description="Ledger the permit is valid on")
    owner: str
    spender: str
    value: int = Field(ge=0)
    nonce: int = Field(ge=0)
    deadline: int = Field(ge=0)

    def signable_bytes(self) -> bytes:
        """Canonical encoding used for signing and verification."""
        return json.dumps(self.model_dump(), sort_keys=True, separators=(",", ":")).encode()


class PermitSignature(BaseModel):
    """A detached permit signature.

    Attributes:
        v: Version of the signer's key.
        r: First 32 bytes of the signature.
        s: Last 32 bytes of the signature.
    """

    v: int = Field(default=0, ge=0)
    r: bytes = Field(..., min_length=32, max_length=32)
    s: bytes = Field(..., min_length=32, max_length=32)

    @classmethod
    def from_bytes(cls, signature: bytes, v: int = 0) -> "PermitSignature":
        if len(signature) != 64:
            raise ValueError(f"Expected a 64-byte signature, got {len(signature)} bytes")
        return cls(v=v, r=signature[:32], s=signature[32:])

    def to_bytes(self) -> bytes:
        return self.r + self.s


@runtime_checkable
class PermitVerifier(Protocol):
    """Resolves the principal that signed a permit, or ``None``."""

    def verify(self, message: PermitMessage, signature: PermitSignature) -> Optional[str]: ...


class PermitSigner:
    """Sign permit messages with an Ed25519 key.

    Args:
        private_key: Ed25519 private key of the permit owner.
        version: Key version recorded in produced signatures.

    Example:
        >>> signer = PermitSigner(ed25519.Ed25519PrivateKey.generate())
        >>> sig = signer.sign(message)
    """

    def __init__(self, private_key: ed25519.Ed25519PrivateKey, version: int = 0) -> None:
        self._private_key = private_key
        self._version = version

    @property
    def public_key(self) -> ed25519.Ed25519PublicKey:
        """Return the public key corresponding to the signing key."""
        return self._private_key.public_key()

    def sign(self, message: PermitMessage) -> PermitSignature:
        sig = self._private_key.sign(message.signable_bytes())
        logger.debug("Signed permit for %s -> %s (nonce %d)", message.owner, message.spender, message.nonce)
        return PermitSignature.from_bytes(sig, v=self._version)


class Ed25519PermitVerifier:
    """Verify permits against registered Ed25519 public keys.

    Each principal may register several keys; the position of a key in the
    principal's list is its version. Older versions stay valid so permits
    signed before a key rotation can still be redeemed.
    """

    def __init__(self) -> None:
        self._keys: dict[str, list[ed25519.Ed25519PublicKey]] = {}

    def register(self, principal: str, public_key: ed25519.Ed25519PublicKey) -> int:
        """Register a key for *principal* and return its version."""
        keys = self._keys.setdefault(principal, [])
        keys.append(public_key)
        logger.info("Registered permit key v%d for %s", len(keys) - 1, principal)
        return len(keys) - 1

    def verify(self, message: PermitMessage, signature: PermitSignature) -> Optional[str]:
        """Return ``message.owner`` if the signature is valid, else ``None``."""
        keys = self._keys.get(message.owner, [])
        if signature.v >= len(keys):
            logger.warning("No permit key v%d registered for %s", signature.v, message.owner)
            return None
        try:
            keys[signature.v].verify(signature.to_bytes(), message.signable_bytes())
        except crypto_exceptions.InvalidSignature:
            logger.warning("Permit signature rejected for %s", message.owner)
            return None
        return message.owner
