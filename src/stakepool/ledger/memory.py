"""
In-Memory Asset Ledger.

Simple token ledger with balances, allowances, and permit nonces.
Suitable for embedding, development, and testing.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional

from stakepool.exceptions import ExpiredPermit, InvalidSignature, TransferFailure, ValidationError
from stakepool.fixed_point import checked
from stakepool.ledger.base import AssetLedger
from stakepool.ledger.permit import PermitMessage, PermitSignature, PermitVerifier

logger = logging.getLogger(__name__)


class InMemoryLedger(AssetLedger):
    """
    In-memory token ledger.

    Uses Python dictionaries for storage. Data is lost on restart.

    Args:
        name: Asset identifier and permit domain.
        verifier: Resolves permit signers. Without one every permit is rejected.
    """

    def __init__(self, name: str, verifier: Optional[PermitVerifier] = None) -> None:
        self._name = name
        self._verifier = verifier
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)
        self._nonces: dict[str, int] = defaultdict(int)
        self._total_supply = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def mint(self, holder: str, amount: int) -> None:
        """Create *amount* new units for *holder*."""
        if amount < 0:
            raise ValidationError("Cannot mint a negative amount")
        self._balances[holder] = checked(self._balances[holder] + amount)
        self._total_supply = checked(self._total_supply + amount)

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError("Allowance cannot be negative")
        self._allowances[(owner, spender)] = amount

    def nonces(self, owner: str) -> int:
        """Next permit nonce expected for *owner*."""
        return self._nonces.get(owner, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TransferFailure(f"{self._name}: negative transfer")
        if self._balances.get(sender, 0) < amount:
            raise TransferFailure(
                f"{self._name}: transfer amount {amount} exceeds balance of {sender}"
            )
        self._balances[sender] -= amount
        self._balances[recipient] += amount
        logger.debug("%s: %s -> %s %d", self._name, sender, recipient, amount)

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        allowed = self._allowances.get((owner, spender), 0)
        if allowed < amount:
            raise TransferFailure(
                f"{self._name}: transfer amount {amount} exceeds allowance of {spender}"
            )
        self.transfer(owner, recipient, amount)
        self._allowances[(owner, spender)] = allowed - amount

    def permit_message(self, owner: str, spender: str, value: int, deadline: int) -> PermitMessage:
        """Build the message *owner* must sign for the next permit."""
        return PermitMessage(
            domain=self._name,
            owner=owner,
            spender=spender,
            value=value,
            nonce=self.nonces(owner),
            deadline=deadline,
        )

    def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        signature: PermitSignature,
        now: int,
    ) -> None:
        self._verify_permit(owner, spender, value, deadline, signature, now)
        self._nonces[owner] += 1
        self._allowances[(owner, spender)] = value
        logger.info("%s: permit %s -> %s for %d", self._name, owner, spender, value)

    def transfer_with_permit(
        self,
        owner: str,
        spender: str,
        recipient: str,
        amount: int,
        deadline: int,
        signature: PermitSignature,
        now: int,
    ) -> None:
        self._verify_permit(owner, spender, amount, deadline, signature, now)

        key = (owner, spender)
        had_allowance = key in self._allowances
        prior_allowance = self._allowances.get(key, 0)
        self._nonces[owner] += 1
        self._allowances[key] = amount
        try:
            self.transfer_from(spender, owner, recipient, amount)
        except TransferFailure:
            self._nonces[owner] -= 1
            if had_allowance:
                self._allowances[key] = prior_allowance
            else:
                del self._allowances[key]
            raise
        logger.info("%s: permit transfer %s -> %s for %d", self._name, owner, recipient, amount)

    def _verify_permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        signature: PermitSignature,
        now: int,
    ) -> None:
        if now > deadline:
            raise ExpiredPermit(f"{self._name}: permit expired at {deadline} (now {now})")
        if self._verifier is None:
            raise InvalidSignature(f"{self._name}: no permit verifier configured")

        message = self.permit_message(owner, spender, value, deadline)
        signer = self._verifier.verify(message, signature)
        if signer is None or signer != owner:
            raise InvalidSignature(f"{self._name}: invalid permit signature for {owner}")
