"""
Abstract Asset Ledger Interface.

Defines the contract a pool needs from the ledger of each asset it
handles. Implementations either complete a transfer or raise
``TransferFailure`` with no effect.
"""

from abc import ABC, abstractmethod

from stakepool.ledger.permit import PermitSignature


class AssetLedger(ABC):
    """
    Abstract asset ledger.

    Supports:
    - Balance queries
    - Direct transfers from a holder
    - Allowance-based transfers by a spender
    - Signed permits that grant an allowance without a prior approval
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier of the asset, also used as the permit domain."""
        pass

    @abstractmethod
    def balance_of(self, holder: str) -> int:
        """Get the balance held by *holder*."""
        pass

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move *amount* from *sender* to *recipient*."""
        pass

    @abstractmethod
    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        """Move *amount* from *owner* to *recipient* using *spender*'s allowance."""
        pass

    @abstractmethod
    def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        signature: PermitSignature,
        now: int,
    ) -> None:
        """Grant *spender* an allowance of *value* on behalf of *owner*.

        Raises:
            ExpiredPermit: If ``now > deadline``.
            InvalidSignature: If the signature does not verify for *owner*.
        """
        pass

    @abstractmethod
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
        """Redeem a permit for *amount* and immediately spend it.

        Either the permit is consumed and the transfer completes, or
        neither happens: a failed transfer leaves the owner's nonce and
        allowance as they were.
        """
        pass
