"""
Fixed-point arithmetic.

All amounts are unsigned integers scaled by 10**18. Python integers are
arbitrary precision, so intermediate products never wrap; results are
checked against the uint256 range before they are stored.
"""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Union

from stakepool.exceptions import FixedPointOverflow, ValidationError

DECIMALS = 18
SCALE = 10**DECIMALS
UINT256_MAX = 2**256 - 1


def checked(value: int) -> int:
    """Return *value* if it fits an unsigned 256-bit word."""
    if value < 0:
        raise FixedPointOverflow(f"Negative fixed-point value: {value}")
    if value > UINT256_MAX:
        raise FixedPointOverflow(f"Fixed-point value exceeds uint256: {value}")
    return value


def mul(a: int, b: int) -> int:
    return checked(checked(a) * checked(b))


def mul_div(a: int, b: int, denominator: int) -> int:
    """Compute ``floor(a * b / denominator)`` with overflow checks.

    The product is formed at full precision and only the quotient has to
    fit the uint256 range.
    """
    if denominator <= 0:
        raise ValidationError("Division by zero in fixed-point math")
    return checked(checked(a) * checked(b) // denominator)


def to_units(amount: Union[int, str, Decimal], decimals: int = DECIMALS) -> int:
    """Convert a human-readable token amount into scaled integer units.

    >>> to_units(100)
    100000000000000000000
    >>> to_units("0.5")
    500000000000000000
    """
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = Decimal(str(amount)) * (Decimal(10) ** decimals)
        if scaled != scaled.to_integral_value():
            raise ValidationError(f"Amount {amount} has more than {decimals} decimals")
        return checked(int(scaled))


def from_units(units: int, decimals: int = DECIMALS) -> Decimal:
    """Convert scaled integer units back into a Decimal token amount."""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(units) / (Decimal(10) ** decimals)


__all__ = [
    "DECIMALS",
    "SCALE",
    "UINT256_MAX",
    "checked",
    "mul",
    "mul_div",
    "to_units",
    "from_units",
]
