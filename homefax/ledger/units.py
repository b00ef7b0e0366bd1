from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Any

from homefax.core.errors import InvalidAmount

# Native unit (ether) has 18 decimal places; the smallest unit is wei.
NATIVE_DECIMALS = 18
_SCALE = Decimal(10) ** NATIVE_DECIMALS
# wide enough for any uint256 amount
_PRECISION = 100


def _d(x: Any) -> Decimal:
    if x is None:
        raise InvalidAmount("Missing amount.")
    if isinstance(x, (float, bool)):
        # floats cannot carry an exact decimal amount
        raise InvalidAmount("Amount must be a decimal string.")
    try:
        return Decimal(str(x).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid amount: {x!r}")


def to_smallest_unit(amount: Any) -> int:
    """
    "0.5" -> 500000000000000000

    Exact: anything finer than one wei is rejected rather than rounded.
    """
    value = _d(amount)
    if not value.is_finite():
        raise InvalidAmount(f"Invalid amount: {amount!r}")
    if value < 0:
        raise InvalidAmount("Amount must not be negative.")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value * _SCALE
        if scaled != scaled.to_integral_value():
            raise InvalidAmount(
                f"Amount {amount!r} has more than {NATIVE_DECIMALS} decimal places."
            )
        return int(scaled)


def from_smallest_unit(wei: int) -> str:
    """
    500000000000000000 -> "0.5", 0 -> "0", 10**18 -> "1"
    """
    if wei < 0:
        raise InvalidAmount("Ledger amounts are never negative.")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = (Decimal(int(wei)) / _SCALE).normalize()
        return format(value, "f")
