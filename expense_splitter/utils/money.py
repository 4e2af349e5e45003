"""
Money helpers shared by the balance and settlement modules.

Amounts cross the module boundary as Decimal values with two decimal places,
but all arithmetic inside the engine is done on integer cents. Converting once
at the edge keeps every fold exact and removes the need to re-round after each
addition.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict

CENT = Decimal('0.01')
CENTS_PER_UNIT = 100

# Balances whose magnitude is below this are treated as settled.
SNAP_THRESHOLD = Decimal('0.01')

# Allowed deviation from zero, per balance entry, before a balance map is
# considered corrupt.
BALANCE_TOLERANCE = Decimal('0.01')


def to_decimal(value: Any) -> Decimal:
    """
    Convert an int, str, float or Decimal amount to Decimal.

    Floats go through str() so that 0.1 becomes Decimal('0.1') rather than its
    binary expansion.

    Raises:
        InvalidOperation: If the value is not numeric
    """
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Decimal, precision: Decimal = CENT) -> Decimal:
    """
    Round to the given precision, halves away from zero.

    Example:
        >>> round_half_up(Decimal("0.005"))
        Decimal('0.01')
        >>> round_half_up(Decimal("-0.005"))
        Decimal('-0.01')
    """
    return value.quantize(precision, rounding=ROUND_HALF_UP)


def to_cents(amount: Any) -> int:
    """
    Convert a decimal amount to whole cents, rounding halves away from zero.

    Example:
        >>> to_cents(Decimal("12.345"))
        1235
    """
    return int(round_half_up(to_decimal(amount)) * CENTS_PER_UNIT)


def from_cents(cents: int) -> Decimal:
    """Convert whole cents back to a two-place Decimal."""
    return (Decimal(cents) / CENTS_PER_UNIT).quantize(CENT)


def divide_cents(cents: int, parts: int) -> int:
    """Split an amount in cents into equal parts, rounding each part half-up."""
    return int((Decimal(cents) / Decimal(parts)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def balances_from_cents(balances: Dict[str, int]) -> Dict[str, Decimal]:
    return {member: from_cents(cents) for member, cents in balances.items()}


def balances_to_cents(balances: Dict[str, Any]) -> Dict[str, int]:
    return {member: to_cents(amount) for member, amount in balances.items()}


def is_valid_amount(value: Any) -> bool:
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return False
    return amount.is_finite()
