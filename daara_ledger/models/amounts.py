"""
Numeric input coercion.

Form fields hand us strings, floats, None or garbage. The ledger never
rejects an entry because of a bad number: anything that does not parse
to a finite number becomes zero.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        return ZERO
    elif isinstance(value, (int, float)):
        # str() keeps 0.1 as 0.1 instead of its binary expansion
        result = Decimal(str(value))
    else:
        text = str(value).strip().replace(" ", "").replace(",", ".")
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


def coerce_amount(value: Any, allow_negative: bool = False) -> Decimal:
    """
    Coerce user input to a monetary amount.

    Entry amounts are non-negative, so negatives become zero unless
    `allow_negative` is set (fund balances may legitimately be negative).
    """
    amount = _to_decimal(value)
    if amount < 0 and not allow_negative:
        return ZERO
    return amount


def coerce_percent(value: Any) -> int:
    """Coerce user input to a whole percentage, truncating decimals. The sign is kept."""
    return int(_to_decimal(value))

