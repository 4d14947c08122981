"""Display helpers shared by the reports and the UI."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

NOT_AVAILABLE = "N/A"


def plain_amount(value: Decimal) -> str:
    """Machine-friendly amount: no grouping, no exponent, no trailing zeros."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_amount(value: Decimal, currency: str = "FCFA") -> str:
    """
    Human-friendly amount with space-grouped thousands.

    format_amount(Decimal("1234567")) == "1 234 567 FCFA"
    """
    if value == value.to_integral_value():
        text = f"{value:,.0f}"
    else:
        text = f"{value:,.2f}"
    text = text.replace(",", " ")
    return f"{text} {currency}" if currency else text


def format_timestamp(value: Optional[datetime]) -> str:
    """dd/mm/yyyy HH:MM, or N/A for a missing timestamp."""
    if value is None:
        return NOT_AVAILABLE
    return value.strftime("%d/%m/%Y %H:%M")
