"""Display formatting helpers shared by the registry and the maintenance command."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union


SIZE_UNITS = ["B", "KB", "MB", "GB"]
CENTS = Decimal("0.01")


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count for display.

    Divides by 1024 until the value fits the unit (up to GB) and keeps at
    most two decimals, dropping trailing zeros: 1536 -> "1.5 KB".

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string
    """
    value = float(size_bytes)
    order = 0

    while value >= 1024 and order < len(SIZE_UNITS) - 1:
        order += 1
        value = value / 1024

    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[order]}"


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Coerce a value to a Decimal rounded to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal, currency: str = "R") -> str:
    """Format an amount with thousands separators: R4,500.00."""
    return f"{currency}{to_money(value):,.2f}"
