"""Shared currency helpers used across the order engine."""

import re
from typing import Optional


def parse_currency(value: object) -> Optional[int]:
    """Parse a peso amount by keeping only its digits.

    Colombian pesos have no minor units, so dots and commas are always
    thousands separators and can be discarded.

    Examples:
        >>> parse_currency("$12.000")
        12000
        >>> parse_currency("COP 1,250,000")
        1250000
        >>> parse_currency("gratis") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    digits = re.sub(r"[^\d]", "", str(value))
    if not digits:
        return None
    return int(digits)


def format_cop(amount: int) -> str:
    """Format an integer peso amount the es-CO way.

    Examples:
        >>> format_cop(54000)
        '$54.000'
        >>> format_cop(0)
        '$0'
    """
    return "$" + f"{int(amount):,}".replace(",", ".")
