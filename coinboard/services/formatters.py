"""Display helpers for prices, large amounts and percentages."""

from __future__ import annotations

import math

_SUFFIXES = (
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)


def format_currency(value: float) -> str:
    """Abbreviate a dollar amount: 1234567 -> "$1.23M"."""
    for threshold, suffix in _SUFFIXES:
        if value >= threshold:
            return f"${value / threshold:.2f}{suffix}"
    return f"${value:.2f}"


def format_percentage(value: float) -> int:
    """Round half up to a whole percent (2.5 -> 3, -2.5 -> -2)."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def format_price(price: float) -> str:
    return f"{price:,.2f}"
