"""Display formatting for prices and distances."""

from __future__ import annotations

from ..models import DEFAULT_CURRENCY


def format_price(amount: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Format an amount as ``<symbol><amount>`` with two decimals.

    No locale handling: every currency gets two fractional digits.
    """
    return f"{currency}{amount:.2f}"


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
