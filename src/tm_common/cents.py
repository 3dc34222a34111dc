"""Integer arithmetic utilities for cents-based balances.

Balances and transaction amounts are stored as int (cents). The API speaks
decimal amounts with at most two fractional digits; conversion happens at the
schema boundary only.
"""

from decimal import Decimal


def to_cents(amount: Decimal) -> int:
    """Convert a decimal amount to cents: Decimal('12.34') -> 1234.

    Raises ValueError if the amount has more than two fractional digits.
    """
    cents = amount * 100
    if cents != cents.to_integral_value():
        raise ValueError(f"Amount has more than two decimal places: {amount}")
    return int(cents)


def cents_to_amount(cents: int) -> float:
    """Convert cents to a JSON-friendly number: 1234 -> 12.34."""
    return float(Decimal(cents) / 100)


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
