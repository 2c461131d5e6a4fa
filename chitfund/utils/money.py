"""
Fixed-point money helpers.

All amounts are integers in minor units (paise); rates are basis points.
"""

from decimal import ROUND_DOWN, Decimal

from chitfund.config.business_constants import BPS_DENOMINATOR


def apply_bps(amount: int, rate_bps: int) -> int:
    """
    Apply a basis-point rate to a minor-unit amount.

    Rounds down so the sum of payouts never exceeds the configured rate.

    Args:
        amount: Amount in minor units
        rate_bps: Rate in basis points (0..10000)

    Returns:
        Commission in minor units
    """
    if amount < 0:
        raise ValueError("Amount must be non-negative")
    if not 0 <= rate_bps <= BPS_DENOMINATOR:
        raise ValueError(f"Rate must be within 0..{BPS_DENOMINATOR} bps")
    return amount * rate_bps // BPS_DENOMINATOR


def to_minor_units(value: Decimal | str | int) -> int:
    """
    Convert a major-unit amount (e.g. rupees) to minor units.

    Fractions below one minor unit are truncated.
    """
    quantized = (Decimal(str(value)) * 100).quantize(
        Decimal("1"), rounding=ROUND_DOWN
    )
    return int(quantized)


def format_minor_units(amount: int, currency: str = "INR") -> str:
    """Human-readable amount, e.g. ``1,000.50 INR``."""
    major = Decimal(amount) / 100
    return f"{major:,.2f} {currency}"
