"""Float arithmetic and display helpers for PILLS-denominated amounts.

Prices, shares and amounts are floats (the price curve and softmax need them).
Rounding is half-up on the scaled value, so 2.5 -> 3.0 at 0 places where the
builtin round() gives 2.
"""

import math

PRICE_PRECISION = 4


def round_half_up(value: float, places: int = PRICE_PRECISION) -> float:
    """Round to `places` decimals: floor(value * 10^places + 0.5) / 10^places."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def format_pills(amount: float) -> str:
    """1_500_000 -> '1.5M PILLS', 2500 -> '2.5K PILLS', 12.5 -> '12.50 PILLS'."""
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M PILLS"
    if amount >= 1000:
        return f"{amount / 1000:.1f}K PILLS"
    return f"{amount:.2f} PILLS"


def format_share_price(price: float) -> str:
    return f"{price:.{PRICE_PRECISION}f} PILLS"


def format_probability(probability: float) -> str:
    """0.625 -> '62.5%'."""
    return f"{probability * 100:.1f}%"


def format_sol(amount: float) -> str:
    if abs(amount) >= 1000:
        return f"{amount / 1000:.2f}K SOL"
    if abs(amount) >= 1:
        return f"{amount:.3f} SOL"
    return f"{amount:.6f} SOL"


def format_usd(amount: float) -> str:
    """Whole-dollar display with K/M suffixes: 1234567 -> '$1M', -3400 -> '-$3K'."""
    sign = "-" if amount < 0 else ""
    value = abs(amount)
    if value >= 1_000_000:
        return f"{sign}${value / 1_000_000:,.0f}M"
    if value >= 1000:
        return f"{sign}${value / 1000:,.0f}K"
    return f"{sign}${value:,.0f}"


def format_win_rate(win_rate: float) -> str:
    return f"{win_rate:.1f}%"
