"""
Currency Formatting

Locale-aware digit grouping for amounts shown next to a currency symbol.
The default locale groups Indian-style (1,23,456), matching the default
INR budget; pass another locale for western grouping.
"""

import math

from babel import numbers

from yosan.config import get_settings


def format_currency(amount: float, symbol: str = "₹", locale: str | None = None) -> str:
    """
    Render `amount` with locale grouping, prefixed by `symbol`.

    Up to three fraction digits are kept (1234.5 -> "₹1,234.5").
    Non-finite amounts render as zero.

    Args:
        amount: The amount to format
        symbol: Currency symbol placed before the number
        locale: Babel locale such as 'en_IN' or 'en_US';
            defaults to the YOSAN_CURRENCY_LOCALE setting
    """
    if not math.isfinite(amount):
        amount = 0
    return f"{symbol}{numbers.format_decimal(amount, locale=locale or get_settings().currency_locale)}"
