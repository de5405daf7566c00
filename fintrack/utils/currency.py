"""
Currency formatting helpers.

Display-only formatting for dashboard amounts and reports. Values are plain
floats; rounding follows the usual half-up display convention.
"""
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Tuple

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}

SUPPORTED_CURRENCIES = tuple(CURRENCY_SYMBOLS)

# (threshold, divisor, suffix), checked top-down
INDIAN_COMPACT_UNITS: List[Tuple[float, float, str]] = [
    (1e7, 1e7, "Cr"),
    (1e5, 1e5, "L"),
    (1e3, 1e3, "K"),
]
INTERNATIONAL_COMPACT_UNITS: List[Tuple[float, float, str]] = [
    (1e6, 1e6, "M"),
    (1e3, 1e3, "K"),
]


def get_currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())


def _prefix(currency: str) -> str:
    code = currency.upper()
    if code == "INR":
        return "₹ "
    if code in CURRENCY_SYMBOLS:
        return CURRENCY_SYMBOLS[code]
    return f"{code} "


def _round_half_up(value: float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def _group_indian(digits: str) -> str:
    """Group an integer digit string as 12,34,56,789."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def group_digits(amount: float, currency: str, places: int = 0) -> str:
    """Format a non-negative amount with the currency's digit grouping."""
    rounded = _round_half_up(abs(amount), places)
    text = f"{rounded:.{places}f}"
    whole, _, fraction = text.partition(".")
    if currency.upper() == "INR":
        whole = _group_indian(whole)
    else:
        whole = f"{int(whole):,}"
    return f"{whole}.{fraction}" if fraction else whole


def format_currency(amount: float, currency: str = "INR") -> str:
    """
    Format an amount for display, e.g. ``format_currency(-123456, "INR")``
    gives ``"-₹ 1,23,456"``. The sign is applied after formatting the
    absolute value.
    """
    formatted = f"{_prefix(currency)}{group_digits(amount, currency)}"
    return f"-{formatted}" if amount < 0 else formatted


def format_currency_compact(amount: float, currency: str = "INR") -> str:
    """
    Abbreviate large amounts: lakh/crore for INR, thousand/million elsewhere.

    >>> format_currency_compact(12_500_000, "INR")
    '₹ 1.3Cr'
    >>> format_currency_compact(12_500, "USD")
    '$12.5K'
    """
    absolute = abs(amount)
    units = INDIAN_COMPACT_UNITS if currency.upper() == "INR" else INTERNATIONAL_COMPACT_UNITS

    body = None
    for threshold, divisor, suffix in units:
        if absolute >= threshold:
            body = f"{_round_half_up(absolute / divisor, 1):.1f}{suffix}"
            break
    if body is None:
        body = group_digits(absolute, currency, places=2).rstrip("0").rstrip(".")

    formatted = f"{_prefix(currency)}{body}"
    return f"-{formatted}" if amount < 0 else formatted


def parse_amount(text: str) -> float:
    """Parse a displayed amount back to a float, 0.0 when it cannot be read."""
    cleaned = re.sub(r"[₹$€£¥,\s]", "", text or "")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0
