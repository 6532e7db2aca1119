"""String processing utilities for the explorer tools.

safe_float() and parse_money() run once per record during client-side
aggregation, so they stick to pre-compiled patterns and cheap string ops.
"""

import math

from utils.patterns import WHITESPACE, CURRENCY_SYMBOLS, MONEY

# Placeholder strings the backend emits where a value is missing
PLACEHOLDER_STRINGS = frozenset({"null", "undefined", "-"})

_MONEY_MULTIPLIERS = {"k": 0.001, "m": 1.0, "b": 1000.0}


def safe_float(val, default: float = 0.0) -> float:
    """Safely convert value to float with fallback default.

    Handles:
    - None, empty strings -> default
    - Numeric types -> float (bool counts as a number)
    - Strings with currency symbols, whitespace, commas
    - NaN and infinities ("NaN", "inf", float('nan')) -> default
    - Invalid input -> default

    Args:
        val: Value to convert (any type)
        default: Value to return on failure (default: 0.0)

    Returns:
        float: Parsed value or default
    """
    if val is None or val == '':
        return default
    if isinstance(val, (int, float)):
        result = float(val)
    else:
        try:
            s = str(val).strip()
            s = CURRENCY_SYMBOLS.sub('', s)
            s = s.replace(',', '').strip()
            if not s:
                return default
            result = float(s)
        except (ValueError, TypeError):
            return default
    # Non-finite amounts would break sorting and sums downstream
    return result if math.isfinite(result) else default


def normalize_whitespace(s: str) -> str:
    """Normalize multiple whitespace characters to single spaces.

    Example:
        "Berlin \\n  Germany" -> "Berlin Germany"
    """
    return WHITESPACE.sub(' ', s).strip()


def is_blank(val) -> bool:
    """True for None and for strings that are empty after stripping."""
    if val is None:
        return True
    return isinstance(val, str) and not val.strip()


def is_placeholder(val) -> bool:
    """True for missing values, blank strings and backend placeholders.

    Example:
        is_placeholder("undefined") -> True
        is_placeholder(" Berlin ") -> False
    """
    if is_blank(val):
        return True
    return isinstance(val, str) and val.strip().lower() in PLACEHOLDER_STRINGS


def parse_money(val) -> float | None:
    """Parse a money string into millions.

    The funding feeds mix "$10M", "1.5B", "250K" and bare numbers. Bare
    numbers are taken as already being in millions, which is how the backend
    stores investment sizes.

    Example:
        parse_money("$1.5B") -> 1500.0
        parse_money("250k") -> 0.25
        parse_money("n/a") -> None

    Returns:
        Amount in millions, or None when no number can be read.
    """
    if val is None:
        return None
    if isinstance(val, (int, float)):
        return float(val) if math.isfinite(val) else None

    s = CURRENCY_SYMBOLS.sub('', str(val)).replace(',', '')
    match = MONEY.match(s)
    if not match:
        return None
    amount = float(match.group(1))
    suffix = (match.group(2) or "m").lower()
    return amount * _MONEY_MULTIPLIERS[suffix]


def parse_dollars(val) -> float | None:
    """Like parse_money(), but bare numbers are dollars, not millions.

    Franchise investments come as "$250,000" or "$250K".

    Example:
        parse_dollars("$250,000") -> 0.25
        parse_dollars("$250K") -> 0.25
    """
    if val is None:
        return None
    if isinstance(val, (int, float)):
        return float(val) / 1_000_000 if math.isfinite(val) else None

    s = CURRENCY_SYMBOLS.sub('', str(val)).replace(',', '')
    match = MONEY.match(s)
    if not match:
        return None
    amount = float(match.group(1))
    suffix = match.group(2)
    if suffix is None:
        return amount / 1_000_000
    return amount * _MONEY_MULTIPLIERS[suffix.lower()]


def parse_number(val) -> float | None:
    """Plain number, tolerating a trailing percent sign ("45%", "1,200").

    Returns None instead of a default, so callers can tell "unreadable"
    from zero.
    """
    if isinstance(val, str):
        val = val.strip().rstrip('%')
    return safe_float(val, default=None)
