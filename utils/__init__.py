"""Shared utilities for the market intelligence explorer."""

# Pattern definitions
from utils.patterns import (
    WHITESPACE,
    CURRENCY_SYMBOLS,
    MONEY,
    DMY_DATE,
    YMD_DATE,
    ISO_DATE,
)

# String utilities
from utils.strings import (
    safe_float,
    normalize_whitespace,
    is_blank,
    is_placeholder,
    parse_money,
    parse_dollars,
    parse_number,
)

# Caching
from utils.cache import TTLCache

# HTTP utilities
from utils.http import (
    RetryStrategy,
    SessionManager,
    TimeoutManager,
)

# Configuration
from utils.config import (
    ALL,
    Config,
    ExplorerConfig,
    KnownValues,
)

__all__ = [
    # Patterns
    "WHITESPACE",
    "CURRENCY_SYMBOLS",
    "MONEY",
    "DMY_DATE",
    "YMD_DATE",
    "ISO_DATE",
    # Strings
    "safe_float",
    "normalize_whitespace",
    "is_blank",
    "is_placeholder",
    "parse_money",
    "parse_dollars",
    "parse_number",
    # Cache
    "TTLCache",
    # HTTP
    "RetryStrategy",
    "SessionManager",
    "TimeoutManager",
    # Config
    "ALL",
    "Config",
    "ExplorerConfig",
    "KnownValues",
]
