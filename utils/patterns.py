"""Pre-compiled regex patterns for the explorer tools.

All patterns are compiled once at module import so hot paths (record parsing,
money parsing during aggregation) don't recompile them per call.

Usage:
    from utils.patterns import DMY_DATE, MONEY

    if DMY_DATE.match(text):
        ...
"""

import re

# Whitespace normalization: multiple spaces/tabs/newlines
WHITESPACE = re.compile(r'\s+')

# Currency symbols and thousands separators stripped before numeric conversion
CURRENCY_SYMBOLS = re.compile(r'[\$€£¥₹₽]')

# Money strings as the backend renders them: "$10M", "1.5B", "250k", "12,000"
# Captures the number (group 1) and an optional magnitude suffix (group 2)
MONEY = re.compile(r'^\s*(-?\d+(?:\.\d+)?)\s*([kKmMbB])?')

# Free-text dates used by the European events feed
# "05/09/2025" or "5-9-2025" (day first)
DMY_DATE = re.compile(r'^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$')
# "2025/09/05" or "2025-9-5" (year first)
YMD_DATE = re.compile(r'^(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})$')
# ISO date or datetime prefix: "2025-09-05", "2025-09-05T10:00:00Z"
ISO_DATE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$')
