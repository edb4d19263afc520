"""String processing utilities for the call-data tools.

parse_number() and parse_date() run once per cell during ingestion column
typing and once per row when building sort keys, so both avoid exceptions on
the common path and use pre-compiled patterns.
"""

from datetime import date, datetime

from utils.patterns import CURRENCY_SYMBOLS, DATE_PART, NON_DIGITS, WHITESPACE

# Date formats seen in call-log exports, most common first
DATE_FORMATS = ("%m-%d-%y", "%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d", "%m-%d-%Y")


def parse_number(val) -> float | None:
    """Convert a cell value to float, or return None if it is not numeric.

    Handles:
    - None, empty strings -> None
    - int/float (bool excluded) -> float
    - Strings with currency symbols, whitespace, thousands commas

    Args:
        val: Cell value (any type)

    Returns:
        float or None
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return float(val)
    s = str(val).strip()
    if not s:
        return None
    s = CURRENCY_SYMBOLS.sub('', s).replace(',', '').strip()
    if not s:
        return None
    try:
        num = float(s)
    except ValueError:
        return None
    # float() accepts "nan"/"inf" spellings; those are text in a call log
    if num != num or num in (float("inf"), float("-inf")):
        return None
    return num


def parse_date(val) -> date | None:
    """Parse the date part of a timestamp-like cell value.

    Only the leading date token is considered, so "03-14-24 09:15" and
    "2024-03-14T09:15:00" both resolve to 2024-03-14.

    Args:
        val: Cell value (any type)

    Returns:
        datetime.date or None if no known format matches.
    """
    if val is None:
        return None
    m = DATE_PART.match(str(val))
    if not m:
        return None
    token = m.group(1)
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(token, fmt).date()
        except ValueError:
            continue
    return None


def digits_only(val) -> str:
    """Strip every non-digit character: "(555) 123-4567" -> "5551234567"."""
    if val is None:
        return ""
    return NON_DIGITS.sub('', str(val))


def normalize_whitespace(s: str) -> str:
    """Normalize multiple whitespace characters to single spaces.

    Example:
        "  san   jose\\n" -> "san jose"
    """
    return WHITESPACE.sub(' ', s).strip()
