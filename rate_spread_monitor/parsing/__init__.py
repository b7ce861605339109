"""Text parsing for loosely structured upstream exports."""

from rate_spread_monitor.parsing.dates import (
    normalize_date,
    parse_calendar_date,
    try_normalize_date,
)
from rate_spread_monitor.parsing.tabular import parse_number, split_lines, split_row
from rate_spread_monitor.parsing.header_locator import (
    DATE_PATTERNS,
    TENOR_10Y_PATTERNS,
    find_column_index,
    locate_header,
)

__all__ = [
    "normalize_date",
    "parse_calendar_date",
    "try_normalize_date",
    "parse_number",
    "split_lines",
    "split_row",
    "DATE_PATTERNS",
    "TENOR_10Y_PATTERNS",
    "find_column_index",
    "locate_header",
]
