"""Locate the header row and date/target columns in loosely structured CSVs.

The MOF yield-curve exports put titles, unit annotations and sometimes
multi-row headers above the data, and the header position shifts between
releases. Three strategies are tried in order:

1. direct: a non-metadata line with >= 6 columns carrying both a date
   header and a target header
2. two_row: a non-metadata line carrying the target header whose next line
   starts with a date
3. data_inference: the line before the first row that looks like data
   (date in column 0, >= 3 numeric cells among the next 9); metadata
   lines are accepted here since the data row is the evidence

Failures include the first 20 lines of input so they can be debugged from
the error message alone.
"""

import logging
import re

from rate_spread_monitor.errors import HeaderNotFoundError
from rate_spread_monitor.models.market_data import HeaderLocation
from rate_spread_monitor.parsing.dates import try_normalize_date
from rate_spread_monitor.parsing.tabular import parse_number, split_row


logger = logging.getLogger(__name__)

MAX_SCAN_LINES = 200
DIAGNOSTIC_LINES = 20
DIAGNOSTIC_LINE_WIDTH = 120
MIN_DIRECT_COLUMNS = 6
MIN_NUMERIC_CELLS = 3
NUMERIC_LOOKAHEAD = 9

# Ordered: exact labels before substring matches
DATE_PATTERNS: list[re.Pattern] = [
    re.compile(r"^(日付|date|基準日)$"),
    re.compile(r"日付"),
    re.compile(r"基準日"),
    re.compile(r"date"),
]

TENOR_10Y_PATTERNS: list[re.Pattern] = [
    re.compile(r"^10年$"),
    re.compile(r"^10$"),
    re.compile(r"^10y$"),
    re.compile(r"^10year$"),
    re.compile(r"10年"),
]

# Title, unit and timestamp lines above the header
METADATA_MARKERS = (
    "国債金利情報",
    "単位",
    "unit",
    "title",
    "作成",
    "公表",
    "更新",
    "出所",
)

_WHITESPACE = re.compile(r"[\s　]+")


def normalize_header(cell: str) -> str:
    """Remove full-width and regular whitespace, lowercase."""
    return _WHITESPACE.sub("", cell).lower()


def find_column_index(cells: list[str], patterns: list[re.Pattern]) -> int:
    """Index of the first cell matching the earliest pattern, or -1."""
    normalized = [normalize_header(c) for c in cells]
    for pattern in patterns:
        for idx, cell in enumerate(normalized):
            if cell and pattern.search(cell):
                return idx
    return -1


def is_metadata_line(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in METADATA_MARKERS)


def looks_like_data_row(cells: list[str]) -> bool:
    """Date in the first column and enough numeric cells after it."""
    if not cells or try_normalize_date(cells[0]) is None:
        return False
    lookahead = cells[1 : 1 + NUMERIC_LOOKAHEAD]
    numeric = sum(1 for c in lookahead if parse_number(c) is not None)
    return numeric >= MIN_NUMERIC_CELLS


def _direct(
    lines: list[str],
    rows: list[list[str]],
    target_patterns: list[re.Pattern],
    date_patterns: list[re.Pattern],
) -> HeaderLocation | None:
    for i, cells in enumerate(rows):
        if len(cells) < MIN_DIRECT_COLUMNS or is_metadata_line(lines[i]):
            continue
        date_idx = find_column_index(cells, date_patterns)
        target_idx = find_column_index(cells, target_patterns)
        if date_idx >= 0 and target_idx >= 0 and date_idx != target_idx:
            return HeaderLocation(i, tuple(cells), date_idx, target_idx, "direct")
    return None


def _two_row(
    lines: list[str],
    rows: list[list[str]],
    target_patterns: list[re.Pattern],
    date_patterns: list[re.Pattern],
) -> HeaderLocation | None:
    for i, cells in enumerate(rows[:-1]):
        if is_metadata_line(lines[i]):
            continue
        target_idx = find_column_index(cells, target_patterns)
        if target_idx <= 0:
            continue
        following = rows[i + 1]
        if following and try_normalize_date(following[0]) is not None:
            return HeaderLocation(i, tuple(cells), 0, target_idx, "two_row")
        date_idx = find_column_index(cells, date_patterns)
        if (
            date_idx >= 0
            and date_idx != target_idx
            and date_idx < len(following)
            and try_normalize_date(following[date_idx]) is not None
        ):
            return HeaderLocation(i, tuple(cells), date_idx, target_idx, "two_row")
    return None


def _data_inference(
    rows: list[list[str]], target_patterns: list[re.Pattern]
) -> HeaderLocation | None:
    for i, cells in enumerate(rows):
        if not looks_like_data_row(cells):
            continue
        if i == 0:
            return None
        header = rows[i - 1]
        target_idx = find_column_index(header, target_patterns)
        if target_idx <= 0:
            return None
        return HeaderLocation(i - 1, tuple(header), 0, target_idx, "data_inference")
    return None


def _diagnostic_sample(lines: list[str]) -> list[str]:
    return [line[:DIAGNOSTIC_LINE_WIDTH] for line in lines[:DIAGNOSTIC_LINES]]


def locate_header(
    lines: list[str],
    target_patterns: list[re.Pattern],
    *,
    date_patterns: list[re.Pattern] | None = None,
    max_lines: int = MAX_SCAN_LINES,
) -> HeaderLocation:
    """
    Locate the header row and the date/target column indices.

    Args:
        lines: Non-blank text lines
        target_patterns: Ordered patterns for the target column header
        date_patterns: Ordered patterns for the date column header
        max_lines: Only the first ``max_lines`` lines are scanned

    Returns:
        HeaderLocation with the strategy that found it

    Raises:
        HeaderNotFoundError: all strategies failed
    """
    date_patterns = DATE_PATTERNS if date_patterns is None else date_patterns
    scan = lines[:max_lines]
    rows = [split_row(line) for line in scan]

    location = (
        _direct(scan, rows, target_patterns, date_patterns)
        or _two_row(scan, rows, target_patterns, date_patterns)
        or _data_inference(rows, target_patterns)
    )
    if location is not None:
        logger.debug(
            f"Header found at line {location.header_row_index} via {location.strategy}: "
            f"date col {location.date_column_index}, target col {location.target_column_index}"
        )
        return location

    sample = _diagnostic_sample(lines)
    raise HeaderNotFoundError(
        f"Header row not found (searched first {len(scan)} lines). "
        f"First {len(sample)} lines:\n" + "\n".join(sample),
        sample=sample,
        context={"scanned_lines": len(scan)},
    )
