"""Date text normalization.

Upstream exports mix ISO dates, slash/dot separated dates and Japanese
era-calendar dates (e.g. ``H1.5.7``). Everything is normalized to an ISO
``YYYY-MM-DD`` key. Only structural range checks are applied (month 1-12,
day 1-31); day-of-month validity is left to ``parse_calendar_date``.
"""

import re
from datetime import date

from rate_spread_monitor.config.settings import ERA_YEAR_OFFSETS
from rate_spread_monitor.errors import InvalidFormatError


_GREGORIAN_PATTERNS = [
    re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$"),
    re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$"),
    re.compile(r"^(\d{4})\.(\d{1,2})\.(\d{1,2})$"),
]

_ERA_PATTERN = re.compile(r"^([A-Z])(\d{1,2})\.(\d{1,2})\.(\d{1,2})$")


def _key(year: int, month: int, day: int, raw: str) -> str:
    if not 1 <= month <= 12:
        raise InvalidFormatError(f"Month out of range in date {raw!r}", raw=raw)
    if not 1 <= day <= 31:
        raise InvalidFormatError(f"Day out of range in date {raw!r}", raw=raw)
    return f"{year:04d}-{month:02d}-{day:02d}"


def normalize_date(
    text: str, era_offsets: dict[str, int] | None = None
) -> str:
    """
    Normalize date text to an ISO ``YYYY-MM-DD`` key.

    Args:
        text: Raw date cell, e.g. "2024/3/1", "2024.03.01" or "R6.3.1"
        era_offsets: Era letter -> Gregorian year offset. Defaults to
            ``ERA_YEAR_OFFSETS``.

    Returns:
        Canonical date key

    Raises:
        InvalidFormatError: no pattern matched or month/day out of range
    """
    raw = str(text).strip()
    if not raw:
        raise InvalidFormatError("Empty date text", raw=raw)

    for pattern in _GREGORIAN_PATTERNS:
        m = pattern.match(raw)
        if m:
            return _key(int(m.group(1)), int(m.group(2)), int(m.group(3)), raw)

    m = _ERA_PATTERN.match(raw)
    if m:
        offsets = ERA_YEAR_OFFSETS if era_offsets is None else era_offsets
        letter = m.group(1)
        if letter in offsets:
            year = offsets[letter] + int(m.group(2))
            return _key(year, int(m.group(3)), int(m.group(4)), raw)

    raise InvalidFormatError(f"Unrecognized date format: {raw[:40]!r}", raw=raw)


def try_normalize_date(text: str, era_offsets: dict[str, int] | None = None) -> str | None:
    """Like ``normalize_date`` but returns None instead of raising."""
    try:
        return normalize_date(text, era_offsets)
    except InvalidFormatError:
        return None


def parse_calendar_date(text: str, era_offsets: dict[str, int] | None = None) -> date:
    """Normalize and convert to ``datetime.date``, rejecting impossible days."""
    key = normalize_date(text, era_offsets)
    try:
        return date.fromisoformat(key)
    except ValueError as e:
        raise InvalidFormatError(f"Invalid calendar date {key} ({e})", raw=text) from e
