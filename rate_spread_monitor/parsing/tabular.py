"""Permissive delimited-text splitting.

Government CSV exports drift between releases: BOMs, full-width commas,
tab-separated variants and stray whitespace all appear. Quoted fields are
not supported; these exports never quote.
"""

import math
import re

BOM = "\ufeff"
FULLWIDTH_COMMA = "\uff0c"

_LINE_BREAK = re.compile(r"\r?\n")


def split_row(line: str) -> list[str]:
    """Split one line into trimmed fields (comma first, tab as fallback)."""
    trimmed = line.lstrip(BOM).strip()
    fields = trimmed.replace(FULLWIDTH_COMMA, ",").split(",")
    if len(fields) <= 1:
        fields = trimmed.split("\t")
    return [f.strip() for f in fields]


def split_lines(text: str) -> list[str]:
    """Split text into trimmed, non-blank lines."""
    lines = (line.lstrip(BOM).strip() for line in _LINE_BREAK.split(text))
    return [line for line in lines if line]


def parse_number(text: str | None) -> float | None:
    """Parse a finite float; sentinels like "", ".", "-" or "ND" give None."""
    if text is None:
        return None
    raw = str(text).strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None
