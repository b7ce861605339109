"""Join newest-first series on exact date equality.

Sources publish on independent calendars (US and Japanese holidays differ),
so rows are matched by date, never by position.
"""

import operator
from datetime import date
from typing import Callable, Iterable, Sequence

from rate_spread_monitor.errors import InsufficientOverlapError
from rate_spread_monitor.models import AlignedRow, Point


def _lookup(points: Iterable[Point]) -> dict[date, float]:
    return {p.date: p.value for p in points}


def align(
    series_a: Iterable[Point],
    series_b: Iterable[Point],
    min_count: int,
    combinator: Callable[[float, float], float] = operator.sub,
) -> list[AlignedRow]:
    """
    Intersect two newest-first series by date.

    Iterates ``series_a`` in its own order, keeping dates also present in
    ``series_b``, until ``min_count`` rows are collected.

    Args:
        series_a: Newest-first points (drives the output order)
        series_b: Newest-first points
        min_count: Rows required
        combinator: Derived value from (a, b); subtraction gives a spread

    Returns:
        Exactly ``min_count`` aligned rows, newest first

    Raises:
        InsufficientOverlapError: fewer than ``min_count`` common dates
    """
    points_a = list(series_a)
    lookup_b = _lookup(series_b)

    rows: list[AlignedRow] = []
    for point in points_a:
        if len(rows) >= min_count:
            break
        if point.date not in lookup_b:
            continue
        b = lookup_b[point.date]
        rows.append(AlignedRow(point.date, (point.value, b), combinator(point.value, b)))

    if len(rows) < min_count:
        raise InsufficientOverlapError(
            f"Not enough common dates to align (need {min_count}, got {len(rows)}; "
            f"series sizes {len(points_a)} and {len(lookup_b)})",
            required=min_count,
            available=len(rows),
        )
    return rows


def align_many(
    series: Sequence[Iterable[Point]],
    min_count: int,
    combinator: Callable[..., float] | None = None,
) -> list[AlignedRow]:
    """
    N-way version of ``align``; the first series drives the order.

    ``derived`` is ``combinator(*values)`` when given, otherwise first minus
    second (or the single value for one series).
    """
    if not series:
        raise ValueError("align_many needs at least one series")

    first = list(series[0])
    lookups = [_lookup(s) for s in series[1:]]

    rows: list[AlignedRow] = []
    for point in first:
        if len(rows) >= min_count:
            break
        if not all(point.date in lookup for lookup in lookups):
            continue
        values = (point.value,) + tuple(lookup[point.date] for lookup in lookups)
        if combinator is not None:
            derived = combinator(*values)
        elif len(values) >= 2:
            derived = values[0] - values[1]
        else:
            derived = values[0]
        rows.append(AlignedRow(point.date, values, derived))

    if len(rows) < min_count:
        raise InsufficientOverlapError(
            f"Not enough common dates across {len(series)} series "
            f"(need {min_count}, got {len(rows)})",
            required=min_count,
            available=len(rows),
        )
    return rows
