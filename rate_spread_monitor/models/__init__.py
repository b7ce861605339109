"""Data models."""

from rate_spread_monitor.models.market_data import (
    AlignedRow,
    Classification,
    HeaderLocation,
    Label,
    Monotonicity,
    Point,
    PullbackResult,
    RawSeries,
    Report,
    Signal,
    TrendStatistic,
)

__all__ = [
    "AlignedRow",
    "Classification",
    "HeaderLocation",
    "Label",
    "Monotonicity",
    "Point",
    "PullbackResult",
    "RawSeries",
    "Report",
    "Signal",
    "TrendStatistic",
]
