"""Alignment, trend and classification."""

from rate_spread_monitor.indicators.aligner import align, align_many
from rate_spread_monitor.indicators.trend import monotonicity, trend, trend_return
from rate_spread_monitor.indicators.classifier import (
    Thresholds,
    classify,
    classify_extended,
)
from rate_spread_monitor.indicators.report import (
    RateSpreadReport,
    compute_report,
    compute_report_safe,
)
from rate_spread_monitor.indicators.pullback import evaluate, screen_pullbacks
from rate_spread_monitor.indicators.fourpoints import collect_four_points, four_points, to_csv

__all__ = [
    "align",
    "align_many",
    "monotonicity",
    "trend",
    "trend_return",
    "Thresholds",
    "classify",
    "classify_extended",
    "RateSpreadReport",
    "compute_report",
    "compute_report_safe",
    "evaluate",
    "screen_pullbacks",
    "collect_four_points",
    "four_points",
    "to_csv",
]
