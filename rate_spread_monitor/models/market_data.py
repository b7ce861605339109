"""Data models for market data."""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterable

import pandas as pd

from rate_spread_monitor.errors import InsufficientPointsError, InvalidFormatError


@dataclass(frozen=True)
class Point:
    """Single dated observation."""

    date: date
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "value": self.value}


@dataclass(frozen=True)
class RawSeries:
    """Newest-first sequence of points from one source.

    Use ``RawSeries.build`` to construct: it enforces descending unique dates,
    finite values and the requested minimum length.
    """

    name: str
    source: str
    points: tuple[Point, ...] = ()

    @classmethod
    def build(
        cls, name: str, source: str, points: Iterable[Point], min_count: int = 0
    ) -> "RawSeries":
        points = tuple(points)
        for i, point in enumerate(points):
            if not math.isfinite(point.value):
                raise InvalidFormatError(
                    f"{name}: non-finite value {point.value!r} at {point.date}"
                )
            if i > 0 and not points[i - 1].date > point.date:
                raise InvalidFormatError(
                    f"{name}: points must be strictly newest-first, "
                    f"got {points[i - 1].date} followed by {point.date}"
                )
        if len(points) < min_count:
            raise InsufficientPointsError(
                f"{name} ({source}): not enough valid points "
                f"(need {min_count}, got {len(points)})",
                required=min_count,
                available=len(points),
            )
        return cls(name=name, source=source, points=points)

    @classmethod
    def empty(cls, name: str, source: str) -> "RawSeries":
        return cls(name=name, source=source, points=())

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]

    def head(self, n: int) -> "RawSeries":
        return RawSeries(self.name, self.source, self.points[:n])

    def to_frame(self) -> pd.DataFrame:
        """DataFrame with DatetimeIndex (ascending) and 'value' column."""
        if not self.points:
            return pd.DataFrame(columns=["value"])
        df = pd.DataFrame(
            {"value": [p.value for p in self.points]},
            index=pd.to_datetime([p.date for p in self.points]),
        )
        df.index.name = "date"
        return df.sort_index()


@dataclass(frozen=True)
class HeaderLocation:
    """Where the header row and the date/target columns sit in a CSV."""

    header_row_index: int
    header_cells: tuple[str, ...]
    date_column_index: int
    target_column_index: int
    strategy: str

    def __post_init__(self) -> None:
        width = len(self.header_cells)
        for label, idx in (
            ("date", self.date_column_index),
            ("target", self.target_column_index),
        ):
            if not 0 <= idx < width:
                raise InvalidFormatError(
                    f"{label} column index {idx} out of range for "
                    f"{width} header cells: {'|'.join(self.header_cells)}"
                )


@dataclass(frozen=True)
class AlignedRow:
    """Values of several series on one common date, newest-first in lists."""

    date: date
    values: tuple[float, ...]
    derived: float

    @property
    def a(self) -> float:
        return self.values[0]

    @property
    def b(self) -> float:
        return self.values[1]


class Monotonicity(Enum):
    """Direction of a newest-first window.

    INCREASING means every value is smaller than the one before it in time,
    i.e. values[i - 1] < values[i] scanning from newest to oldest. A yield
    spread that narrowed on each of the last five days is INCREASING.
    """

    INCREASING = "increasing"
    DECREASING = "decreasing"
    MIXED = "mixed"


@dataclass(frozen=True)
class TrendStatistic:
    """Short-window trend over ``steps`` periods."""

    latest: float
    prior: float
    delta: float
    avg_daily_delta: float
    monotonicity: Monotonicity
    steps: int = 5
    ret: float | None = None

    def to_dict(self) -> dict[str, Any]:
        out = {
            "latest": self.latest,
            "prior": self.prior,
            "delta": self.delta,
            "avg_daily_delta": self.avg_daily_delta,
            "monotonicity": self.monotonicity.value,
            "steps": self.steps,
        }
        if self.ret is not None:
            out["ret"] = self.ret
        return out


class Label(Enum):
    """Qualitative outcome of the classifier."""

    YEN_STRENGTH_ALERT = "円高警戒"
    YEN_STRENGTH_ALERT_WEAK = "円高警戒（弱）"
    YEN_WEAKNESS_CONTINUES = "円安継続"
    YEN_WEAKNESS_CONTINUES_WEAK = "円安継続（弱）"
    NEUTRAL = "中立"

    @property
    def marker(self) -> str:
        if self in (Label.YEN_STRENGTH_ALERT, Label.YEN_STRENGTH_ALERT_WEAK):
            return "🟢"
        if self in (Label.YEN_WEAKNESS_CONTINUES, Label.YEN_WEAKNESS_CONTINUES_WEAK):
            return "🔴"
        return "🟡"


REDUCED_CONFIDENCE_QUALIFIER = "（先物データなし）"


@dataclass(frozen=True)
class Classification:
    """Label plus display marker."""

    label: Label
    reduced_confidence: bool = False

    @property
    def marker(self) -> str:
        return self.label.marker

    @property
    def display_label(self) -> str:
        if self.reduced_confidence:
            return self.label.value + REDUCED_CONFIDENCE_QUALIFIER
        return self.label.value


@dataclass
class Report:
    """Complete result of one pipeline run."""

    series: dict[str, dict[str, Any]]
    derived: dict[str, Any]
    trend: dict[str, TrendStatistic | None]
    classification: Classification
    spread_classification: Classification | None = None
    notes: dict[str, str] = field(default_factory=dict)
    ok: bool = True

    @property
    def label(self) -> Label:
        return self.classification.label

    @property
    def marker(self) -> str:
        return self.classification.marker

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "series": self.series,
            "derived": self.derived,
            "trend": {
                name: stat.to_dict() if stat is not None else None
                for name, stat in self.trend.items()
            },
            "label": self.classification.label.value,
            "display_label": self.classification.display_label,
            "marker": self.classification.marker,
            "reduced_confidence": self.classification.reduced_confidence,
            "spread_label": (
                self.spread_classification.label.value
                if self.spread_classification is not None
                else None
            ),
            "notes": self.notes,
        }


class Signal(Enum):
    """Pullback screen outcome."""

    BUY = "BUY"
    NONE = "NONE"


@dataclass(frozen=True)
class PullbackResult:
    """Indicators and signal for one security, or the reason it was skipped."""

    ticker: str
    signal: Signal | None = None
    as_of: date | None = None
    close: float | None = None
    sma50: float | None = None
    sma200: float | None = None
    rsi14: float | None = None
    atr14: float | None = None
    volume: float | None = None
    volume20: float | None = None
    drawdown20: float | None = None
    error: str | None = None

    @property
    def is_buy(self) -> bool:
        return self.signal == Signal.BUY

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"ticker": self.ticker, "error": self.error}
        return {
            "ticker": self.ticker,
            "asof": self.as_of.isoformat() if self.as_of else None,
            "signal": self.signal.value if self.signal else None,
            "close": self.close,
            "sma50": self.sma50,
            "sma200": self.sma200,
            "rsi14": self.rsi14,
            "atr14": self.atr14,
            "vol": self.volume,
            "vol20": self.volume20,
            "drawdown20": self.drawdown20,
        }
