"""Map trend statistics onto the yen-direction label taxonomy.

Rules are evaluated in order and the first match wins; the underlying
predicates overlap (a strong signal also satisfies the weak one).
"""

from dataclasses import dataclass

from rate_spread_monitor.config import Settings
from rate_spread_monitor.models import (
    Classification,
    Label,
    Monotonicity,
    TrendStatistic,
)


DEFAULT_SPREAD_THRESHOLD = 0.10  # 10bp


@dataclass(frozen=True)
class Thresholds:
    """Per-factor thresholds for the extended classifier."""

    spread: float = DEFAULT_SPREAD_THRESHOLD
    fx_return: float = 0.005
    futures_delta: float = 0.25

    @classmethod
    def from_settings(cls, settings: Settings) -> "Thresholds":
        return cls(
            spread=settings.spread_threshold,
            fx_return=settings.fx_return_threshold,
            futures_delta=settings.futures_delta_threshold,
        )


def classify(
    delta: float,
    monotonicity: Monotonicity,
    threshold: float = DEFAULT_SPREAD_THRESHOLD,
) -> Classification:
    """
    Two-factor rule on the spread's 5-step delta and direction.

    A spread that narrowed on every step is INCREASING under the newest-first
    convention, so that is the value paired with a negative delta.
    """
    if monotonicity == Monotonicity.INCREASING and delta <= -threshold:
        return Classification(Label.YEN_STRENGTH_ALERT)
    if delta <= -threshold:
        return Classification(Label.YEN_STRENGTH_ALERT_WEAK)
    if monotonicity == Monotonicity.DECREASING and delta >= threshold:
        return Classification(Label.YEN_WEAKNESS_CONTINUES)
    if delta >= threshold:
        return Classification(Label.YEN_WEAKNESS_CONTINUES_WEAK)
    return Classification(Label.NEUTRAL)


def _direction(value: float, threshold: float) -> int:
    if value <= -threshold:
        return -1
    if value >= threshold:
        return 1
    return 0


def classify_extended(
    spread: TrendStatistic,
    fx: TrendStatistic,
    futures: TrendStatistic | None,
    thresholds: Thresholds | None = None,
) -> Classification:
    """
    Three-factor rule: spread delta, USD/JPY return, Treasury futures delta.

    Yen strength is signalled by a narrowing spread, a falling USD/JPY and a
    rising Treasury futures price (falling US yields). Futures data is
    optional; without it the strong labels need only the first two factors
    and the result is marked reduced-confidence.
    """
    th = thresholds or Thresholds()
    if fx.ret is None:
        raise ValueError("fx statistic must come from trend_return")

    spread_dir = _direction(spread.delta, th.spread)
    fx_dir = _direction(fx.ret, th.fx_return)
    futures_dir = None if futures is None else _direction(futures.delta, th.futures_delta)
    reduced = futures is None

    # Futures moves inversely to yields
    if spread_dir == -1 and fx_dir == -1 and futures_dir in (None, 1):
        label = Label.YEN_STRENGTH_ALERT
    elif spread_dir == 1 and fx_dir == 1 and futures_dir in (None, -1):
        label = Label.YEN_WEAKNESS_CONTINUES
    elif spread_dir == -1:
        label = Label.YEN_STRENGTH_ALERT_WEAK
    elif spread_dir == 1:
        label = Label.YEN_WEAKNESS_CONTINUES_WEAK
    else:
        label = Label.NEUTRAL

    return Classification(label, reduced_confidence=reduced)
