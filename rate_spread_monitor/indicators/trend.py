"""Short-window trend statistics over newest-first values."""

from typing import Sequence

from rate_spread_monitor.errors import InsufficientPointsError, InvalidFormatError
from rate_spread_monitor.models import Monotonicity, TrendStatistic


DEFAULT_STEPS = 5


def _check_window(values: Sequence[float], steps: int) -> list[float]:
    values = list(values)
    if len(values) < steps + 1:
        raise InsufficientPointsError(
            f"Need {steps + 1} points for {steps}-step trend, got {len(values)}",
            required=steps + 1,
            available=len(values),
        )
    if len(values) > steps + 1:
        raise InvalidFormatError(
            f"Expected exactly {steps + 1} points for {steps}-step trend, got {len(values)}"
        )
    return values


def monotonicity(values: Sequence[float]) -> Monotonicity:
    """
    Classify a newest-first window.

    INCREASING: values[i - 1] < values[i] for every i (each value is below
    the one before it in time, i.e. falling day over day up to now).
    DECREASING: values[i - 1] > values[i] for every i.
    """
    pairs = list(zip(values, values[1:]))
    if all(newer < older for newer, older in pairs):
        return Monotonicity.INCREASING
    if all(newer > older for newer, older in pairs):
        return Monotonicity.DECREASING
    return Monotonicity.MIXED


def trend(values: Sequence[float], steps: int = DEFAULT_STEPS) -> TrendStatistic:
    """Absolute change over ``steps`` periods, for additive series like yields."""
    values = _check_window(values, steps)
    latest, prior = values[0], values[steps]
    delta = latest - prior
    return TrendStatistic(
        latest=latest,
        prior=prior,
        delta=delta,
        avg_daily_delta=delta / steps,
        monotonicity=monotonicity(values),
        steps=steps,
    )


def trend_return(values: Sequence[float], steps: int = DEFAULT_STEPS) -> TrendStatistic:
    """Like ``trend`` plus ``ret = latest / prior - 1`` for multiplicative series (FX)."""
    stat = trend(values, steps)
    if stat.prior == 0:
        raise InvalidFormatError("Cannot compute return from a zero base value")
    return TrendStatistic(
        latest=stat.latest,
        prior=stat.prior,
        delta=stat.delta,
        avg_daily_delta=stat.avg_daily_delta,
        monotonicity=stat.monotonicity,
        steps=steps,
        ret=stat.latest / stat.prior - 1,
    )
