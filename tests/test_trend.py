"""Tests for the 5-step trend statistic."""

import pytest

from rate_spread_monitor.errors import InsufficientPointsError, InvalidFormatError
from rate_spread_monitor.indicators.trend import monotonicity, trend, trend_return
from rate_spread_monitor.models import Monotonicity


class TestMonotonicityConvention:
    """Direction is read from newest (index 0) back to oldest."""

    def test_values_rising_into_the_past_are_increasing(self):
        stat = trend([5, 4, 3, 2, 1, 0])
        assert stat.monotonicity == Monotonicity.INCREASING
        assert stat.delta == 5
        assert stat.avg_daily_delta == 1

    def test_values_falling_into_the_past_are_decreasing(self):
        stat = trend([0, 1, 2, 3, 4, 5])
        assert stat.monotonicity == Monotonicity.DECREASING
        assert stat.delta == -5
        assert stat.avg_daily_delta == -1

    @pytest.mark.parametrize(
        "values",
        [
            [1, 2, 3, 2, 5, 6],
            [6, 5, 4, 5, 2, 1],
            [1, 1, 1, 1, 1, 1],
            [3, 2, 1, 1, 0, -1],
        ],
    )
    def test_non_monotonic_is_mixed(self, values):
        assert trend(values).monotonicity == Monotonicity.MIXED

    def test_monotonicity_helper(self):
        assert monotonicity([0.9, 1.0]) == Monotonicity.INCREASING
        assert monotonicity([1.0, 0.9]) == Monotonicity.DECREASING


class TestTrendWindow:
    """Window size checks."""

    def test_latest_and_prior(self):
        stat = trend([1.30, 1.28, 1.25, 1.27, 1.22, 1.20])
        assert stat.latest == 1.30
        assert stat.prior == 1.20
        assert stat.delta == pytest.approx(0.10)
        assert stat.avg_daily_delta == pytest.approx(0.02)

    def test_too_few_points(self):
        with pytest.raises(InsufficientPointsError) as exc_info:
            trend([1, 2, 3, 4, 5])
        assert exc_info.value.required == 6
        assert exc_info.value.available == 5

    def test_too_many_points(self):
        with pytest.raises(InvalidFormatError):
            trend([1, 2, 3, 4, 5, 6, 7])

    def test_other_step_count(self):
        stat = trend([3, 2, 1], steps=2)
        assert stat.delta == 2
        assert stat.avg_daily_delta == 1
        assert stat.steps == 2


class TestTrendReturn:
    """Return-based variant for FX."""

    def test_return(self):
        stat = trend_return([147.0, 148.0, 149.0, 149.5, 150.0, 150.0])
        assert stat.ret == pytest.approx(147.0 / 150.0 - 1)
        assert stat.delta == pytest.approx(-3.0)
        assert stat.to_dict()["ret"] == pytest.approx(-0.02)

    def test_zero_base(self):
        with pytest.raises(InvalidFormatError):
            trend_return([1, 1, 1, 1, 1, 0])

    def test_plain_trend_has_no_return(self):
        assert trend([5, 4, 3, 2, 1, 0]).ret is None
        assert "ret" not in trend([5, 4, 3, 2, 1, 0]).to_dict()
