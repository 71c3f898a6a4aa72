"""
Window aggregation parity tests.

Incremental window nodes are compared against pandas rolling
computations over the same random-walk closes.
"""

import math

import numpy as np
import pytest

from barflow.indicators import ClosePriceIndicator, HighPriceIndicator, LowPriceIndicator
from barflow.series import bars_from_frame
from tests.fixtures import make_bars, values_over


def _assert_matches(values: list[float], expected, window: int) -> None:
    expected = list(expected)
    assert len(values) == len(expected)
    for i, (got, want) in enumerate(zip(values, expected)):
        if i < window - 1:
            assert math.isnan(got), f"bar {i} should be nan before warm-up"
            continue
        assert got == pytest.approx(want, rel=1e-9, abs=1e-9), f"bar {i}"


class TestRollingParity:
    """Test window nodes against pandas rolling references."""

    @pytest.mark.parametrize("window", [1, 3, 14])
    def test_sma_matches_rolling_mean(self, num, ohlcv_frame, window):
        bars = list(bars_from_frame(ohlcv_frame, time_column="timestamp"))
        values = values_over(bars, ClosePriceIndicator(num).sma(window))
        _assert_matches(values, ohlcv_frame["close"].rolling(window).mean(), window)

    @pytest.mark.parametrize("window", [2, 10])
    def test_highest_matches_rolling_max(self, num, ohlcv_frame, window):
        bars = list(bars_from_frame(ohlcv_frame, time_column="timestamp"))
        values = values_over(bars, HighPriceIndicator(num).highest(window))
        _assert_matches(values, ohlcv_frame["high"].rolling(window).max(), window)

    @pytest.mark.parametrize("window", [2, 10])
    def test_lowest_matches_rolling_min(self, num, ohlcv_frame, window):
        bars = list(bars_from_frame(ohlcv_frame, time_column="timestamp"))
        values = values_over(bars, LowPriceIndicator(num).lowest(window))
        _assert_matches(values, ohlcv_frame["low"].rolling(window).min(), window)

    def test_stddev_matches_population_std(self, num, ohlcv_frame):
        """Standard deviation is the population (ddof=0) form."""
        bars = list(bars_from_frame(ohlcv_frame, time_column="timestamp"))
        values = values_over(bars, ClosePriceIndicator(num).stddev(20))
        _assert_matches(values, ohlcv_frame["close"].rolling(20).std(ddof=0), 20)

    def test_variance_matches_population_var(self, num, ohlcv_frame):
        bars = list(bars_from_frame(ohlcv_frame, time_column="timestamp"))
        values = values_over(bars, ClosePriceIndicator(num).variance(5))
        _assert_matches(values, ohlcv_frame["close"].rolling(5).var(ddof=0), 5)

    def test_running_total_matches_rolling_sum(self, num, ohlcv_frame):
        bars = list(bars_from_frame(ohlcv_frame, time_column="timestamp"))
        values = values_over(bars, ClosePriceIndicator(num).running_total(7))
        _assert_matches(values, ohlcv_frame["close"].rolling(7).sum(), 7)


class TestWindowReadiness:
    """Test stability and memory bounds of window nodes."""

    def test_stable_from_bar_count(self, num):
        sma = ClosePriceIndicator(num).sma(3)
        stable = []
        for bar in make_bars([1.0, 2.0, 3.0, 4.0]):
            sma.on_bar(bar)
            stable.append(sma.is_stable)
        assert stable == [False, False, True, True]

    def test_window_memory_is_bounded(self, num):
        highest = ClosePriceIndicator(num).highest(5)
        closes = list(np.linspace(1.0, 500.0, 500))
        values = values_over(make_bars(closes), highest)

        assert len(highest._window) == 5
        assert len(highest._extremes) <= 5
        assert values[-1] == pytest.approx(500.0)

    def test_highest_forgets_values_leaving_window(self, num):
        highest = ClosePriceIndicator(num).highest(2)
        values = values_over(make_bars([9.0, 1.0, 2.0, 1.0]), highest)
        assert values[1:] == [9.0, 2.0, 2.0]

    def test_lowest_with_decimals(self, decimal_num):
        from decimal import Decimal

        lowest = ClosePriceIndicator(decimal_num).lowest(3)
        values = values_over(make_bars([5.0, 3.0, 4.0, 6.0, 7.0, 2.0]), lowest)

        assert values[2:] == [Decimal("3"), Decimal("3"), Decimal("4"), Decimal("2")]


class TestSentinelPropagation:
    """Test that a sentinel operand value is passed on, not averaged away."""

    # ratio = close / (close - 3) is the sentinel on the bar where close == 3
    CLOSES = [1.0, 2.0, 4.0, 5.0, 3.0, 6.0, 7.0, 8.0]

    def test_sma_is_sentinel_while_window_holds_one(self, num):
        close = ClosePriceIndicator(num)
        sma = close.divided_by(close - 3).sma(3)
        values = values_over(make_bars(self.CLOSES), sma)

        assert values[2] == pytest.approx(0.5)
        assert values[3] == pytest.approx(1.5)
        assert all(math.isnan(v) for v in values[4:7])
        assert values[7] == pytest.approx((2.0 + 1.75 + 1.6) / 3)

    def test_not_stable_while_window_holds_sentinel(self, num):
        close = ClosePriceIndicator(num)
        sma = close.divided_by(close - 3).sma(3)
        stable = []
        for bar in make_bars(self.CLOSES):
            sma.on_bar(bar)
            stable.append(sma.is_stable)

        assert stable == [False, False, True, True, False, False, False, True]

    @pytest.mark.parametrize("builder", ["highest", "lowest"])
    def test_extremes_recover_after_sentinel_leaves(self, num, builder):
        close = ClosePriceIndicator(num)
        ratio = close.divided_by(close - 3)
        node = getattr(ratio, builder)(2)
        values = values_over(make_bars(self.CLOSES), node)

        assert all(math.isnan(v) for v in values[4:6])
        expected = max if builder == "highest" else min
        assert values[6] == pytest.approx(expected(2.0, 1.75))
        assert values[7] == pytest.approx(expected(1.75, 1.6))
