"""
Tests for the on_bar protocol shared by every indicator node.

Validates that:
1. Re-feeding a bar (directly or through fan-out) never double-counts
2. Lookback helpers delay values by exactly n bars
3. Window lag composes as operand lag + bar_count
4. Out-of-order bars are skipped
"""

import logging
import math

import pytest

from barflow.indicators import (
    ClosePriceIndicator,
    PreviousNumericValueIndicator,
    SMAIndicator,
)
from tests.fixtures import STEP, START, feed, make_bars, values_over


class TestFanOutIdempotence:
    """Test that shared nodes are evaluated once per bar."""

    def test_same_bar_twice_is_noop(self, num):
        """Calling on_bar twice with one bar matches calling it once."""
        close = ClosePriceIndicator(num)
        sma = close.sma(3)
        bars = make_bars([1.0, 2.0, 3.0, 4.0])

        for bar in bars:
            sma.on_bar(bar)
            sma.on_bar(bar)

        assert sma.value == pytest.approx(3.0)
        assert sma.bars_processed == 4
        assert close.bars_processed == 4

    def test_shared_node_reached_through_several_parents(self, num):
        """A node below two parents accepts each bar once."""
        close = ClosePriceIndicator(num)
        shared = close.sma(2)
        left = shared + 1
        right = shared * 2
        root = left + right
        bars = make_bars([2.0, 4.0, 6.0, 8.0])

        feed(bars, root, left, right, shared)

        assert shared.bars_processed == 4
        assert len(shared._window) == 2
        assert shared.value == pytest.approx(7.0)
        assert root.value == pytest.approx((7.0 + 1) + 7.0 * 2)

    def test_lookback_buffer_not_double_inserted(self, num):
        close = ClosePriceIndicator(num)
        previous = close.previous(1)
        bars = make_bars([10.0, 20.0, 30.0])

        for bar in bars:
            previous.on_bar(bar)
            previous.on_bar(bar)
            close.on_bar(bar)

        assert previous.value == 20.0
        assert len(previous._queue) == 1


class TestLookback:
    """Test n-th previous value helpers."""

    def test_depth_two_delays_by_two_bars(self, num):
        """n=2 over a, b, c, d reports nan, nan, a, b."""
        previous = PreviousNumericValueIndicator(ClosePriceIndicator(num), 2)
        values = values_over(make_bars([1.0, 2.0, 3.0, 4.0]), previous)

        assert math.isnan(values[0])
        assert math.isnan(values[1])
        assert values[2:] == [1.0, 2.0]

    def test_stable_once_depth_is_filled(self, num):
        previous = ClosePriceIndicator(num).previous(2)
        stable = []
        for bar in make_bars([1.0, 2.0, 3.0]):
            previous.on_bar(bar)
            stable.append(previous.is_stable)

        assert stable == [False, False, True]
        assert previous.lag == 2

    @pytest.mark.parametrize("bar_count", [0, -1, 1.5])
    def test_invalid_depth_fails_at_construction(self, num, bar_count):
        with pytest.raises(ValueError, match="'bar_count' must be integer >= 1"):
            PreviousNumericValueIndicator(ClosePriceIndicator(num), bar_count)


class TestLagComposition:
    """Test lag and stability of nested windows."""

    def test_window_lag_adds_bar_count(self, num):
        close = ClosePriceIndicator(num)
        assert close.lag == 0
        assert close.sma(5).lag == 5
        assert close.sma(2).sma(3).lag == 5
        assert close.previous(2).sma(3).lag == 5

    def test_nested_sma_not_stable_before_lag(self, num):
        """sma(3) over sma(2) becomes stable on the 5th bar, never earlier."""
        nested = ClosePriceIndicator(num).sma(2).sma(3)
        stable = []
        values = []
        for bar in make_bars([1.0, 2.0, 3.0, 4.0, 5.0, 6.0]):
            nested.on_bar(bar)
            stable.append(nested.is_stable)
            values.append(nested.value)

        assert stable == [False, False, False, False, True, True]
        assert all(math.isnan(v) for v in values[:4])
        # sma(2) at bars 3..5 = 2.5, 3.5, 4.5
        assert values[4] == pytest.approx(3.5)
        assert values[5] == pytest.approx(4.5)

    def test_arithmetic_lag_is_max_of_operands(self, num):
        close = ClosePriceIndicator(num)
        combined = close.sma(3) - close.sma(7)
        assert combined.lag == 7

    @pytest.mark.parametrize("bar_count", [0, -5])
    def test_invalid_window_fails_at_construction(self, num, bar_count):
        with pytest.raises(ValueError, match="bar_count"):
            SMAIndicator(ClosePriceIndicator(num), bar_count)


class TestBarOrdering:
    """Test handling of bars that move backwards in time."""

    def test_older_bar_is_skipped(self, num):
        close = ClosePriceIndicator(num)
        later = make_bars([5.0], start=START + STEP * 10)[0]
        earlier = make_bars([1.0])[0]

        close.on_bar(later)
        close.on_bar(earlier)

        assert close.value == 5.0
        assert close.bars_processed == 1

    def test_older_bar_is_logged(self, num, caplog):
        """Skipped bars are reported as BAR_OUT_OF_ORDER warnings."""
        close = ClosePriceIndicator(num)
        close.on_bar(make_bars([5.0], start=START + STEP * 10)[0])

        barflow_logger = logging.getLogger("barflow")
        barflow_logger.addHandler(caplog.handler)
        try:
            close.on_bar(make_bars([1.0])[0])
        finally:
            barflow_logger.removeHandler(caplog.handler)

        assert any("BAR_OUT_OF_ORDER" in record.getMessage() for record in caplog.records)
