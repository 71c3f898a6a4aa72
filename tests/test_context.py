"""
Tests for IndicatorContext and the windowed history cache.

Validates that:
1. History queries fail outside configured or recorded depth
2. The oldest retained value is reachable at k = window_size
3. Listeners are notified once per accepted bar
4. Context stability is sticky
"""

import logging
import math

import pytest

from barflow.context import (
    IndicatorContext,
    IndicatorHistory,
    IndicatorIdentification,
    InsufficientHistoryError,
)
from barflow.indicators import ClosePriceIndicator
from tests.fixtures import START, STEP, make_bars


class TestIndicatorHistory:
    """Test history bounds with window_size=5."""

    @pytest.fixture
    def context(self, num):
        ctx = IndicatorContext.empty(time_frame="1m", history_window=5)
        ctx.add(ClosePriceIndicator(num), name="close")
        return ctx

    def test_query_beyond_window_fails(self, context):
        for bar in make_bars([1.0, 2.0, 3.0, 4.0, 5.0, 6.0]):
            context.on_bar(bar)

        with pytest.raises(InsufficientHistoryError, match="outside"):
            context.previous_value("close", 6)

    def test_query_beyond_recorded_fails(self, context):
        for bar in make_bars([1.0, 2.0]):
            context.on_bar(bar)

        with pytest.raises(InsufficientHistoryError, match="Only 2 values"):
            context.previous_value("close", 3)

    def test_insufficient_history_is_value_error(self, context):
        with pytest.raises(ValueError):
            context.previous_value("close", 1)

    def test_full_window_returns_first_value(self, context):
        for bar in make_bars([10.0, 20.0, 30.0, 40.0, 50.0]):
            context.on_bar(bar)

        assert context.previous_value("close", 5) == 10.0
        assert context.previous_value("close", 1) == 50.0

    def test_window_slides(self, context):
        for bar in make_bars([10.0, 20.0, 30.0, 40.0, 50.0, 60.0]):
            context.on_bar(bar)

        assert context.previous_value("close", 5) == 20.0

    def test_duplicate_bar_not_recorded_twice(self, context):
        bars = make_bars([10.0, 20.0])
        for bar in bars:
            context.on_bar(bar)
            context.on_bar(bar)

        assert context.history.recorded(IndicatorIdentification("close")) == 2

    def test_boolean_indicators_are_skipped(self, context, num):
        flag = context.add(ClosePriceIndicator(num).is_greater_than(1), name="flag")
        for bar in make_bars([1.0, 2.0]):
            context.on_bar(bar)

        assert flag not in context.history
        with pytest.raises(InsufficientHistoryError, match="No history"):
            context.previous_value("flag", 1)

    def test_standalone_history_listener(self, num):
        history = IndicatorHistory(window_size=2)
        close = ClosePriceIndicator(num)
        for bar in make_bars([1.0, 2.0, 3.0]):
            close.on_bar(bar)
            history.accept(bar.begin_time, "close", close)

        assert history.previous("close", 1) == 3.0
        assert history.previous("close", 2) == 2.0

    @pytest.mark.parametrize("window_size", [0, -1])
    def test_invalid_window_size(self, window_size):
        with pytest.raises(ValueError, match="window_size"):
            IndicatorHistory(window_size)


class TestIndicatorContext:
    """Test registration, listeners and stability."""

    def test_named_and_unnamed_registration(self, num):
        close = ClosePriceIndicator(num)
        sma = close.sma(3)
        ctx = IndicatorContext.of(close)
        identity = ctx.add(sma, name="sma_3")

        assert identity == IndicatorIdentification("sma_3", 3)
        assert len(ctx) == 2
        assert "sma_3" in ctx
        assert ctx.first is close
        assert ctx.get_numeric_indicator("sma_3") is sma
        assert ctx.get_boolean_indicator("sma_3") is None
        assert ctx.is_not_empty

    def test_change_and_update_listeners(self, num):
        changes = []
        updates = []

        class ChangeRecorder:
            def accept(self, timestamp, identity, indicator):
                changes.append((timestamp, identity.name, indicator.value))

        class UpdateRecorder:
            def on_context_update(self, end_time):
                updates.append(end_time)

        ctx = IndicatorContext.empty()
        ctx.add(ClosePriceIndicator(num), name="close")
        ctx.register_change_listener(ChangeRecorder())
        ctx.register_update_listener(UpdateRecorder())

        bars = make_bars([1.0, 2.0])
        for bar in bars:
            ctx.on_bar(bar)
            ctx.on_bar(bar)

        assert changes == [(bars[0].begin_time, "close", 1.0), (bars[1].begin_time, "close", 2.0)]
        assert updates == [bars[0].end_time, bars[1].end_time]

    def test_older_bar_is_logged_and_skipped(self, num, caplog):
        """The context reports skipped bars the same way a node does."""
        updates = []

        class UpdateRecorder:
            def on_context_update(self, end_time):
                updates.append(end_time)

        ctx = IndicatorContext.empty(time_frame="1m")
        ctx.add(ClosePriceIndicator(num), name="close")
        ctx.register_update_listener(UpdateRecorder())
        ctx.on_bar(make_bars([5.0], start=START + STEP * 10)[0])

        barflow_logger = logging.getLogger("barflow")
        barflow_logger.addHandler(caplog.handler)
        try:
            ctx.on_bar(make_bars([1.0])[0])
        finally:
            barflow_logger.removeHandler(caplog.handler)

        messages = [record.getMessage() for record in caplog.records]
        assert any("BAR_OUT_OF_ORDER" in m and "IndicatorContext" in m for m in messages)
        assert len(updates) == 1
        assert ctx.snapshot() == {"close": 5.0}

    def test_stability_is_sticky(self, num):
        """Once stable, a later sentinel close does not reset the context."""
        ctx = IndicatorContext.empty()
        ctx.add(ClosePriceIndicator(num), name="close")
        bars = make_bars([1.0, math.nan])

        assert not ctx.is_stable
        ctx.on_bar(bars[0])
        assert ctx.is_stable
        ctx.on_bar(bars[1])
        assert not ctx.get("close").is_stable
        assert ctx.is_stable

    def test_empty_context_is_not_stable(self):
        assert not IndicatorContext.empty().is_stable

    def test_previous_value_requires_history(self, num):
        ctx = IndicatorContext.of(ClosePriceIndicator(num))
        with pytest.raises(RuntimeError, match="History is not enabled"):
            ctx.previous_value("anything")

    def test_snapshot(self, num):
        close = ClosePriceIndicator(num)
        ctx = IndicatorContext.empty()
        ctx.add(close, name="close")
        ctx.add(close.is_greater_than(1), name="above_one")
        ctx.on_bar(make_bars([2.0])[0])

        assert ctx.snapshot() == {"close": 2.0, "above_one": True}
