"""
Tests for run_context and parameter_sweep.
"""

import pytest

from barflow.context import IndicatorContext
from barflow.engine import parameter_sweep, run_context
from barflow.graph import build_context
from barflow.indicators import ClosePriceIndicator
from barflow.num import DoubleNumFactory
from tests.fixtures import make_bars


def build_sma_context(params):
    return build_context(
        {
            "nodes": {
                "close": {"type": "close"},
                "sma": {"type": "sma", "source": "close", "bar_count": params["n"]},
            },
            "outputs": ["sma"],
        },
        num_factory=DoubleNumFactory(),
        history_window=0,
    )


class TestRunContext:
    """Test driving a single context."""

    def test_snapshot_per_bar(self, num):
        ctx = IndicatorContext.empty()
        ctx.add(ClosePriceIndicator(num).sma(2), name="sma")
        bars = make_bars([1.0, 3.0, 5.0])

        snapshots = run_context(ctx, bars)

        assert [s.begin_time for s in snapshots] == [b.begin_time for b in bars]
        assert [s.stable for s in snapshots] == [False, True, True]
        assert snapshots[-1].values == {"sma": 4.0}

    def test_duplicate_bars_produce_no_snapshot(self, num):
        ctx = IndicatorContext.empty()
        ctx.add(ClosePriceIndicator(num), name="close")
        bars = make_bars([1.0, 2.0])

        snapshots = run_context(ctx, [bars[0], bars[0], bars[1], bars[0]])

        assert [s.values["close"] for s in snapshots] == [1.0, 2.0]


class TestParameterSweep:
    """Test concurrent evaluation of independent contexts."""

    def test_results_in_input_order(self):
        closes = [float(v) for v in range(1, 21)]
        param_sets = [{"n": n} for n in (10, 2, 5, 1, 20)]

        results = parameter_sweep(build_sma_context, param_sets, make_bars(closes), max_workers=3)

        assert [r.params["n"] for r in results] == [10, 2, 5, 1, 20]
        for result in results:
            n = result.params["n"]
            assert result.ok
            assert len(result.snapshots) == 20
            assert result.final["sma"] == pytest.approx(sum(closes[-n:]) / n)

    def test_bar_generator_is_shared_by_every_task(self):
        bars = iter(make_bars([1.0, 2.0, 3.0]))
        results = parameter_sweep(build_sma_context, [{"n": 1}, {"n": 3}], bars, max_workers=2)
        assert [r.final["sma"] for r in results] == [3.0, 2.0]

    def test_failing_param_set_is_reported(self):
        results = parameter_sweep(
            build_sma_context,
            [{"n": 2}, {"n": 0}],
            make_bars([1.0, 2.0]),
            max_workers=2,
        )

        assert results[0].ok
        assert not results[1].ok
        assert "ValueError" in results[1].error
        assert results[1].final == {}

    def test_invalid_max_workers(self):
        with pytest.raises(ValueError, match="max_workers"):
            parameter_sweep(build_sma_context, [{"n": 2}], make_bars([1.0]), max_workers=-1)
