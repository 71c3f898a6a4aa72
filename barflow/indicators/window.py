"""
Window aggregations backed by a RingBuffer of capacity bar_count.

Each accepted bar pushes the operand's current value into the buffer and
the aggregate is derived from the buffer contents. Highest and lowest
keep a MonotonicDeque alongside. Memory per node is O(bar_count)
regardless of stream length.

Readiness:
    lag       = operand.lag + bar_count
    value     = sentinel until `lag` bars were accepted, and while any
                sentinel (e.g. a zero-divisor result) is inside the window
    is_stable = operand stable AND buffer holds bar_count real values
                AND at least `lag` bars were accepted

Includes highest, lowest, simple average, population variance and
standard deviation, and running total.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Literal

from ..series.bar import Bar
from ..structures.primitives import MonotonicDeque, RingBuffer
from .base import NumericIndicator


class WindowIndicator(NumericIndicator):
    """
    Base for aggregations over the last `bar_count` operand values.

    Args:
        indicator: Operand indicator.
        bar_count: Window size (integer >= 1).

    Raises:
        ValueError: If bar_count < 1.
    """

    def __init__(self, indicator: NumericIndicator, bar_count: int) -> None:
        if not isinstance(bar_count, int) or isinstance(bar_count, bool) or bar_count < 1:
            raise ValueError(
                f"{type(self).__name__}: 'bar_count' must be integer >= 1, got {bar_count!r}\n"
                f"\n"
                f"Fix: {type(self).__name__}(indicator, bar_count=20)"
            )
        super().__init__(indicator.num_factory)
        self.indicator = indicator
        self.bar_count = bar_count
        self._window = RingBuffer(bar_count, sentinel=indicator.num_factory.nan)
        self._real_count = 0  # Non-sentinel values currently in the window

    def _push(self, value: Any) -> None:
        num = self.num_factory
        if self._window.is_full() and not num.is_nan(self._window[0]):
            self._real_count -= 1
        self._window.add_last(value)
        if not num.is_nan(value):
            self._real_count += 1

    def _update_state(self, bar: Bar) -> None:
        self.indicator.on_bar(bar)
        value = self.indicator.value
        self._push(value)
        self._observe(value)

        if self._bars_processed < self.lag or self._real_count < self.bar_count:
            self._value = self.num_factory.nan
            return

        self._value = self._aggregate(self._window.values())

    def _observe(self, value: Any) -> None:
        """Hook for subclasses keeping incremental state; called once per accepted bar."""

    @abstractmethod
    def _aggregate(self, values: list[Any]) -> Any:
        """Aggregate a full window of real values, oldest first."""
        ...

    def _mean(self, values: list[Any]) -> Any:
        num = self.num_factory
        total = num.zero
        for v in values:
            total = num.plus(total, v)
        return num.divide(total, num.num_of(len(values)))

    @property
    def lag(self) -> int:
        return self.indicator.lag + self.bar_count

    @property
    def is_stable(self) -> bool:
        return (
            self.indicator.is_stable
            and self._real_count == self.bar_count
            and self._bars_processed >= self.lag
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.indicator!r}, {self.bar_count}) => {self._value}"


class _ExtremeValueIndicator(WindowIndicator):
    """
    Window extreme tracked by a MonotonicDeque instead of a rescan.

    Sentinel values are not pushed (they do not order); while one is in
    the window the base class already reports the sentinel, and the next
    real push evicts whatever aged out in between.
    """

    MODE: Literal["min", "max"] = "max"

    def __init__(self, indicator: NumericIndicator, bar_count: int) -> None:
        super().__init__(indicator, bar_count)
        self._extremes = MonotonicDeque(bar_count, self.MODE)
        self._index = 0

    def _observe(self, value: Any) -> None:
        if not self.num_factory.is_nan(value):
            self._extremes.push(self._index, value)
        self._index += 1

    def _aggregate(self, values: list[Any]) -> Any:
        return self._extremes.get()


class HighestValueIndicator(_ExtremeValueIndicator):
    """Highest operand value in the last bar_count bars."""

    MODE = "max"


class LowestValueIndicator(_ExtremeValueIndicator):
    """Lowest operand value in the last bar_count bars."""

    MODE = "min"


class SMAIndicator(WindowIndicator):
    """Simple moving average."""

    def _aggregate(self, values: list[Any]) -> Any:
        return self._mean(values)


class RunningTotalIndicator(WindowIndicator):
    """Sum of the last bar_count operand values."""

    def _aggregate(self, values: list[Any]) -> Any:
        num = self.num_factory
        total = num.zero
        for v in values:
            total = num.plus(total, v)
        return total


class VarianceIndicator(WindowIndicator):
    """Population variance over the window."""

    def _aggregate(self, values: list[Any]) -> Any:
        num = self.num_factory
        mean = self._mean(values)
        acc = num.zero
        for v in values:
            dev = num.minus(v, mean)
            acc = num.plus(acc, num.multiply(dev, dev))
        return num.divide(acc, num.num_of(len(values)))


class StandardDeviationIndicator(VarianceIndicator):
    """Population standard deviation over the window."""

    def _aggregate(self, values: list[Any]) -> Any:
        return self.num_factory.sqrt(super()._aggregate(values))
