"""
Lookback helpers: the value an indicator held n bars ago.

A delay line of depth n built on a bounded deque. The helper is itself
an indicator node, so it inherits the per-bar dedup: driving it twice
with the same bar never pushes a value twice.

Example (n=2, underlying values a, b, c, d):
    bar 1 -> nan
    bar 2 -> nan
    bar 3 -> a
    bar 4 -> b
"""

from __future__ import annotations

from collections import deque
from typing import Any

from ..series.bar import Bar
from .base import BooleanIndicator, NumericIndicator


def _validate_bar_count(bar_count: int, owner: str) -> None:
    if not isinstance(bar_count, int) or isinstance(bar_count, bool) or bar_count < 1:
        raise ValueError(
            f"{owner}: 'bar_count' must be integer >= 1, got {bar_count!r}\n"
            f"\n"
            f"Fix: {owner}(indicator, bar_count=1)"
        )


class PreviousNumericValueIndicator(NumericIndicator):
    """
    Numeric value observed `bar_count` bars in the past.

    Emits the sentinel until more than `bar_count` values have been seen.
    Memory is bounded: the queue never holds more than bar_count + 1 items.

    Args:
        indicator: Underlying numeric indicator.
        bar_count: Lookback depth (>= 1).

    Raises:
        ValueError: If bar_count < 1.
    """

    def __init__(self, indicator: NumericIndicator, bar_count: int = 1) -> None:
        _validate_bar_count(bar_count, "PreviousNumericValueIndicator")
        super().__init__(indicator.num_factory)
        self.indicator = indicator
        self.bar_count = bar_count
        self._queue: deque[Any] = deque()

    def _update_state(self, bar: Bar) -> None:
        self.indicator.on_bar(bar)
        self._queue.append(self.indicator.value)
        if len(self._queue) > self.bar_count:
            self._value = self._queue.popleft()

    @property
    def lag(self) -> int:
        return self.bar_count

    @property
    def is_stable(self) -> bool:
        return len(self._queue) == self.bar_count and not self.is_nan

    def __repr__(self) -> str:
        return f"Previous({self.indicator!r}, {self.bar_count}) => {self._value}"


class PreviousBooleanValueIndicator(BooleanIndicator):
    """
    Boolean value observed `bar_count` bars in the past; False until then.

    Raises:
        ValueError: If bar_count < 1.
    """

    def __init__(self, indicator: BooleanIndicator, bar_count: int = 1) -> None:
        _validate_bar_count(bar_count, "PreviousBooleanValueIndicator")
        super().__init__()
        self.indicator = indicator
        self.bar_count = bar_count
        self._queue: deque[bool] = deque()
        self._filled = False

    def _update_state(self, bar: Bar) -> None:
        self.indicator.on_bar(bar)
        self._queue.append(self.indicator.value)
        if len(self._queue) > self.bar_count:
            self._value = self._queue.popleft()
            self._filled = True

    @property
    def lag(self) -> int:
        return self.bar_count

    @property
    def is_stable(self) -> bool:
        return self._filled

    def __repr__(self) -> str:
        return f"PreviousBool({self.indicator!r}, {self.bar_count}) => {self._value}"
