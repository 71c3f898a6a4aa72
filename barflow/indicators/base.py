"""
Base classes for incremental indicator nodes.

Every node, numeric or boolean, follows the same on_bar protocol:
1. A bar with the same identity as the last processed one is a no-op
2. Operand nodes are forwarded the bar first (post-order)
3. The node recomputes its value from operand values and private buffers
4. The bar identity is recorded as last processed

Step 1 makes an arbitrarily fanned-out graph safe to drive by calling
on_bar on every root for every new bar: a shared node reachable through
several parents is evaluated exactly once per bar.

Readiness:
- lag: nominal number of bars before value is meaningful
- is_stable: node-local predicate over accumulated state, the flag
  consumers must gate on

Usage:
    from barflow.indicators import ClosePriceIndicator

    close = ClosePriceIndicator(num)
    spread = close.sma(5) - close.sma(20)
    signal = close.sma(5).crossed_over(close.sma(20))

    for bar in bars:
        spread.on_bar(bar)
        signal.on_bar(bar)
        if signal.is_stable and signal.value:
            ...
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..num import NumFactory

if TYPE_CHECKING:
    from ..series.bar import Bar
    from .boolean import (
        BooleanCombinationIndicator,
        ComparisonIndicator,
        CrossIndicator,
        InSlopeIndicator,
        IsFallingIndicator,
        IsRisingIndicator,
    )
    from .operation import BinaryOperation, UnaryOperation
    from .previous import PreviousBooleanValueIndicator, PreviousNumericValueIndicator
    from .window import (
        HighestValueIndicator,
        LowestValueIndicator,
        RunningTotalIndicator,
        SMAIndicator,
        StandardDeviationIndicator,
        VarianceIndicator,
    )

T = TypeVar("T")


class Indicator(ABC, Generic[T]):
    """
    Base class for all indicator nodes.

    Subclasses implement _update_state(bar), lag and is_stable. They must
    forward the bar to every operand inside _update_state before reading
    operand values.
    """

    def __init__(self) -> None:
        self._value: T = self._initial_value()
        self._current_begin_time: datetime | None = None
        self._bars_processed = 0

    @abstractmethod
    def _initial_value(self) -> T:
        """Value reported before the first accepted bar."""
        ...

    @abstractmethod
    def _update_state(self, bar: "Bar") -> None:
        """Forward bar to operands, then recompute self._value."""
        ...

    @property
    def value(self) -> T:
        """Last computed value."""
        return self._value

    @property
    def lag(self) -> int:
        """Minimum number of bars before value is meaningful."""
        return 0

    @property
    @abstractmethod
    def is_stable(self) -> bool:
        """True once accumulated state suffices for a meaningful value."""
        ...

    @property
    def bars_processed(self) -> int:
        """Number of distinct bars accepted by this node."""
        return self._bars_processed

    def on_bar(self, bar: "Bar") -> None:
        """
        Process one bar.

        Bars whose begin_time equals the last processed one are ignored,
        as are bars older than it (logged as BAR_OUT_OF_ORDER and skipped).
        """
        begin_time = bar.begin_time
        last = self._current_begin_time
        if last is not None and begin_time <= last:
            if begin_time < last:
                self._log_out_of_order(begin_time, last)
            return

        self._bars_processed += 1
        self._update_state(bar)
        self._current_begin_time = begin_time

    def _log_out_of_order(self, begin_time: datetime, last: datetime) -> None:
        from ..utils.logger import get_logger

        get_logger().event(
            "BAR_OUT_OF_ORDER",
            level=logging.WARNING,
            node=type(self).__name__,
            bar=begin_time.isoformat(),
            last=last.isoformat(),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(lag={self.lag}) => {self._value}"


class NumericIndicator(Indicator[Any]):
    """
    Indicator producing numbers from an injected NumFactory.

    Fluent builders (plus, sma, crossed_over, ...) create new nodes with
    this node as operand. Python arithmetic operators are mapped to the
    same builders; plain numbers are wrapped as constant nodes.
    """

    def __init__(self, num_factory: NumFactory) -> None:
        self.num_factory = num_factory
        super().__init__()

    def _initial_value(self) -> Any:
        return self.num_factory.nan

    @property
    def is_nan(self) -> bool:
        return self.num_factory.is_nan(self._value)

    def _as_indicator(self, other: "NumericIndicator | int | float") -> "NumericIndicator":
        if isinstance(other, NumericIndicator):
            return other
        from .price import ConstantNumericIndicator

        return ConstantNumericIndicator(self.num_factory, other)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def plus(self, other: "NumericIndicator | int | float") -> "BinaryOperation":
        from .operation import BinaryOperation

        return BinaryOperation.sum(self, self._as_indicator(other))

    def minus(self, other: "NumericIndicator | int | float") -> "BinaryOperation":
        from .operation import BinaryOperation

        return BinaryOperation.difference(self, self._as_indicator(other))

    def multiplied_by(self, other: "NumericIndicator | int | float") -> "BinaryOperation":
        from .operation import BinaryOperation

        return BinaryOperation.product(self, self._as_indicator(other))

    def divided_by(self, other: "NumericIndicator | int | float") -> "BinaryOperation":
        from .operation import BinaryOperation

        return BinaryOperation.quotient(self, self._as_indicator(other))

    def min(self, other: "NumericIndicator | int | float") -> "BinaryOperation":
        from .operation import BinaryOperation

        return BinaryOperation.min(self, self._as_indicator(other))

    def max(self, other: "NumericIndicator | int | float") -> "BinaryOperation":
        from .operation import BinaryOperation

        return BinaryOperation.max(self, self._as_indicator(other))

    def scaled(self, factor: int | float) -> "UnaryOperation":
        from .operation import UnaryOperation

        return UnaryOperation.scale(self, factor)

    def abs(self) -> "UnaryOperation":
        from .operation import UnaryOperation

        return UnaryOperation.abs(self)

    def sqrt(self) -> "UnaryOperation":
        from .operation import UnaryOperation

        return UnaryOperation.sqrt(self)

    def squared(self) -> "BinaryOperation":
        return self.multiplied_by(self)

    def pow(self, exponent: int | float) -> "UnaryOperation":
        from .operation import UnaryOperation

        return UnaryOperation.pow(self, exponent)

    def log(self) -> "UnaryOperation":
        from .operation import UnaryOperation

        return UnaryOperation.log(self)

    def __add__(self, other):
        return self.plus(other)

    def __radd__(self, other):
        return self._as_indicator(other).plus(self)

    def __sub__(self, other):
        return self.minus(other)

    def __rsub__(self, other):
        return self._as_indicator(other).minus(self)

    def __mul__(self, other):
        return self.multiplied_by(other)

    def __rmul__(self, other):
        return self._as_indicator(other).multiplied_by(self)

    def __truediv__(self, other):
        return self.divided_by(other)

    def __rtruediv__(self, other):
        return self._as_indicator(other).divided_by(self)

    def __neg__(self):
        from .operation import UnaryOperation

        return UnaryOperation.negate(self)

    def __abs__(self):
        return self.abs()

    # ------------------------------------------------------------------
    # Windows and lookback
    # ------------------------------------------------------------------

    def previous(self, bar_count: int = 1) -> "PreviousNumericValueIndicator":
        from .previous import PreviousNumericValueIndicator

        return PreviousNumericValueIndicator(self, bar_count)

    def sma(self, bar_count: int) -> "SMAIndicator":
        from .window import SMAIndicator

        return SMAIndicator(self, bar_count)

    def highest(self, bar_count: int) -> "HighestValueIndicator":
        from .window import HighestValueIndicator

        return HighestValueIndicator(self, bar_count)

    def lowest(self, bar_count: int) -> "LowestValueIndicator":
        from .window import LowestValueIndicator

        return LowestValueIndicator(self, bar_count)

    def stddev(self, bar_count: int) -> "StandardDeviationIndicator":
        from .window import StandardDeviationIndicator

        return StandardDeviationIndicator(self, bar_count)

    def variance(self, bar_count: int) -> "VarianceIndicator":
        from .window import VarianceIndicator

        return VarianceIndicator(self, bar_count)

    def running_total(self, bar_count: int) -> "RunningTotalIndicator":
        from .window import RunningTotalIndicator

        return RunningTotalIndicator(self, bar_count)

    # ------------------------------------------------------------------
    # Boolean builders
    # ------------------------------------------------------------------

    def crossed_over(
        self, other: "NumericIndicator | int | float", bar_count: int = 1
    ) -> "CrossIndicator":
        from .boolean import CrossIndicator

        return CrossIndicator(self, self._as_indicator(other), bar_count)

    def crossed_under(
        self, other: "NumericIndicator | int | float", bar_count: int = 1
    ) -> "CrossIndicator":
        from .boolean import CrossIndicator

        return CrossIndicator(self._as_indicator(other), self, bar_count)

    def is_greater_than(self, other: "NumericIndicator | int | float") -> "ComparisonIndicator":
        from .boolean import ComparisonIndicator

        return ComparisonIndicator.greater_than(self, self._as_indicator(other))

    def is_less_than(self, other: "NumericIndicator | int | float") -> "ComparisonIndicator":
        from .boolean import ComparisonIndicator

        return ComparisonIndicator.less_than(self, self._as_indicator(other))

    def is_rising(self, bar_count: int, min_strength: float = 1.0) -> "IsRisingIndicator":
        from .boolean import IsRisingIndicator

        return IsRisingIndicator(self, bar_count, min_strength)

    def is_falling(self, bar_count: int, min_strength: float = 1.0) -> "IsFallingIndicator":
        from .boolean import IsFallingIndicator

        return IsFallingIndicator(self, bar_count, min_strength)

    def in_slope(
        self,
        min_slope: float | None = None,
        max_slope: float | None = None,
        nth_previous: int = 1,
    ) -> "InSlopeIndicator":
        from .boolean import InSlopeIndicator

        return InSlopeIndicator(self, nth_previous, min_slope, max_slope)


class BooleanIndicator(Indicator[bool]):
    """Indicator producing booleans; False before warm-up."""

    def _initial_value(self) -> bool:
        return False

    def and_(self, other: "BooleanIndicator") -> "BooleanCombinationIndicator":
        from .boolean import BooleanCombinationIndicator

        return BooleanCombinationIndicator.and_(self, other)

    def or_(self, other: "BooleanIndicator") -> "BooleanCombinationIndicator":
        from .boolean import BooleanCombinationIndicator

        return BooleanCombinationIndicator.or_(self, other)

    def negation(self) -> "BooleanCombinationIndicator":
        from .boolean import BooleanCombinationIndicator

        return BooleanCombinationIndicator.not_(self)

    def previous(self, bar_count: int = 1) -> "PreviousBooleanValueIndicator":
        from .previous import PreviousBooleanValueIndicator

        return PreviousBooleanValueIndicator(self, bar_count)

    def __and__(self, other):
        return self.and_(other)

    def __or__(self, other):
        return self.or_(other)

    def __invert__(self):
        return self.negation()
