"""
Boolean indicator nodes.

Includes comparisons between numeric nodes, logical combinations, the
cross detector (one-bar edge trigger), and trend predicates (rising,
falling, slope band). Booleans report False until their operands carry
meaningful values; comparisons against the sentinel are False.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Callable

from ..series.bar import Bar
from .base import BooleanIndicator, NumericIndicator
from .previous import PreviousNumericValueIndicator, _validate_bar_count


class ComparisonIndicator(BooleanIndicator):
    """
    Compare two numeric indicators on every bar.

    Use the named constructors: greater_than, less_than,
    greater_or_equal, less_or_equal.
    """

    def __init__(
        self,
        name: str,
        predicate: Callable[[Any, Any], bool],
        left: NumericIndicator,
        right: NumericIndicator,
    ) -> None:
        super().__init__()
        self.name = name
        self._predicate = predicate
        self.left = left
        self.right = right

    def _update_state(self, bar: Bar) -> None:
        self.left.on_bar(bar)
        self.right.on_bar(bar)
        self._value = self._predicate(self.left.value, self.right.value)

    @property
    def lag(self) -> int:
        return max(self.left.lag, self.right.lag)

    @property
    def is_stable(self) -> bool:
        return self.left.is_stable and self.right.is_stable

    def __repr__(self) -> str:
        return f"{self.name}({self.left!r}, {self.right!r}) => {self._value}"

    @classmethod
    def greater_than(cls, left: NumericIndicator, right: NumericIndicator) -> "ComparisonIndicator":
        return cls("gt", left.num_factory.gt, left, right)

    @classmethod
    def less_than(cls, left: NumericIndicator, right: NumericIndicator) -> "ComparisonIndicator":
        return cls("lt", left.num_factory.lt, left, right)

    @classmethod
    def greater_or_equal(cls, left: NumericIndicator, right: NumericIndicator) -> "ComparisonIndicator":
        return cls("ge", left.num_factory.ge, left, right)

    @classmethod
    def less_or_equal(cls, left: NumericIndicator, right: NumericIndicator) -> "ComparisonIndicator":
        return cls("le", left.num_factory.le, left, right)


class BooleanCombinationIndicator(BooleanIndicator):
    """Logical and / or / not over boolean indicators."""

    def __init__(
        self,
        name: str,
        combine: Callable[..., bool],
        *operands: BooleanIndicator,
    ) -> None:
        if not operands:
            raise ValueError(
                f"BooleanCombinationIndicator '{name}' needs at least one operand\n"
                f"\n"
                f"Fix: BooleanCombinationIndicator.and_(left, right)"
            )
        super().__init__()
        self.name = name
        self._combine = combine
        self.operands = operands

    def _update_state(self, bar: Bar) -> None:
        for operand in self.operands:
            operand.on_bar(bar)
        self._value = self._combine(*(op.value for op in self.operands))

    @property
    def lag(self) -> int:
        return max(op.lag for op in self.operands)

    @property
    def is_stable(self) -> bool:
        return all(op.is_stable for op in self.operands)

    def __repr__(self) -> str:
        inner = ", ".join(repr(op) for op in self.operands)
        return f"{self.name}({inner}) => {self._value}"

    @classmethod
    def and_(cls, left: BooleanIndicator, right: BooleanIndicator) -> "BooleanCombinationIndicator":
        return cls("and", lambda a, b: a and b, left, right)

    @classmethod
    def or_(cls, left: BooleanIndicator, right: BooleanIndicator) -> "BooleanCombinationIndicator":
        return cls("or", lambda a, b: a or b, left, right)

    @classmethod
    def not_(cls, operand: BooleanIndicator) -> "BooleanCombinationIndicator":
        return cls("not", lambda a: not a, operand)


class CrossIndicator(BooleanIndicator):
    """
    True on the single bar where `up` crosses above `low`.

    Condition:
        up[now] > low[now]  AND  up[now - bar_count] <= low[now - bar_count]

    An edge trigger, not a level: the bar after the cross is False again
    even if `up` stays above `low`. crossed_under(a, b) is Cross(b, a).

    Args:
        up: Indicator expected to cross upward.
        low: Reference indicator.
        bar_count: Lookback distance for the "before" side (default 1).
    """

    def __init__(self, up: NumericIndicator, low: NumericIndicator, bar_count: int = 1) -> None:
        _validate_bar_count(bar_count, "CrossIndicator")
        super().__init__()
        self.up = up
        self.low = low
        self.bar_count = bar_count
        self.previous_up = PreviousNumericValueIndicator(up, bar_count)
        self.previous_low = PreviousNumericValueIndicator(low, bar_count)

    def _update_state(self, bar: Bar) -> None:
        self.up.on_bar(bar)
        self.low.on_bar(bar)
        self.previous_up.on_bar(bar)
        self.previous_low.on_bar(bar)

        num = self.up.num_factory
        above_now = num.gt(self.up.value, self.low.value)
        not_above_before = num.le(self.previous_up.value, self.previous_low.value)
        self._value = above_now and not_above_before

    @property
    def lag(self) -> int:
        return max(self.up.lag, self.low.lag) + self.bar_count

    @property
    def is_stable(self) -> bool:
        return (
            self.up.is_stable
            and self.low.is_stable
            and self.previous_up.is_stable
            and self.previous_low.is_stable
        )

    def __repr__(self) -> str:
        return f"Cross({self.up!r}, {self.low!r}, {self.bar_count}) => {self._value}"


class _DirectionCountIndicator(BooleanIndicator):
    """
    Shared sliding count of rising (or falling) steps over bar_count bars.

    A step compares the operand with its previous value (a lookback
    helper). Steps touching the sentinel are kept in the window as gaps:
    they count neither as a move nor toward the denominator. The count is
    maintained incrementally; the newest step is added and the one leaving
    the window is subtracted, so no more than bar_count steps are kept.

    Stable once the window holds bar_count real steps and `lag` bars were
    accepted.
    """

    DIRECTION = ""

    def __init__(
        self,
        indicator: NumericIndicator,
        bar_count: int,
        min_strength: float = 1.0,
    ) -> None:
        _validate_bar_count(bar_count, type(self).__name__)
        if not 0.0 <= min_strength <= 1.0:
            raise ValueError(
                f"{type(self).__name__}: 'min_strength' must be between 0.0 and 1.0, got {min_strength!r}\n"
                f"\n"
                f"Fix: {type(self).__name__}(indicator, bar_count, min_strength=0.8)"
            )
        super().__init__()
        self.indicator = indicator
        self.bar_count = bar_count
        self.min_strength = min_strength
        self._previous = PreviousNumericValueIndicator(indicator, 1)
        self._steps: deque[bool | None] = deque()
        self._step_count = 0  # Moves in DIRECTION inside the window
        self._real_steps = 0  # Steps between two real values inside the window

    def _step(self, current: Any, before: Any) -> bool | None:
        num = self.indicator.num_factory
        if num.is_nan(current) or num.is_nan(before):
            return None
        if self.DIRECTION == "rising":
            return num.gt(current, before)
        return num.lt(current, before)

    def _track(self, step: bool | None, sign: int) -> None:
        if step is not None:
            self._real_steps += sign
            if step:
                self._step_count += sign

    def _update_state(self, bar: Bar) -> None:
        self.indicator.on_bar(bar)
        self._previous.on_bar(bar)

        step = self._step(self.indicator.value, self._previous.value)
        self._steps.append(step)
        self._track(step, 1)
        if len(self._steps) > self.bar_count:
            self._track(self._steps.popleft(), -1)

        if self._real_steps == 0:
            self._value = False
            return
        self._value = self._step_count / self._real_steps >= self.min_strength

    @property
    def lag(self) -> int:
        return self.indicator.lag + self.bar_count

    @property
    def is_stable(self) -> bool:
        return (
            self.indicator.is_stable
            and self._real_steps == self.bar_count
            and self._bars_processed >= self.lag
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.indicator!r}, {self.bar_count}, "
            f"{self.min_strength}) => {self._value}"
        )


class IsRisingIndicator(_DirectionCountIndicator):
    """True when the share of rising steps in the window is >= min_strength."""

    DIRECTION = "rising"


class IsFallingIndicator(_DirectionCountIndicator):
    """True when the share of falling steps in the window is >= min_strength."""

    DIRECTION = "falling"


class InSlopeIndicator(BooleanIndicator):
    """
    True when `ref - ref[nth_previous]` lies within [min_slope, max_slope].

    Either bound may be None (unbounded); with both None the indicator is
    always False.
    """

    def __init__(
        self,
        ref: NumericIndicator,
        nth_previous: int = 1,
        min_slope: float | None = None,
        max_slope: float | None = None,
    ) -> None:
        _validate_bar_count(nth_previous, "InSlopeIndicator")
        super().__init__()
        num = ref.num_factory
        self.ref = ref
        self.nth_previous = nth_previous
        self.min_slope = None if min_slope is None else num.num_of(min_slope)
        self.max_slope = None if max_slope is None else num.num_of(max_slope)
        self._diff = ref.minus(PreviousNumericValueIndicator(ref, nth_previous))

    def _update_state(self, bar: Bar) -> None:
        self._diff.on_bar(bar)

        if self.min_slope is None and self.max_slope is None:
            self._value = False
            return

        num = self.ref.num_factory
        difference = self._diff.value
        if num.is_nan(difference):
            self._value = False
            return
        min_ok = self.min_slope is None or num.ge(difference, self.min_slope)
        max_ok = self.max_slope is None or num.le(difference, self.max_slope)
        self._value = min_ok and max_ok

    @property
    def lag(self) -> int:
        return self.ref.lag + self.nth_previous

    @property
    def is_stable(self) -> bool:
        return self._diff.is_stable

    def __repr__(self) -> str:
        return (
            f"InSlope({self.ref!r}, {self.nth_previous}, "
            f"{self.min_slope}, {self.max_slope}) => {self._value}"
        )
