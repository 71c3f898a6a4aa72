"""
Arithmetic combinators over numeric indicators.

BinaryOperation and UnaryOperation are "lightweight" nodes: they keep no
buffers, only forward the bar to their operands and apply one NumFactory
operation to the operands' current values. A sentinel operand, or a zero
divisor, yields the sentinel.
"""

from __future__ import annotations

from typing import Any, Callable

from ..series.bar import Bar
from .base import NumericIndicator

BinaryFn = Callable[[Any, Any], Any]
UnaryFn = Callable[[Any], Any]


class BinaryOperation(NumericIndicator):
    """
    Combine two numeric indicators with a binary NumFactory operation.

    Use the named constructors (sum, difference, product, quotient, min,
    max) rather than the constructor.
    """

    def __init__(
        self,
        name: str,
        operator: BinaryFn,
        left: NumericIndicator,
        right: NumericIndicator,
    ) -> None:
        super().__init__(left.num_factory)
        self.name = name
        self._operator = operator
        self.left = left
        self.right = right

    def _update_state(self, bar: Bar) -> None:
        self.left.on_bar(bar)
        self.right.on_bar(bar)
        self._value = self._operator(self.left.value, self.right.value)

    @property
    def lag(self) -> int:
        return max(self.left.lag, self.right.lag)

    @property
    def is_stable(self) -> bool:
        return self.left.is_stable and self.right.is_stable

    def __repr__(self) -> str:
        return f"{self.name}({self.left!r}, {self.right!r}) => {self._value}"

    @classmethod
    def sum(cls, left: NumericIndicator, right: NumericIndicator) -> "BinaryOperation":
        """left + right"""
        return cls("sum", left.num_factory.plus, left, right)

    @classmethod
    def difference(cls, left: NumericIndicator, right: NumericIndicator) -> "BinaryOperation":
        """left - right"""
        return cls("difference", left.num_factory.minus, left, right)

    @classmethod
    def product(cls, left: NumericIndicator, right: NumericIndicator) -> "BinaryOperation":
        """left * right"""
        return cls("product", left.num_factory.multiply, left, right)

    @classmethod
    def quotient(cls, left: NumericIndicator, right: NumericIndicator) -> "BinaryOperation":
        """left / right; nan when right is zero."""
        return cls("quotient", left.num_factory.divide, left, right)

    @classmethod
    def min(cls, left: NumericIndicator, right: NumericIndicator) -> "BinaryOperation":
        """Smaller of left and right; left on ties."""
        return cls("min", left.num_factory.min, left, right)

    @classmethod
    def max(cls, left: NumericIndicator, right: NumericIndicator) -> "BinaryOperation":
        """Greater of left and right; left on ties."""
        return cls("max", left.num_factory.max, left, right)


class UnaryOperation(NumericIndicator):
    """Apply a unary NumFactory operation to one numeric indicator."""

    def __init__(self, name: str, operator: UnaryFn, operand: NumericIndicator) -> None:
        super().__init__(operand.num_factory)
        self.name = name
        self._operator = operator
        self.operand = operand

    def _update_state(self, bar: Bar) -> None:
        self.operand.on_bar(bar)
        self._value = self._operator(self.operand.value)

    @property
    def lag(self) -> int:
        return self.operand.lag

    @property
    def is_stable(self) -> bool:
        return self.operand.is_stable

    def __repr__(self) -> str:
        return f"{self.name}({self.operand!r}) => {self._value}"

    @classmethod
    def abs(cls, operand: NumericIndicator) -> "UnaryOperation":
        return cls("abs", operand.num_factory.abs, operand)

    @classmethod
    def sqrt(cls, operand: NumericIndicator) -> "UnaryOperation":
        """sqrt(operand); nan for negative values."""
        return cls("sqrt", operand.num_factory.sqrt, operand)

    @classmethod
    def negate(cls, operand: NumericIndicator) -> "UnaryOperation":
        return cls("negate", operand.num_factory.negate, operand)

    @classmethod
    def log(cls, operand: NumericIndicator) -> "UnaryOperation":
        """Natural log; nan for non-positive values."""
        return cls("log", operand.num_factory.log, operand)

    @classmethod
    def pow(cls, operand: NumericIndicator, exponent: int | float) -> "UnaryOperation":
        num = operand.num_factory
        coefficient = num.num_of(exponent)
        return cls(f"pow[{exponent}]", lambda v: num.pow(v, coefficient), operand)

    @classmethod
    def scale(cls, operand: NumericIndicator, factor: int | float) -> "UnaryOperation":
        """operand * factor, without allocating a constant node."""
        num = operand.num_factory
        coefficient = num.num_of(factor)
        return cls(f"scale[{factor}]", lambda v: num.multiply(v, coefficient), operand)
