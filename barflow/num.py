"""
Numeric capability injected into indicator graphs.

Every numeric node holds a NumFactory and performs all arithmetic through
it, so the same graph definition runs over binary floats or over
arbitrary-precision decimals without branching on the representation.

Sentinel contract:
- nan is the "not yet meaningful" value emitted before warm-up
- Any operation with a nan operand yields nan
- Division by zero yields nan (never raises)
- Comparisons with a nan operand are False

Usage:
    from barflow.num import DoubleNumFactory

    num = DoubleNumFactory()
    num.divide(num.num_of(1), num.zero)   # -> nan
    num.gt(num.nan, num.one)              # -> False
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any

import numpy as np


class NumFactory(ABC):
    """Arithmetic capability used by numeric indicators."""

    name: str = ""

    @property
    @abstractmethod
    def nan(self) -> Any:
        """Sentinel value for unready results."""
        ...

    @abstractmethod
    def num_of(self, value: Any) -> Any:
        """Convert a native number into this representation."""
        ...

    @abstractmethod
    def is_nan(self, value: Any) -> bool:
        ...

    @abstractmethod
    def sqrt(self, value: Any) -> Any:
        ...

    @abstractmethod
    def log(self, value: Any) -> Any:
        ...

    @property
    def zero(self) -> Any:
        return self.num_of(0)

    @property
    def one(self) -> Any:
        return self.num_of(1)

    def is_zero(self, value: Any) -> bool:
        return not self.is_nan(value) and value == self.zero

    def plus(self, a: Any, b: Any) -> Any:
        if self.is_nan(a) or self.is_nan(b):
            return self.nan
        return a + b

    def minus(self, a: Any, b: Any) -> Any:
        if self.is_nan(a) or self.is_nan(b):
            return self.nan
        return a - b

    def multiply(self, a: Any, b: Any) -> Any:
        if self.is_nan(a) or self.is_nan(b):
            return self.nan
        return a * b

    def divide(self, a: Any, b: Any) -> Any:
        """Divide a by b; a zero divisor propagates the sentinel."""
        if self.is_nan(a) or self.is_nan(b) or b == self.zero:
            return self.nan
        return a / b

    def negate(self, value: Any) -> Any:
        if self.is_nan(value):
            return self.nan
        return -value

    def abs(self, value: Any) -> Any:
        if self.is_nan(value):
            return self.nan
        return abs(value)

    def pow(self, value: Any, exponent: Any) -> Any:
        if self.is_nan(value) or self.is_nan(exponent):
            return self.nan
        try:
            return value ** exponent
        except (ZeroDivisionError, ValueError, InvalidOperation, OverflowError):
            return self.nan

    def min(self, a: Any, b: Any) -> Any:
        """Smaller of a and b; a is returned on ties."""
        if self.is_nan(a) or self.is_nan(b):
            return self.nan
        return b if b < a else a

    def max(self, a: Any, b: Any) -> Any:
        """Greater of a and b; a is returned on ties."""
        if self.is_nan(a) or self.is_nan(b):
            return self.nan
        return b if b > a else a

    def gt(self, a: Any, b: Any) -> bool:
        if self.is_nan(a) or self.is_nan(b):
            return False
        return a > b

    def lt(self, a: Any, b: Any) -> bool:
        if self.is_nan(a) or self.is_nan(b):
            return False
        return a < b

    def ge(self, a: Any, b: Any) -> bool:
        if self.is_nan(a) or self.is_nan(b):
            return False
        return a >= b

    def le(self, a: Any, b: Any) -> bool:
        if self.is_nan(a) or self.is_nan(b):
            return False
        return a <= b

    def to_float(self, value: Any) -> float:
        if self.is_nan(value):
            return float("nan")
        return float(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DoubleNumFactory(NumFactory):
    """Binary floating point with numpy.nan as the sentinel."""

    name = "double"

    @property
    def nan(self) -> float:
        return np.nan

    def num_of(self, value: Any) -> float:
        return float(value)

    def is_nan(self, value: Any) -> bool:
        return value is None or math.isnan(value)

    def sqrt(self, value: Any) -> float:
        if self.is_nan(value) or value < 0:
            return np.nan
        return math.sqrt(value)

    def log(self, value: Any) -> float:
        if self.is_nan(value) or value <= 0:
            return np.nan
        return math.log(value)

    def pow(self, value: Any, exponent: Any) -> float:
        if self.is_nan(value) or self.is_nan(exponent):
            return np.nan
        try:
            return math.pow(value, exponent)
        except (ValueError, OverflowError, ZeroDivisionError):
            return np.nan


class DecimalNumFactory(NumFactory):
    """
    Arbitrary-precision decimals.

    Args:
        precision: Significant digits used for division, sqrt and log.
    """

    name = "decimal"

    _NAN = Decimal("NaN")

    def __init__(self, precision: int = 32) -> None:
        if precision < 1:
            raise ValueError(
                f"precision must be >= 1, got {precision}\n"
                f"\n"
                f"Fix: DecimalNumFactory(precision=32)"
            )
        self.precision = precision

    @property
    def nan(self) -> Decimal:
        return self._NAN

    def num_of(self, value: Any) -> Decimal:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, float):
            if math.isnan(value):
                return self._NAN
            # repr keeps 0.1 as 0.1 instead of its binary expansion
            return Decimal(repr(value))
        return Decimal(value)

    def is_nan(self, value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, Decimal):
            return value.is_nan()
        return math.isnan(value)

    def divide(self, a: Any, b: Any) -> Any:
        if self.is_nan(a) or self.is_nan(b) or b == self.zero:
            return self._NAN
        with localcontext() as ctx:
            ctx.prec = self.precision
            return a / b

    def sqrt(self, value: Any) -> Decimal:
        if self.is_nan(value) or value < 0:
            return self._NAN
        with localcontext() as ctx:
            ctx.prec = self.precision
            return value.sqrt()

    def log(self, value: Any) -> Decimal:
        if self.is_nan(value) or value <= 0:
            return self._NAN
        with localcontext() as ctx:
            ctx.prec = self.precision
            return value.ln()

    def __repr__(self) -> str:
        return f"DecimalNumFactory(precision={self.precision})"


_FACTORIES: dict[str, type[NumFactory]] = {
    "double": DoubleNumFactory,
    "decimal": DecimalNumFactory,
}


def get_num_factory(name: str = "double") -> NumFactory:
    """
    Resolve a NumFactory by name.

    Raises:
        ValueError: If name is not "double" or "decimal".
    """
    key = name.strip().lower()
    if key not in _FACTORIES:
        valid = ", ".join(sorted(_FACTORIES))
        raise ValueError(
            f"Unknown numeric type '{name}'\n"
            f"\n"
            f"Fix: use one of: {valid}"
        )
    return _FACTORIES[key]()
