"""
Leaf nodes: bar fields and constants.

Leaves have no operands; they read the bar directly (or nothing at all
for constants) and are stable from their first accepted bar.
"""

from __future__ import annotations

from typing import Any

from ..num import NumFactory
from ..series.bar import Bar
from .base import NumericIndicator


class BarFieldIndicator(NumericIndicator):
    """Value of a single bar field converted through the NumFactory."""

    FIELD = ""

    def _update_state(self, bar: Bar) -> None:
        self._value = self.num_factory.num_of(getattr(bar, self.FIELD))

    @property
    def is_stable(self) -> bool:
        return self._bars_processed > 0 and not self.is_nan

    def __repr__(self) -> str:
        return f"{type(self).__name__} => {self._value}"


class OpenPriceIndicator(BarFieldIndicator):
    FIELD = "open"


class HighPriceIndicator(BarFieldIndicator):
    FIELD = "high"


class LowPriceIndicator(BarFieldIndicator):
    FIELD = "low"


class ClosePriceIndicator(BarFieldIndicator):
    FIELD = "close"


class VolumeIndicator(BarFieldIndicator):
    FIELD = "volume"


class TypicalPriceIndicator(NumericIndicator):
    """(high + low + close) / 3"""

    def _update_state(self, bar: Bar) -> None:
        num = self.num_factory
        total = num.plus(num.plus(num.num_of(bar.high), num.num_of(bar.low)), num.num_of(bar.close))
        self._value = num.divide(total, num.num_of(3))

    @property
    def is_stable(self) -> bool:
        return self._bars_processed > 0


class ConstantNumericIndicator(NumericIndicator):
    """Fixed value, meaningful before any bar arrives."""

    def __init__(self, num_factory: NumFactory, constant: Any) -> None:
        super().__init__(num_factory)
        self._value = num_factory.num_of(constant)

    def _update_state(self, bar: Bar) -> None:
        pass

    @property
    def is_stable(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Constant({self._value})"


PRICE_FIELDS: dict[str, type[NumericIndicator]] = {
    "open": OpenPriceIndicator,
    "high": HighPriceIndicator,
    "low": LowPriceIndicator,
    "close": ClosePriceIndicator,
    "volume": VolumeIndicator,
    "typical_price": TypicalPriceIndicator,
}
