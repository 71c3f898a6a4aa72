"""
Incremental indicator dataflow nodes.

Every node follows the same on_bar protocol (see base.py): same-bar calls
are no-ops, operands update before their parent, and memory stays bounded
by window sizes.

Usage:
    from barflow.indicators import ClosePriceIndicator
    from barflow.num import DoubleNumFactory

    close = ClosePriceIndicator(DoubleNumFactory())
    fast, slow = close.sma(5), close.sma(20)
    golden = fast.crossed_over(slow)

    for bar in bars:
        golden.on_bar(bar)
"""

from __future__ import annotations

# Base classes
from .base import BooleanIndicator, Indicator, NumericIndicator

# Leaves
from .price import (
    PRICE_FIELDS,
    BarFieldIndicator,
    ClosePriceIndicator,
    ConstantNumericIndicator,
    HighPriceIndicator,
    LowPriceIndicator,
    OpenPriceIndicator,
    TypicalPriceIndicator,
    VolumeIndicator,
)

# Lookback helpers
from .previous import PreviousBooleanValueIndicator, PreviousNumericValueIndicator

# Arithmetic combinators
from .operation import BinaryOperation, UnaryOperation

# Window aggregations
from .window import (
    HighestValueIndicator,
    LowestValueIndicator,
    RunningTotalIndicator,
    SMAIndicator,
    StandardDeviationIndicator,
    VarianceIndicator,
    WindowIndicator,
)

# Boolean nodes
from .boolean import (
    BooleanCombinationIndicator,
    ComparisonIndicator,
    CrossIndicator,
    InSlopeIndicator,
    IsFallingIndicator,
    IsRisingIndicator,
)

__all__ = [
    # Base
    "Indicator",
    "NumericIndicator",
    "BooleanIndicator",
    # Leaves
    "PRICE_FIELDS",
    "BarFieldIndicator",
    "OpenPriceIndicator",
    "HighPriceIndicator",
    "LowPriceIndicator",
    "ClosePriceIndicator",
    "VolumeIndicator",
    "TypicalPriceIndicator",
    "ConstantNumericIndicator",
    # Lookback
    "PreviousNumericValueIndicator",
    "PreviousBooleanValueIndicator",
    # Arithmetic
    "BinaryOperation",
    "UnaryOperation",
    # Windows
    "WindowIndicator",
    "HighestValueIndicator",
    "LowestValueIndicator",
    "SMAIndicator",
    "StandardDeviationIndicator",
    "VarianceIndicator",
    "RunningTotalIndicator",
    # Boolean
    "ComparisonIndicator",
    "BooleanCombinationIndicator",
    "CrossIndicator",
    "IsRisingIndicator",
    "IsFallingIndicator",
    "InSlopeIndicator",
]
