"""
barflow - incremental, bar-driven indicator graphs.

Indicators are nodes of a dataflow DAG fed one OHLCV bar at a time. Each
node updates in O(1) or O(window) per bar with bounded memory, reports a
lag and a stability flag, and works over an injected numeric capability
(binary floats or decimals).

Usage:
    from barflow import Bar, ClosePriceIndicator, DoubleNumFactory

    close = ClosePriceIndicator(DoubleNumFactory())
    golden = close.sma(5).crossed_over(close.sma(20))
    for bar in bars:
        golden.on_bar(bar)
"""

__version__ = "0.1.0"

from .context import IndicatorContext, IndicatorIdentification, InsufficientHistoryError
from .engine import parameter_sweep, run_context
from .graph import build_context, register_node
from .indicators import (
    BooleanIndicator,
    ClosePriceIndicator,
    ConstantNumericIndicator,
    HighPriceIndicator,
    Indicator,
    LowPriceIndicator,
    NumericIndicator,
    OpenPriceIndicator,
    VolumeIndicator,
)
from .num import DecimalNumFactory, DoubleNumFactory, NumFactory, get_num_factory
from .series import Bar, bars_from_frame
from .structures import RingBuffer

__all__ = [
    "__version__",
    "Bar",
    "bars_from_frame",
    "NumFactory",
    "DoubleNumFactory",
    "DecimalNumFactory",
    "get_num_factory",
    "RingBuffer",
    "Indicator",
    "NumericIndicator",
    "BooleanIndicator",
    "OpenPriceIndicator",
    "HighPriceIndicator",
    "LowPriceIndicator",
    "ClosePriceIndicator",
    "VolumeIndicator",
    "ConstantNumericIndicator",
    "IndicatorContext",
    "IndicatorIdentification",
    "InsufficientHistoryError",
    "build_context",
    "register_node",
    "run_context",
    "parameter_sweep",
]
