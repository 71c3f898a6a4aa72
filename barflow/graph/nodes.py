"""
Built-in node types for declarative graphs.

Each builder receives (num, inputs, params): inputs maps operand keys to
already-built nodes, params holds validated scalar parameters with
optional defaults filled in.
"""

from __future__ import annotations

from ..indicators import (
    PRICE_FIELDS,
    BooleanCombinationIndicator,
    ComparisonIndicator,
    ConstantNumericIndicator,
    CrossIndicator,
    InSlopeIndicator,
    IsFallingIndicator,
    IsRisingIndicator,
    PreviousNumericValueIndicator,
)
from .registry import register_node


# =============================================================================
# Leaves
# =============================================================================

def _register_price_field(field_name: str) -> None:
    indicator_cls = PRICE_FIELDS[field_name]

    def build(num, inputs, params):
        return indicator_cls(num)

    build.__doc__ = f"Bar field '{field_name}'."
    build.__name__ = f"build_{field_name}"
    register_node(field_name)(build)


for _field in PRICE_FIELDS:
    _register_price_field(_field)


@register_node("constant", required=["value"])
def build_constant(num, inputs, params):
    """Fixed numeric value."""
    return ConstantNumericIndicator(num, params["value"])


# =============================================================================
# Arithmetic
# =============================================================================

@register_node("add", inputs=["left", "right"])
def build_add(num, inputs, params):
    """left + right"""
    return inputs["left"].plus(inputs["right"])


@register_node("subtract", inputs=["left", "right"])
def build_subtract(num, inputs, params):
    """left - right"""
    return inputs["left"].minus(inputs["right"])


@register_node("multiply", inputs=["left", "right"])
def build_multiply(num, inputs, params):
    """left * right"""
    return inputs["left"].multiplied_by(inputs["right"])


@register_node("divide", inputs=["left", "right"])
def build_divide(num, inputs, params):
    """left / right; NaN when right is zero."""
    return inputs["left"].divided_by(inputs["right"])


@register_node("min", inputs=["left", "right"])
def build_min(num, inputs, params):
    """Smaller of left and right."""
    return inputs["left"].min(inputs["right"])


@register_node("max", inputs=["left", "right"])
def build_max(num, inputs, params):
    """Greater of left and right."""
    return inputs["left"].max(inputs["right"])


@register_node("scale", inputs=["source"], required=["factor"])
def build_scale(num, inputs, params):
    """source * factor"""
    return inputs["source"].scaled(params["factor"])


@register_node("abs", inputs=["source"])
def build_abs(num, inputs, params):
    """Absolute value."""
    return inputs["source"].abs()


@register_node("sqrt", inputs=["source"])
def build_sqrt(num, inputs, params):
    """Square root; NaN for negative values."""
    return inputs["source"].sqrt()


# =============================================================================
# Windows and lookback
# =============================================================================

def _register_window(type_name: str, method: str, doc: str) -> None:
    def build(num, inputs, params):
        return getattr(inputs["source"], method)(params["bar_count"])

    build.__doc__ = doc
    build.__name__ = f"build_{type_name}"
    register_node(type_name, inputs=["source"], required=["bar_count"])(build)


_register_window("sma", "sma", "Simple moving average over bar_count bars.")
_register_window("highest", "highest", "Highest value over bar_count bars.")
_register_window("lowest", "lowest", "Lowest value over bar_count bars.")
_register_window("stddev", "stddev", "Population standard deviation over bar_count bars.")
_register_window("variance", "variance", "Population variance over bar_count bars.")
_register_window("running_total", "running_total", "Sum over bar_count bars.")


@register_node("previous", inputs=["source"], optional={"bar_count": 1})
def build_previous(num, inputs, params):
    """Value of source bar_count bars ago."""
    return PreviousNumericValueIndicator(inputs["source"], params["bar_count"])


# =============================================================================
# Boolean
# =============================================================================

@register_node("greater_than", inputs=["left", "right"], output="boolean")
def build_greater_than(num, inputs, params):
    """left > right"""
    return ComparisonIndicator.greater_than(inputs["left"], inputs["right"])


@register_node("less_than", inputs=["left", "right"], output="boolean")
def build_less_than(num, inputs, params):
    """left < right"""
    return ComparisonIndicator.less_than(inputs["left"], inputs["right"])


@register_node("and", variadic="operands", output="boolean", operand_kind="boolean")
def build_and(num, inputs, params):
    """True when every operand is True."""
    return BooleanCombinationIndicator("and", lambda *values: all(values), *inputs["operands"])


@register_node("or", variadic="operands", output="boolean", operand_kind="boolean")
def build_or(num, inputs, params):
    """True when any operand is True."""
    return BooleanCombinationIndicator("or", lambda *values: any(values), *inputs["operands"])


@register_node("not", inputs=["source"], output="boolean", operand_kind="boolean")
def build_not(num, inputs, params):
    """Negation of source."""
    return BooleanCombinationIndicator.not_(inputs["source"])


@register_node("cross_over", inputs=["up", "low"], optional={"bar_count": 1}, output="boolean")
def build_cross_over(num, inputs, params):
    """True on the bar where up crosses above low."""
    return CrossIndicator(inputs["up"], inputs["low"], params["bar_count"])


@register_node("cross_under", inputs=["up", "low"], optional={"bar_count": 1}, output="boolean")
def build_cross_under(num, inputs, params):
    """True on the bar where up crosses below low."""
    return CrossIndicator(inputs["low"], inputs["up"], params["bar_count"])


@register_node(
    "is_rising",
    inputs=["source"],
    required=["bar_count"],
    optional={"min_strength": 1.0},
    output="boolean",
)
def build_is_rising(num, inputs, params):
    """Share of rising steps over bar_count bars meets min_strength."""
    return IsRisingIndicator(inputs["source"], params["bar_count"], params["min_strength"])


@register_node(
    "is_falling",
    inputs=["source"],
    required=["bar_count"],
    optional={"min_strength": 1.0},
    output="boolean",
)
def build_is_falling(num, inputs, params):
    """Share of falling steps over bar_count bars meets min_strength."""
    return IsFallingIndicator(inputs["source"], params["bar_count"], params["min_strength"])


@register_node(
    "in_slope",
    inputs=["source"],
    optional={"nth_previous": 1, "min_slope": None, "max_slope": None},
    output="boolean",
)
def build_in_slope(num, inputs, params):
    """source - source[nth_previous] within [min_slope, max_slope]."""
    return InSlopeIndicator(
        inputs["source"],
        params["nth_previous"],
        params["min_slope"],
        params["max_slope"],
    )
