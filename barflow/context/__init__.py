"""
Evaluation contexts and the windowed history cache.

Components:
- context: IndicatorContext, IndicatorIdentification, listener protocols
- history: IndicatorHistory, InsufficientHistoryError
"""

from .context import (
    ContextUpdateListener,
    IndicatorChangeListener,
    IndicatorContext,
    IndicatorIdentification,
)
from .history import IndicatorHistory, InsufficientHistoryError

__all__ = [
    "IndicatorContext",
    "IndicatorIdentification",
    "IndicatorChangeListener",
    "ContextUpdateListener",
    "IndicatorHistory",
    "InsufficientHistoryError",
]
