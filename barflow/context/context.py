"""
Named evaluation context for indicator graphs.

An IndicatorContext is the longest-lived holder of a graph: it owns the
root indicators under stable identities, drives them once per bar, and
notifies listeners after each accepted bar:

- change listeners: accept(timestamp, identity, indicator) per indicator
- update listeners: on_context_update(end_time) once per bar

The windowed history cache is a change listener (see history.py).

Usage:
    ctx = IndicatorContext.empty(time_frame="1m", history_window=5)
    ctx.add(close.sma(20), name="sma_20")

    for bar in bars:
        ctx.on_bar(bar)

    ctx.previous_value(IndicatorIdentification("sma_20"), bars=2)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Protocol

from ..indicators.base import BooleanIndicator, Indicator, NumericIndicator
from ..series.bar import Bar
from ..utils.logger import get_logger
from .history import IndicatorHistory

logger = get_logger()


@dataclass(frozen=True)
class IndicatorIdentification:
    """Stable, hashable key of an indicator inside a context."""

    name: str
    lag: int = 0


class IndicatorChangeListener(Protocol):
    def accept(self, timestamp: datetime, identity: IndicatorIdentification, indicator: Indicator[Any]) -> None:
        ...


class ContextUpdateListener(Protocol):
    def on_context_update(self, end_time: datetime) -> None:
        ...


class IndicatorContext:
    """
    Registry and driver for a set of root indicators.

    Indicators added without a name get a placeholder identity built from
    a UUID; the identity carries the indicator's lag at registration time.
    """

    def __init__(self, *indicators: Indicator[Any], time_frame: str = "undefined") -> None:
        self.time_frame = time_frame
        self._indicators: dict[IndicatorIdentification, Indicator[Any]] = {}
        self._change_listeners: list[IndicatorChangeListener] = []
        self._update_listeners: list[ContextUpdateListener] = []
        self._history: IndicatorHistory | None = None
        self._stable = False
        self._current_begin_time: datetime | None = None
        for indicator in indicators:
            self.add(indicator)

    @classmethod
    def of(cls, *indicators: Indicator[Any], time_frame: str = "undefined") -> "IndicatorContext":
        return cls(*indicators, time_frame=time_frame)

    @classmethod
    def empty(cls, time_frame: str = "undefined", history_window: int | None = None) -> "IndicatorContext":
        context = cls(time_frame=time_frame)
        if history_window:
            context.enable_history(history_window)
        logger.event("CONTEXT_CREATED", level=logging.DEBUG, time_frame=time_frame, history_window=history_window)
        return context

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add(self, indicator: Indicator[Any], name: str | IndicatorIdentification | None = None) -> IndicatorIdentification:
        """
        Register an indicator and return its identity.

        Re-registering an existing identity replaces the indicator.
        """
        if isinstance(name, IndicatorIdentification):
            identity = name
        elif name is None:
            identity = IndicatorIdentification(str(uuid.uuid4()), indicator.lag)
        else:
            identity = IndicatorIdentification(name, indicator.lag)
        self._indicators[identity] = indicator
        self._stable = False
        return identity

    def add_all(self, *indicators: Indicator[Any]) -> list[IndicatorIdentification]:
        return [self.add(indicator) for indicator in indicators]

    def register_change_listener(self, listener: IndicatorChangeListener) -> None:
        if listener not in self._change_listeners:
            self._change_listeners.append(listener)

    def register_update_listener(self, listener: ContextUpdateListener) -> None:
        if listener not in self._update_listeners:
            self._update_listeners.append(listener)

    def enable_history(self, window_size: int) -> IndicatorHistory:
        """Attach a windowed history cache of window_size values per indicator."""
        self._history = IndicatorHistory(window_size)
        self.register_change_listener(self._history)
        logger.event("HISTORY_ENABLED", level=logging.DEBUG, window_size=window_size, indicators=len(self._indicators))
        return self._history

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def on_bar(self, bar: Bar) -> None:
        """
        Drive every registered indicator with bar, then notify listeners.

        A bar already accepted by this context is ignored, so listeners
        never record the same bar twice. Older bars are skipped and logged
        as BAR_OUT_OF_ORDER, the same as on a single node.
        """
        last = self._current_begin_time
        if last is not None and bar.begin_time <= last:
            if bar.begin_time < last:
                logger.event(
                    "BAR_OUT_OF_ORDER",
                    level=logging.WARNING,
                    node=type(self).__name__,
                    time_frame=self.time_frame,
                    bar=bar.begin_time.isoformat(),
                    last=last.isoformat(),
                )
            return
        self._current_begin_time = bar.begin_time

        for identity, indicator in self._indicators.items():
            indicator.on_bar(bar)
            for listener in self._change_listeners:
                listener.accept(bar.begin_time, identity, indicator)

        for listener in self._update_listeners:
            listener.on_context_update(bar.end_time)

    @property
    def is_stable(self) -> bool:
        """True once every registered indicator is stable; sticky afterwards."""
        if not self._stable:
            self._stable = bool(self._indicators) and all(
                indicator.is_stable for indicator in self._indicators.values()
            )
        return self._stable

    @property
    def history(self) -> IndicatorHistory | None:
        return self._history

    def previous_value(self, identity: IndicatorIdentification | str, bars: int = 1) -> Any:
        """
        Value recorded `bars` bars ago for identity (1 = latest).

        Raises:
            RuntimeError: If history was never enabled.
            InsufficientHistoryError: If the query exceeds recorded depth.
        """
        if self._history is None:
            raise RuntimeError(
                "History is not enabled for this context\n"
                "\n"
                "Fix: context.enable_history(window_size=5)"
            )
        return self._history.previous(self._resolve(identity), bars)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _resolve(self, identity: IndicatorIdentification | str) -> IndicatorIdentification:
        if isinstance(identity, IndicatorIdentification):
            return identity
        for key in self._indicators:
            if key.name == identity:
                return key
        return IndicatorIdentification(identity)

    def get(self, identity: IndicatorIdentification | str) -> Indicator[Any] | None:
        return self._indicators.get(self._resolve(identity))

    def get_numeric_indicator(self, identity: IndicatorIdentification | str) -> NumericIndicator | None:
        indicator = self.get(identity)
        return indicator if isinstance(indicator, NumericIndicator) else None

    def get_boolean_indicator(self, identity: IndicatorIdentification | str) -> BooleanIndicator | None:
        indicator = self.get(identity)
        return indicator if isinstance(indicator, BooleanIndicator) else None

    @property
    def indicators(self) -> dict[IndicatorIdentification, Indicator[Any]]:
        return dict(self._indicators)

    @property
    def first(self) -> Indicator[Any] | None:
        return next(iter(self._indicators.values()), None)

    @property
    def is_not_empty(self) -> bool:
        return bool(self._indicators)

    def snapshot(self) -> dict[str, Any]:
        """Current value of every indicator keyed by name."""
        return {identity.name: indicator.value for identity, indicator in self._indicators.items()}

    def __contains__(self, identity: object) -> bool:
        if isinstance(identity, (IndicatorIdentification, str)):
            return self._resolve(identity) in self._indicators
        return False

    def __iter__(self) -> Iterator[tuple[IndicatorIdentification, Indicator[Any]]]:
        return iter(self._indicators.items())

    def __len__(self) -> int:
        return len(self._indicators)

    def __repr__(self) -> str:
        return (
            f"IndicatorContext(time_frame={self.time_frame!r}, "
            f"indicators={len(self._indicators)}, history={self._history is not None})"
        )
