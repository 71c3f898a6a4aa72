"""
Windowed history cache keyed by indicator identity.

IndicatorHistory subscribes to an IndicatorContext's change notifications
and keeps, per identity, a RingBuffer of the window_size most recent
values. It is decoupled from the graph: diagnostics or replay tooling can
query past values without being wired into the DAG.

Query semantics:
    previous(id, 1)            -> latest recorded value
    previous(id, window_size)  -> oldest retained value

Errors:
    InsufficientHistoryError (a ValueError) when k is outside
    [1, window_size], the identity was never observed, or fewer than k
    values were recorded. Recoverable: retry once more bars arrived.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Hashable

from ..indicators.base import Indicator, NumericIndicator
from ..structures.primitives import RingBuffer


class InsufficientHistoryError(ValueError):
    """History query outside the configured or recorded depth."""


class IndicatorHistory:
    """
    Per-identity bounded history of numeric indicator values.

    Entries are created lazily on the first notification for an identity
    and live as long as the cache. Boolean indicators are ignored.

    Args:
        window_size: Number of values retained per identity (>= 1).

    Raises:
        ValueError: If window_size < 1.
    """

    def __init__(self, window_size: int) -> None:
        if not isinstance(window_size, int) or isinstance(window_size, bool) or window_size < 1:
            raise ValueError(
                f"window_size must be integer >= 1, got {window_size!r}\n"
                f"\n"
                f"Fix: IndicatorHistory(window_size=5)"
            )
        self.window_size = window_size
        self._entries: dict[Hashable, RingBuffer] = {}
        self._last_timestamp: dict[Hashable, datetime] = {}

    def accept(self, timestamp: datetime, identity: Hashable, indicator: Indicator[Any]) -> None:
        """Record the indicator's current value for this bar."""
        if not isinstance(indicator, NumericIndicator):
            return

        if self._last_timestamp.get(identity) == timestamp:
            return

        entry = self._entries.get(identity)
        if entry is None:
            entry = RingBuffer(self.window_size, sentinel=indicator.num_factory.nan)
            self._entries[identity] = entry
        entry.add_last(indicator.value)
        self._last_timestamp[identity] = timestamp

    def previous(self, identity: Hashable, k: int = 1) -> Any:
        """
        Value recorded k notifications ago (k=1 is the latest).

        Raises:
            InsufficientHistoryError: See module docstring.
        """
        if not isinstance(k, int) or k < 1 or k > self.window_size:
            raise InsufficientHistoryError(
                f"History depth {k!r} outside [1, {self.window_size}]\n"
                f"\n"
                f"Fix: enable a larger history window or query k <= {self.window_size}"
            )

        entry = self._entries.get(identity)
        if entry is None:
            raise InsufficientHistoryError(
                f"No history recorded for {identity!r}\n"
                f"\n"
                f"Known identities: {len(self._entries)}"
            )

        if len(entry) < k:
            raise InsufficientHistoryError(
                f"Only {len(entry)} values recorded for {identity!r}, requested k={k}"
            )

        return entry.latest(k)

    def recorded(self, identity: Hashable) -> int:
        """Number of values currently retained for identity (0 if unknown)."""
        entry = self._entries.get(identity)
        return 0 if entry is None else len(entry)

    def __contains__(self, identity: Hashable) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"IndicatorHistory(window_size={self.window_size}, entries={len(self._entries)})"
