"""
Bounded storage primitives for O(1) hot-loop operations.

Provides:
- RingBuffer: Fixed-capacity circular store backing every windowed node
  (moving statistics) and the history cache
- MonotonicDeque: Sliding-window min or max for highest/lowest

Memory is bounded by capacity, never by the number of bars seen.

Performance Contract:
- RingBuffer.add_last(): O(1)
- RingBuffer.get(): O(1)
- RingBuffer.__getitem__(): O(1)
- MonotonicDeque.push(): O(1) amortized
- MonotonicDeque.get(): O(1)
"""

from __future__ import annotations

from collections import deque
from typing import Any, Iterator, Literal

import numpy as np


class RingBuffer:
    """
    Fixed-capacity circular buffer.

    Holds the most recent `capacity` values in insertion order. Once full,
    each add_last() overwrites the oldest retained value. Slots that were
    never written read back as the sentinel.

    Two read modes:
    - get(i): physical slot i (stable per slot, not per recency)
    - buf[k]: logical index, 0 = oldest retained, len-1 = newest

    Example:
        >>> buf = RingBuffer(capacity=3)
        >>> for v in (1.0, 2.0, 3.0):
        ...     buf.add_last(v)
        >>> [buf.get(i) for i in range(3)]
        [1.0, 2.0, 3.0]
        >>> buf.add_last(1000.0)  # evicts 1.0
        >>> [buf.get(i) for i in range(3)]
        [1000.0, 2.0, 3.0]
        >>> buf[0]  # oldest
        2.0

    Attributes:
        capacity: Maximum number of retained values (immutable).
        sentinel: Value returned for never-written slots.
    """

    __slots__ = ("_capacity", "sentinel", "_buffer", "_head", "_count")

    def __init__(self, capacity: int, sentinel: Any = np.nan) -> None:
        """
        Initialize ring buffer with fixed capacity.

        Floats are stored in a float64 array; any other sentinel (for
        example Decimal("NaN")) switches storage to an object array.

        Args:
            capacity: Maximum number of elements (must be >= 1).
            sentinel: Placeholder for unfilled slots.

        Raises:
            ValueError: If capacity < 1.
        """
        if not isinstance(capacity, (int, np.integer)) or capacity < 1:
            raise ValueError(
                f"capacity must be an integer >= 1, got {capacity!r}\n"
                f"\n"
                f"Fix: RingBuffer(capacity=5)"
            )
        self._capacity = int(capacity)
        self.sentinel = sentinel
        dtype = np.float64 if isinstance(sentinel, float) else object
        self._buffer = np.full(self._capacity, sentinel, dtype=dtype)
        self._head = 0  # Next write position
        self._count = 0  # Number of elements stored

    @property
    def capacity(self) -> int:
        return self._capacity

    def add_last(self, value: Any) -> None:
        """
        Append a value, evicting the oldest one if the buffer is full.

        Args:
            value: Value to add.
        """
        self._buffer[self._head] = value
        self._head = (self._head + 1) % self._capacity
        if self._count < self._capacity:
            self._count += 1

    def get(self, slot: int) -> Any:
        """
        Read a physical slot.

        Args:
            slot: Physical index in [0, capacity).

        Returns:
            The value stored in that slot, or the sentinel if never written.

        Raises:
            IndexError: If slot is outside [0, capacity).
        """
        if slot < 0 or slot >= self._capacity:
            raise IndexError(
                f"Slot {slot} out of range [0, {self._capacity})\n"
                f"\n"
                f"Buffer capacity is {self._capacity}."
            )
        return self._unwrap(self._buffer[slot])

    def __getitem__(self, idx: int) -> Any:
        """
        Get element by logical index (0 = oldest, count-1 = newest).

        Raises:
            IndexError: If idx is out of range.
        """
        if idx < 0 or idx >= self._count:
            raise IndexError(
                f"Index {idx} out of range [0, {self._count})\n"
                f"\n"
                f"Buffer has {self._count} elements."
            )
        # Physical index: oldest element is at (_head - _count) mod capacity
        physical = (self._head - self._count + idx) % self._capacity
        return self._unwrap(self._buffer[physical])

    def latest(self, k: int = 1) -> Any:
        """Return the k-th most recent value (k=1 is the newest)."""
        return self[self._count - k]

    def is_full(self) -> bool:
        return self._count == self._capacity

    def __len__(self) -> int:
        """Return the number of elements currently in the buffer."""
        return self._count

    def __iter__(self) -> Iterator[Any]:
        for i in range(self._count):
            yield self[i]

    def values(self) -> list[Any]:
        """Filled contents, oldest first."""
        return list(self)

    def clear(self) -> None:
        """Clear all elements from the buffer."""
        self._buffer.fill(self.sentinel)
        self._head = 0
        self._count = 0

    def to_array(self) -> np.ndarray:
        """
        Return a copy of the buffer contents in logical order.

        Returns:
            numpy array with oldest element first, newest last.
            Length equals current count (not capacity).
        """
        if self._count == 0:
            return np.array([], dtype=self._buffer.dtype)
        order = (self._head - self._count + np.arange(self._count)) % self._capacity
        return self._buffer[order].copy()

    def _unwrap(self, value: Any) -> Any:
        if isinstance(value, np.floating):
            return float(value)
        return value

    def __repr__(self) -> str:
        return f"RingBuffer(capacity={self._capacity}, size={self._count})"


class MonotonicDeque:
    """
    Sliding-window minimum or maximum with O(1) amortized push.

    Entries are (index, value) pairs kept monotonic so the front is always
    the extreme of the window:
    - "min": values increase from front to back
    - "max": values decrease from front to back

    An entry is appended once and dropped at most once, either from the
    back when a newer value dominates it or from the front when its index
    leaves the window.

    Example:
        >>> extremes = MonotonicDeque(window_size=3, mode="max")
        >>> for idx, v in enumerate((4.0, 2.0, 3.0)):
        ...     extremes.push(idx, v)
        >>> extremes.get()
        4.0
        >>> extremes.push(3, 1.0)  # index 0 leaves the window
        >>> extremes.get()
        3.0

    Attributes:
        window_size: Number of consecutive indices covered.
        mode: "min" or "max".
    """

    __slots__ = ("window_size", "mode", "_entries")

    def __init__(self, window_size: int, mode: Literal["min", "max"]) -> None:
        """
        Raises:
            ValueError: If window_size < 1 or mode is not "min"/"max".
        """
        if not isinstance(window_size, (int, np.integer)) or window_size < 1:
            raise ValueError(
                f"window_size must be an integer >= 1, got {window_size!r}\n"
                f"\n"
                f"Fix: MonotonicDeque(window_size=20, mode='max')"
            )
        if mode not in ("min", "max"):
            raise ValueError(
                f"mode must be 'min' or 'max', got {mode!r}\n"
                f"\n"
                f"Fix: MonotonicDeque(window_size=20, mode='max')"
            )
        self.window_size = int(window_size)
        self.mode = mode
        self._entries: deque[tuple[int, Any]] = deque()

    def push(self, idx: int, value: Any) -> None:
        """
        Add value at idx and evict indices older than the window.

        idx must increase across calls; gaps are allowed. value must be
        orderable (never a NaN sentinel).
        """
        entries = self._entries
        while entries and entries[0][0] <= idx - self.window_size:
            entries.popleft()

        if self.mode == "min":
            while entries and entries[-1][1] >= value:
                entries.pop()
        else:
            while entries and entries[-1][1] <= value:
                entries.pop()

        entries.append((idx, value))

    def get(self) -> Any | None:
        """Current extreme, or None if nothing is in the window."""
        if not self._entries:
            return None
        return self._entries[0][1]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"MonotonicDeque(window_size={self.window_size}, mode={self.mode!r}, size={len(self)})"
