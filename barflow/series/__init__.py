"""Bar value type consumed by indicator graphs."""

from .bar import Bar, bars_from_frame

__all__ = ["Bar", "bars_from_frame"]
