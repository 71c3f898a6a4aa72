"""
Bounded storage primitives.

Primitives (from primitives.py):
    RingBuffer       - Fixed-capacity circular store
    MonotonicDeque   - Sliding-window min/max
"""

from .primitives import MonotonicDeque, RingBuffer

__all__ = ["MonotonicDeque", "RingBuffer"]
