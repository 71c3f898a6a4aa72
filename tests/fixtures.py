"""
Fixtures - deterministic bar generators for indicator tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import numpy as np
import pandas as pd

from barflow.series import Bar

START = datetime(2024, 1, 1, 0, 0)
STEP = timedelta(minutes=1)


def make_bars(closes: list[float], start: datetime = START, step: timedelta = STEP) -> list[Bar]:
    """One bar per close, begin times spaced by step."""
    return [Bar.of(start + i * step, close=c, duration=step) for i, c in enumerate(closes)]


def feed(bars: list[Bar], *nodes) -> None:
    """Drive every node with every bar, in order."""
    for bar in bars:
        for node in nodes:
            node.on_bar(bar)


def values_over(bars: list[Bar], node) -> list:
    """Drive node bar by bar and collect its value after each."""
    out = []
    for bar in bars:
        node.on_bar(bar)
        out.append(node.value)
    return out


def make_ohlcv_frame(n: int = 60, seed: int = 42) -> pd.DataFrame:
    """Deterministic random-walk OHLCV frame with a timestamp column."""
    rng = np.random.default_rng(seed)
    close = 100.0 + np.cumsum(rng.normal(0.0, 1.0, n))
    open_ = close + rng.normal(0.0, 0.3, n)
    high = np.maximum(open_, close) + rng.uniform(0.0, 0.5, n)
    low = np.minimum(open_, close) - rng.uniform(0.0, 0.5, n)
    return pd.DataFrame({
        "timestamp": pd.date_range("2024-01-01", periods=n, freq="1min"),
        "open": open_,
        "high": high,
        "low": low,
        "close": close,
        "volume": rng.uniform(10.0, 100.0, n),
    })


def values_over_all(bars: list[Bar], *nodes) -> list[list]:
    """Drive nodes together bar by bar; one value list per node."""
    out: list[list] = [[] for _ in nodes]
    for bar in bars:
        for node, values in zip(nodes, out):
            node.on_bar(bar)
            values.append(node.value)
    return out
