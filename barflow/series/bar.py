"""
Bar value type and frame adapter.

Provides:
- Bar: Immutable OHLCV bar passed to indicator graphs
- bars_from_frame: Adapt a pandas OHLCV DataFrame into Bar objects

Bar identity is its begin_time. Nodes compare begin_time against the last
bar they processed to decide whether to recompute, so a bar fed twice
(directly or through several parent paths) is evaluated once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator

import pandas as pd

REQUIRED_COLUMNS = ("open", "high", "low", "close")


@dataclass(frozen=True, slots=True)
class Bar:
    """
    Single immutable OHLCV bar.

    Attributes:
        begin_time: Bar open timestamp (identity of the bar).
        end_time: Bar close timestamp.
        open: Open price.
        high: High price.
        low: Low price.
        close: Close price.
        volume: Traded volume.

    Example:
        >>> bar = Bar.of(datetime(2024, 1, 1), close=101.0)
        >>> bar.close
        101.0
    """

    begin_time: datetime
    end_time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def identity(self) -> datetime:
        return self.begin_time

    @classmethod
    def of(
        cls,
        begin_time: datetime,
        close: float,
        open: float | None = None,
        high: float | None = None,
        low: float | None = None,
        volume: float = 0.0,
        duration: timedelta = timedelta(minutes=1),
    ) -> "Bar":
        """Build a bar from a close price, filling missing OHLC from it."""
        open_ = close if open is None else open
        return cls(
            begin_time=begin_time,
            end_time=begin_time + duration,
            open=open_,
            high=max(open_, close) if high is None else high,
            low=min(open_, close) if low is None else low,
            close=close,
            volume=volume,
        )


def bars_from_frame(
    df: pd.DataFrame,
    time_column: str | None = None,
    duration: timedelta | None = None,
) -> Iterator[Bar]:
    """
    Yield bars from an OHLCV DataFrame.

    The begin time is taken from `time_column` when given, otherwise from a
    DatetimeIndex. The end time is begin + `duration`; when no duration is
    given it is inferred from the spacing of the first two rows.

    Raises:
        ValueError: If OHLC columns are missing or no timestamps are available.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(
            f"Bar frame missing columns: {missing}\n"
            f"\n"
            f"Fix: provide columns {list(REQUIRED_COLUMNS)} (volume optional)"
        )

    if time_column is not None:
        times = pd.to_datetime(df[time_column])
    elif isinstance(df.index, pd.DatetimeIndex):
        times = pd.Series(df.index, index=df.index)
    else:
        raise ValueError(
            "Bar frame has no timestamps\n"
            "\n"
            "Fix: pass time_column='timestamp' or use a DatetimeIndex"
        )

    if duration is None:
        duration = timedelta(minutes=1)
        if len(times) > 1:
            duration = (times.iloc[1] - times.iloc[0]).to_pytimedelta()

    has_volume = "volume" in df.columns
    for i in range(len(df)):
        row = df.iloc[i]
        begin = times.iloc[i].to_pydatetime()
        yield Bar(
            begin_time=begin,
            end_time=begin + duration,
            open=float(row["open"]),
            high=float(row["high"]),
            low=float(row["low"]),
            close=float(row["close"]),
            volume=float(row["volume"]) if has_volume else 0.0,
        )
