"""
Tests for Bar and the DataFrame adapter.
"""

from datetime import datetime, timedelta

import pandas as pd
import pytest

from barflow.series import Bar, bars_from_frame


class TestBar:
    """Test Bar construction."""

    def test_of_fills_ohlc_from_close(self):
        bar = Bar.of(datetime(2024, 1, 1), close=101.0)

        assert bar.open == bar.high == bar.low == 101.0
        assert bar.end_time - bar.begin_time == timedelta(minutes=1)
        assert bar.identity == bar.begin_time

    def test_bar_is_immutable(self):
        bar = Bar.of(datetime(2024, 1, 1), close=1.0)
        with pytest.raises(AttributeError):
            bar.close = 2.0


class TestBarsFromFrame:
    """Test OHLCV DataFrame adaptation."""

    def test_time_column(self, ohlcv_frame):
        bars = list(bars_from_frame(ohlcv_frame, time_column="timestamp"))

        assert len(bars) == len(ohlcv_frame)
        assert bars[0].close == pytest.approx(ohlcv_frame["close"].iloc[0])
        assert bars[1].begin_time - bars[0].begin_time == timedelta(minutes=1)
        assert bars[0].end_time == bars[1].begin_time

    def test_datetime_index(self, ohlcv_frame):
        frame = ohlcv_frame.set_index("timestamp")
        bars = list(bars_from_frame(frame, duration=timedelta(minutes=5)))

        assert bars[0].begin_time == frame.index[0].to_pydatetime()
        assert bars[0].end_time - bars[0].begin_time == timedelta(minutes=5)

    def test_volume_optional(self, ohlcv_frame):
        frame = ohlcv_frame.drop(columns=["volume"])
        bars = list(bars_from_frame(frame, time_column="timestamp"))
        assert bars[0].volume == 0.0

    def test_missing_columns(self, ohlcv_frame):
        with pytest.raises(ValueError, match="missing columns"):
            list(bars_from_frame(ohlcv_frame.drop(columns=["high"]), time_column="timestamp"))

    def test_missing_timestamps(self):
        frame = pd.DataFrame({"open": [1.0], "high": [1.0], "low": [1.0], "close": [1.0]})
        with pytest.raises(ValueError, match="no timestamps"):
            list(bars_from_frame(frame))
