"""
Pytest configuration for indicator tests.
"""

import pandas as pd
import pytest

from barflow.num import DecimalNumFactory, DoubleNumFactory
from tests.fixtures import make_ohlcv_frame


@pytest.fixture
def num() -> DoubleNumFactory:
    """Binary float numeric capability."""
    return DoubleNumFactory()


@pytest.fixture
def decimal_num() -> DecimalNumFactory:
    """Decimal numeric capability."""
    return DecimalNumFactory()


@pytest.fixture
def ohlcv_frame() -> pd.DataFrame:
    """Sixty bars of random-walk OHLCV data."""
    return make_ohlcv_frame()
