import pandas as pd
import pytest

from barsim.core.history import DataHistoryStore


def make_daily_frame(start, closes, volume=1000.0):
    """OHLC frame with one daily bar per close, open/high/low equal to close."""
    index = pd.date_range(start=start, periods=len(closes), freq="D", name="timestamp")
    return pd.DataFrame(
        {
            "open": closes,
            "high": closes,
            "low": closes,
            "close": closes,
            "volume": [volume] * len(closes),
        },
        index=index,
    )


@pytest.fixture
def flat_store() -> DataHistoryStore:
    """AAPL at a constant 10.0 from 2012-12-31 through 2013-01-05 (6 bars)."""
    store = DataHistoryStore()
    store.add_bars("AAPL", make_daily_frame("2012-12-31", [10.0] * 6))
    return store


@pytest.fixture
def rising_store() -> DataHistoryStore:
    """AAPL closing 1, 2, ..., 10 from 2013-01-01, MSFT flat at 50."""
    store = DataHistoryStore()
    store.add_bars("AAPL", make_daily_frame("2013-01-01", [float(p) for p in range(1, 11)]))
    store.add_bars("MSFT", make_daily_frame("2013-01-01", [50.0] * 10))
    return store
