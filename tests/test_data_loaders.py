import pandas as pd
import pytest

from barsim.core.clock import ticks
from barsim.data.csv_loader import load_bars_csv, load_bars_dir
from barsim.data.synthetic_data import SyntheticDataProvider


CSV_BODY = """Date,Open,High,Low,Close,Volume
2013-01-03,3,3,3,3,300
2013-01-01,1,1,1,1,100
2013-01-02,2,2,2,2,200
"""


def test_load_bars_csv_sorts_and_normalizes(tmp_path):
    path = tmp_path / "AAPL.csv"
    path.write_text(CSV_BODY)

    frame = load_bars_csv(path)

    assert list(frame.columns) == ["open", "high", "low", "close", "volume"]
    assert list(frame["close"]) == [1.0, 2.0, 3.0]
    assert frame.index[0] == pd.Timestamp("2013-01-01")


def test_load_bars_csv_missing_columns(tmp_path):
    path = tmp_path / "BAD.csv"
    path.write_text("date,close\n2013-01-01,1\n")

    with pytest.raises(ValueError, match="BAD.csv"):
        load_bars_csv(path)


def test_load_bars_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_bars_csv(tmp_path / "NOPE.csv")


def test_load_bars_dir_registers_each_symbol(tmp_path):
    (tmp_path / "AAPL.csv").write_text(CSV_BODY)
    (tmp_path / "MSFT.csv").write_text(CSV_BODY.replace(",3,3,3,3,", ",30,30,30,30,"))

    store = load_bars_dir(tmp_path, symbols=["aapl", "msft"])

    assert [asset.symbol for asset in store.assets] == ["AAPL", "MSFT"]
    assert store.current(store.symbol("MSFT"), "price", "2013-01-03") == 30.0


def test_load_bars_dir_missing_symbol(tmp_path):
    (tmp_path / "AAPL.csv").write_text(CSV_BODY)

    with pytest.raises(FileNotFoundError):
        load_bars_dir(tmp_path, symbols=["GOOG"])


def test_load_bars_dir_without_symbols_loads_all(tmp_path):
    (tmp_path / "B.csv").write_text(CSV_BODY)
    (tmp_path / "A.csv").write_text(CSV_BODY)

    store = load_bars_dir(tmp_path)

    assert [asset.symbol for asset in store.assets] == ["A", "B"]


def test_synthetic_bars_follow_clock():
    bars = SyntheticDataProvider(seed=1).generate_ohlcv(
        "2013-01-01", "2013-01-31", calendar="weekdays"
    )

    clock = ticks("2013-01-01", "2013-01-31", calendar="weekdays")
    assert [bar.timestamp for bar in bars] == [ts.to_pydatetime() for ts in clock]
    for bar in bars:
        assert bar.low <= min(bar.open, bar.close)
        assert bar.high >= max(bar.open, bar.close)
        assert bar.low > 0


def test_synthetic_bars_reproducible_with_seed():
    first = SyntheticDataProvider(seed=7).generate_ohlcv("2013-01-01", "2013-02-01")
    second = SyntheticDataProvider(seed=7).generate_ohlcv("2013-01-01", "2013-02-01")

    assert first == second


def test_synthetic_minute_frame():
    frame = SyntheticDataProvider(seed=3).generate_frame(
        "2013-01-02", "2013-01-02", frequency="1m"
    )

    assert len(frame) == 24 * 60
    assert frame.index.is_monotonic_increasing


def test_populate_store():
    store = SyntheticDataProvider(seed=3).populate_store(["AAPL", "MSFT"], "2013-01-01", "2013-01-10")

    aapl = store.symbol("AAPL")
    assert len(store.history(aapl, "close", 10, "1d", "2013-01-10")) == 10
