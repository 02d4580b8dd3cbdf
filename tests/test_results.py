import json
from datetime import datetime

import pandas as pd

from barsim.core.simulation import run


def test_series_is_an_immutable_sequence(rising_store):
    perf = run(lambda context: None, lambda context, data: None, "2013-01-01", "2013-01-03",
               store=rising_store)

    assert len(perf[0:2]) == 2
    assert isinstance(perf[0:2], tuple)
    assert list(iter(perf)) == list(perf[:])


def test_to_frame_base_columns_without_records(rising_store):
    perf = run(lambda context: None, lambda context, data: None, "2013-01-01", "2013-01-02",
               store=rising_store)

    frame = perf.to_frame()

    assert list(frame.columns) == ["date", "portfolio_value", "cash"]
    assert frame["date"].iloc[0] == pd.Timestamp("2013-01-01")


def test_save_to_csv_and_json(rising_store, tmp_path):
    def handle_data(context, data):
        context.order_target(context.symbol("AAPL"), 1)
        context.record(price=data.current(context.symbol("AAPL")))

    perf = run(lambda context: None, handle_data, "2013-01-01", "2013-01-03",
               initial_cash=10.0, store=rising_store)

    csv_path = tmp_path / "perf.csv"
    perf.save_to_csv(str(csv_path))
    loaded = pd.read_csv(csv_path)
    assert list(loaded.columns) == ["date", "portfolio_value", "cash", "price"]
    assert loaded["price"].tolist() == [1.0, 2.0, 3.0]

    json_path = tmp_path / "perf.json"
    perf.save_to_json(str(json_path))
    payload = json.loads(json_path.read_text())
    assert payload["initial_cash"] == 10.0
    assert len(payload["rows"]) == 3
    assert payload["rows"][0]["date"] == datetime(2013, 1, 1).isoformat()
    assert payload["fills"][0]["symbol"] == "AAPL"
    assert [order["status"] for order in payload["orders"]] == ["FILLED", "NOOP", "NOOP"]
