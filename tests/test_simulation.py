import pandas as pd
import pytest

from barsim.core.clock import ticks
from barsim.core.errors import (
    InsufficientCashError,
    InsufficientHistoryError,
    UnknownSymbolError,
    UserCallbackError,
)
from barsim.core.simulation import SimulationState, TradingSimulation, run, run_algorithm
from barsim.strategies.base_algorithm import Algorithm
from barsim.strategies.buy_and_hold import BuyAndHold

from conftest import make_daily_frame


def test_order_on_tick_two_scenario(flat_store):
    def initialize(context):
        context.asset = context.symbol("AAPL")

    def handle_data(context, data):
        if context.tick_index == 2:
            context.order_target(context.asset, 10)
        context.record(shares=context.portfolio.position(context.asset).shares)

    perf = run(initialize, handle_data, "2013-01-01", "2013-01-05",
               initial_cash=1000.0, store=flat_store)

    assert len(perf) == 5
    assert [row.recorded["shares"] for row in perf] == [0, 0, 10, 10, 10]
    assert [row.cash for row in perf] == [1000.0, 1000.0, 900.0, 900.0, 900.0]
    assert all(row.portfolio_value == 1000.0 for row in perf)
    assert perf[2].date == pd.Timestamp("2013-01-03").to_pydatetime()


def test_insufficient_history_scenario(flat_store):
    def initialize(context):
        context.asset = context.symbol("AAPL")

    def handle_data(context, data):
        if context.tick_index == 4:
            data.history(context.asset, "price", 300)

    simulation = TradingSimulation(initialize, handle_data, flat_store,
                                   ticks("2013-01-01", "2013-01-05"))

    with pytest.raises(InsufficientHistoryError) as excinfo:
        simulation.run()

    assert excinfo.value.available == 6
    assert excinfo.value.tick_index == 4
    assert excinfo.value.timestamp == pd.Timestamp("2013-01-05").to_pydatetime()
    assert simulation.state == SimulationState.FAILED
    assert simulation.result is None


def test_series_length_matches_clock(rising_store):
    clock = ticks("2013-01-01", "2013-01-10", calendar="weekdays")

    simulation = TradingSimulation(lambda context: None, lambda context, data: None,
                                   rising_store, clock)
    perf = simulation.run()

    assert len(perf) == len(clock)
    assert [row.date for row in perf] == [ts.to_pydatetime() for ts in clock]
    assert simulation.state == SimulationState.COMPLETED


def test_tick_zero_value_is_initial_cash(rising_store):
    perf = run(lambda context: None, lambda context, data: None,
               "2013-01-01", "2013-01-03", initial_cash=12345.0, store=rising_store)

    assert perf[0].portfolio_value == 12345.0
    assert perf[0].cash == 12345.0


def test_user_exception_wrapped(rising_store):
    def handle_data(context, data):
        if context.tick_index == 1:
            raise KeyError("boom")

    simulation = TradingSimulation(lambda context: None, handle_data, rising_store,
                                   ticks("2013-01-01", "2013-01-05"))

    with pytest.raises(UserCallbackError) as excinfo:
        simulation.run()

    error = excinfo.value
    assert error.callback == "handle_data"
    assert error.tick_index == 1
    assert isinstance(error.__cause__, KeyError)
    assert simulation.state == SimulationState.FAILED
    assert isinstance(simulation.failure.cause, KeyError)
    assert simulation.failure.tick_index == 1
    assert len(simulation.rows) == 1


def test_initialize_exception_wrapped(rising_store):
    def initialize(context):
        raise ValueError("bad setup")

    with pytest.raises(UserCallbackError, match="initialize raised ValueError"):
        run(initialize, lambda context, data: None, "2013-01-01", "2013-01-05",
            store=rising_store)


def test_unknown_symbol_in_initialize_keeps_type(rising_store):
    def initialize(context):
        context.symbol("NOPE")

    with pytest.raises(UnknownSymbolError) as excinfo:
        run(initialize, lambda context, data: None, "2013-01-01", "2013-01-05",
            store=rising_store)

    assert excinfo.value.tick_index == 0


def test_orders_in_initialize_are_rejected(rising_store):
    def initialize(context):
        context.order_target(context.symbol("AAPL"), 1)

    with pytest.raises(UserCallbackError) as excinfo:
        run(initialize, lambda context, data: None, "2013-01-01", "2013-01-05",
            store=rising_store)

    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_insufficient_cash_aborts_run(rising_store):
    def initialize(context):
        context.asset = context.symbol("MSFT")

    def handle_data(context, data):
        context.order_target(context.asset, 100)

    with pytest.raises(InsufficientCashError) as excinfo:
        run(initialize, handle_data, "2013-01-01", "2013-01-05",
            initial_cash=1000.0, store=rising_store)

    assert excinfo.value.tick_index == 0


def test_recorded_values_cleared_each_tick(rising_store):
    def handle_data(context, data):
        if context.tick_index == 0:
            context.record(flag=True)
        context.record(tick=context.tick_index)

    perf = run(lambda context: None, handle_data, "2013-01-01", "2013-01-03",
               store=rising_store)
    frame = perf.to_frame()

    assert list(frame.columns) == ["date", "portfolio_value", "cash", "flag", "tick"]
    assert perf[0].recorded == {"flag": True, "tick": 0}
    assert perf[1].recorded == {"tick": 1}
    assert frame["flag"].isna().tolist() == [False, True, True]


def test_user_fields_persist_across_ticks(rising_store):
    def initialize(context):
        context.count = 0

    def handle_data(context, data):
        context.count += 1
        context.record(count=context.count)

    perf = run(initialize, handle_data, "2013-01-01", "2013-01-04", store=rising_store)

    assert [row.recorded["count"] for row in perf] == [1, 2, 3, 4]


def test_simulation_runs_only_once(rising_store):
    simulation = TradingSimulation(lambda context: None, lambda context, data: None,
                                   rising_store, ticks("2013-01-01", "2013-01-02"))
    simulation.run()

    with pytest.raises(RuntimeError, match="already completed"):
        simulation.run()


def test_stream_can_be_aborted(rising_store):
    simulation = TradingSimulation(lambda context: None, lambda context, data: None,
                                   rising_store, ticks("2013-01-01", "2013-01-10"))

    stream = simulation.stream()
    rows = [next(stream), next(stream)]
    stream.close()

    assert len(rows) == 2
    assert simulation.state == SimulationState.ABORTED
    assert simulation.result is None


def test_independent_runs_share_a_store(rising_store):
    def handle_data(context, data):
        context.order_target(context.symbol("AAPL"), 5)

    first = run(lambda context: None, handle_data, "2013-01-01", "2013-01-05",
                initial_cash=100.0, store=rising_store)
    second = run(lambda context: None, lambda context, data: None, "2013-01-01", "2013-01-05",
                 initial_cash=100.0, store=rising_store)

    assert first[-1].cash == 95.0
    assert all(row.cash == 100.0 for row in second)


def test_run_builds_store_from_bars():
    bars = {"AAPL": make_daily_frame("2013-01-01", [10.0] * 5)}

    perf = run(lambda context: None, lambda context, data: None, "2013-01-01", "2013-01-05",
               bars=bars)

    assert len(perf) == 5


def test_run_requires_data():
    with pytest.raises(ValueError, match="store or bars"):
        run(lambda context: None, lambda context, data: None, "2013-01-01", "2013-01-05")


def test_minute_run_marks_to_minute_bars():
    index = pd.date_range("2013-01-02 09:30", periods=5, freq="min")
    frame = pd.DataFrame({"open": 1.0, "high": 1.0, "low": 1.0,
                          "close": [1.0, 2.0, 3.0, 4.0, 5.0]}, index=index)

    def initialize(context):
        context.asset = context.symbol("SPY")

    def handle_data(context, data):
        if context.tick_index == 0:
            context.order_target(context.asset, 10)

    perf = run(initialize, handle_data, "2013-01-02 09:30", "2013-01-02 09:34",
               frequency="1m", initial_cash=100.0, bars={"SPY": frame})

    assert len(perf) == 5
    assert [row.portfolio_value for row in perf] == [100.0, 110.0, 120.0, 130.0, 140.0]


class CountingAlgorithm(Algorithm):

    def initialize(self, context):
        context.asset = context.symbol(self.params["symbol"])

    def handle_data(self, context, data):
        context.order_target(context.asset, self.params["shares"])

    def analyze(self, context, perf):
        context.analyzed_rows = len(perf)
        self.analyzed = context.analyzed_rows


def test_run_algorithm_calls_analyze(rising_store):
    algo = CountingAlgorithm(symbol="AAPL", shares=3)

    perf = run_algorithm(algo, "2013-01-01", "2013-01-05", store=rising_store)

    assert algo.analyzed == 5
    assert len(perf.fills) == 1
    assert algo.get_state() == {"name": "CountingAlgorithm",
                                "params": {"symbol": "AAPL", "shares": 3}}


def test_buy_and_hold_records_price(rising_store):
    perf = run_algorithm(BuyAndHold(shares=2), "2013-01-01", "2013-01-04",
                         store=rising_store, initial_cash=100.0)

    assert [row.recorded["price"] for row in perf] == [1.0, 2.0, 3.0, 4.0]
    assert perf[-1].portfolio_value == pytest.approx(100.0 - 2.0 + 8.0)


def test_failing_analyze_leaves_no_result(rising_store):
    def analyze(context, perf):
        raise ValueError("report failed")

    simulation = TradingSimulation(lambda context: None, lambda context, data: None,
                                   rising_store, ticks("2013-01-01", "2013-01-03"),
                                   analyze=analyze)

    with pytest.raises(UserCallbackError, match="analyze raised ValueError") as excinfo:
        simulation.run()

    assert excinfo.value.callback == "analyze"
    assert simulation.state == SimulationState.FAILED
    assert simulation.result is None
    assert isinstance(simulation.failure.cause, ValueError)
    assert len(simulation.rows) == 3
