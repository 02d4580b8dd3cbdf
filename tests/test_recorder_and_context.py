import pandas as pd
import pytest

from barsim.core.context import Context
from barsim.core.order_engine import OrderEngine
from barsim.core.portfolio import Portfolio
from barsim.core.recorder import Recorder


def make_context(store):
    portfolio = Portfolio(store, initial_cash=1000.0)
    return Context(store, portfolio, OrderEngine(store, portfolio), Recorder(),
                   config={'initial_cash': 1000.0})


def test_record_last_write_wins():
    recorder = Recorder()

    recorder.record("price", 1.0)
    recorder.record(price=2.0, signal="buy")

    assert recorder.snapshot() == {"price": 2.0, "signal": "buy"}


def test_record_clear():
    recorder = Recorder()
    recorder.record(price=1.0)

    recorder.clear()

    assert recorder.snapshot() == {}


@pytest.mark.parametrize("key", ["date", "portfolio_value", "cash", ""])
def test_record_rejects_reserved_or_empty_keys(key):
    with pytest.raises(ValueError):
        Recorder().record(key, 1.0)


def test_record_requires_key_and_value():
    with pytest.raises(TypeError):
        Recorder().record("price")


def test_user_fields_persist(rising_store):
    context = make_context(rising_store)

    context.counter = 1
    context.counter += 1

    assert context.counter == 2
    assert context.fields == {"counter": 2}


def test_missing_user_field_raises_attribute_error(rising_store):
    context = make_context(rising_store)

    with pytest.raises(AttributeError, match="no field 'missing'"):
        context.missing


@pytest.mark.parametrize("name", ["portfolio", "current_dt", "tick_index", "config", "order_target"])
def test_engine_attributes_are_read_only(rising_store, name):
    context = make_context(rising_store)

    with pytest.raises(AttributeError, match="reserved"):
        setattr(context, name, None)


def test_config_is_a_copy(rising_store):
    context = make_context(rising_store)

    context.config['initial_cash'] = 0.0

    assert context.config['initial_cash'] == 1000.0


def test_orders_blocked_outside_handle_data(rising_store):
    context = make_context(rising_store)
    aapl = context.symbol("AAPL")
    context._advance(pd.Timestamp("2013-01-01"), 0, trading=False)

    with pytest.raises(RuntimeError, match="handle_data"):
        context.order_target(aapl, 1)


def test_orders_use_current_tick(rising_store):
    context = make_context(rising_store)
    aapl = context.symbol("AAPL")
    context._advance(pd.Timestamp("2013-01-03"), 2)

    order = context.order_target(aapl, 10)

    assert order.price == 3.0
    assert order.tick_index == 2
    assert context.portfolio.cash == 970.0
    assert context.current_dt == pd.Timestamp("2013-01-03")
