# barsim/__init__.py
"""
barsim: an event-driven bar-by-bar backtesting engine.

Typical use::

    from barsim import run, DataHistoryStore

    store = DataHistoryStore()
    store.add_bars("AAPL", bars)

    def initialize(context):
        context.asset = context.symbol("AAPL")

    def handle_data(context, data):
        context.order_target(context.asset, 10)
        context.record(price=data.current(context.asset, "price"))

    perf = run(initialize, handle_data, "2013-01-01", "2013-01-05", store=store)
"""

from .core import (
    BacktestError,
    Clock,
    CommissionModel,
    Context,
    DataHistoryStore,
    DataView,
    InsufficientCashError,
    InsufficientHistoryError,
    InvalidRangeError,
    SimulationState,
    TradingSimulation,
    UnknownAssetError,
    UnknownSymbolError,
    UserCallbackError,
    compute_metrics,
    run,
    run_algorithm,
    ticks,
)
from .models import Asset, Bar, PerformanceSeries
from .strategies import Algorithm

__version__ = "0.1.0"

__all__ = [
    "run",
    "run_algorithm",
    "ticks",
    "compute_metrics",
    "Clock",
    "CommissionModel",
    "Context",
    "DataHistoryStore",
    "DataView",
    "SimulationState",
    "TradingSimulation",
    "Asset",
    "Bar",
    "PerformanceSeries",
    "Algorithm",
    "BacktestError",
    "InvalidRangeError",
    "InsufficientHistoryError",
    "InsufficientCashError",
    "UnknownAssetError",
    "UnknownSymbolError",
    "UserCallbackError",
]
