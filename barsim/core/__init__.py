# barsim/core/__init__.py
"""
Core backtesting engine components.
"""

from .clock import Clock, ticks
from .context import Context
from .errors import (
    BacktestError,
    InvalidRangeError,
    InsufficientHistoryError,
    InsufficientCashError,
    UnknownAssetError,
    UnknownSymbolError,
    UserCallbackError,
)
from .history import DataHistoryStore, DataView
from .metrics import MetricsCalculator, compute_metrics
from .order_engine import CommissionModel, OrderEngine
from .portfolio import Portfolio, Position
from .recorder import Recorder
from .simulation import SimulationState, TradingSimulation, build_store, run, run_algorithm

__all__ = [
    "Clock",
    "ticks",
    "Context",
    "BacktestError",
    "InvalidRangeError",
    "InsufficientHistoryError",
    "InsufficientCashError",
    "UnknownAssetError",
    "UnknownSymbolError",
    "UserCallbackError",
    "DataHistoryStore",
    "DataView",
    "MetricsCalculator",
    "compute_metrics",
    "CommissionModel",
    "OrderEngine",
    "Portfolio",
    "Position",
    "Recorder",
    "SimulationState",
    "TradingSimulation",
    "build_store",
    "run",
    "run_algorithm",
]
