# barsim/models/__init__.py
"""
Data models for the backtesting engine.
"""

from .config import AppConfig, BacktestConfig, DataConfig, LoggingConfig
from .market_data import Asset, Bar
from .orders import Order, OrderStatus, TargetKind, Fill
from .results import PerformanceRow, PerformanceSeries, PerformanceMetrics

__all__ = [
    "AppConfig",
    "BacktestConfig",
    "DataConfig",
    "LoggingConfig",
    "Asset",
    "Bar",
    "Order",
    "OrderStatus",
    "TargetKind",
    "Fill",
    "PerformanceRow",
    "PerformanceSeries",
    "PerformanceMetrics",
]
