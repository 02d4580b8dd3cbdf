# barsim/core/errors.py
"""
Exception hierarchy for the backtesting engine.

Every error aborts the run it is raised in. The simulation loop fills in
``timestamp`` and ``tick_index`` before the error leaves ``run()``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional


class BacktestError(Exception):
    """Base exception for backtest failures."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message
        self.timestamp: Optional[datetime] = None
        self.tick_index: Optional[int] = None

    def attach_tick(self, timestamp: datetime, tick_index: int) -> None:
        """Tag the error with the tick it was raised on."""
        self.timestamp = timestamp
        self.tick_index = tick_index

    def __str__(self) -> str:
        if self.timestamp is None:
            return self.message
        return f"{self.message} (tick {self.tick_index} @ {self.timestamp.isoformat()})"


class InvalidRangeError(BacktestError):
    """Raised when a clock range or frequency is not usable."""


class InsufficientHistoryError(BacktestError):
    """Raised when fewer bars exist than a history query asks for."""

    def __init__(self, message: str, requested: int = 0, available: int = 0):
        super().__init__(message)
        self.requested = requested
        self.available = available


class InsufficientCashError(BacktestError):
    """Raised when a fill would push cash below zero without margin."""

    def __init__(self, message: str, required: float = 0.0, available: float = 0.0):
        super().__init__(message)
        self.required = required
        self.available = available


class UnknownAssetError(BacktestError):
    """Raised when an asset was never registered with the history store."""


class UnknownSymbolError(BacktestError):
    """Raised when a ticker is not present in the loaded data."""


class UserCallbackError(BacktestError):
    """
    Wraps an exception raised inside ``initialize``, ``handle_data`` or ``analyze``.

    Only non-engine exceptions are wrapped; the original is kept as
    ``__cause__``. ``BacktestError`` subclasses raised by the engine API
    inside a callback (``InsufficientCashError``, ``UnknownSymbolError``,
    ...) propagate with their own type, tagged with the failing tick.
    """

    def __init__(
        self,
        message: str,
        callback: str,
        timestamp: Optional[datetime] = None,
        tick_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.callback = callback
        self.timestamp = timestamp
        self.tick_index = tick_index
