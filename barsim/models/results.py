# barsim/models/results.py
"""
Backtest results and performance metrics models.
"""

import json
from collections.abc import Sequence
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union, overload
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

import pandas as pd

from .orders import Fill, Order


BASE_COLUMNS = ("date", "portfolio_value", "cash")


class PerformanceRow(BaseModel):
    """Snapshot of one tick, appended after the tick's callback returns."""
    model_config = ConfigDict(frozen=True)

    date: datetime = Field(..., description="Tick timestamp")
    portfolio_value: float = Field(..., description="Cash plus marked positions")
    cash: float = Field(..., description="Cash balance")
    recorded: Dict[str, Any] = Field(default_factory=dict, description="User-recorded fields")

    def to_dict(self) -> dict:
        """Flatten into a single mapping of column name to value."""
        row = {
            'date': self.date,
            'portfolio_value': self.portfolio_value,
            'cash': self.cash,
        }
        row.update(self.recorded)
        return row


class PerformanceSeries(Sequence):
    """
    Ordered, read-only sequence of per-tick performance rows.

    Exposed as a table through :meth:`to_frame` with columns
    ``date, portfolio_value, cash`` followed by every recorded field.
    """

    def __init__(
        self,
        rows: List[PerformanceRow],
        orders: Optional[List[Order]] = None,
        fills: Optional[List[Fill]] = None,
        initial_cash: float = 0.0,
        frequency: str = "1d",
    ):
        self._rows: Tuple[PerformanceRow, ...] = tuple(rows)
        self.orders: Tuple[Order, ...] = tuple(orders or ())
        self.fills: Tuple[Fill, ...] = tuple(fills or ())
        self.initial_cash = initial_cash
        self.frequency = frequency

    @overload
    def __getitem__(self, index: int) -> PerformanceRow: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[PerformanceRow, ...]: ...

    def __getitem__(self, index: Union[int, slice]):
        return self._rows[index]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[PerformanceRow]:
        return iter(self._rows)

    def __repr__(self) -> str:
        return f"PerformanceSeries({len(self._rows)} rows, {len(self.fills)} fills)"

    @property
    def recorded_columns(self) -> List[str]:
        """Union of recorded keys across all ticks, in first-seen order."""
        columns: Dict[str, None] = {}
        for row in self._rows:
            for key in row.recorded:
                columns.setdefault(key, None)
        return list(columns)

    def to_frame(self) -> pd.DataFrame:
        """Convert to a pandas DataFrame, one row per tick."""
        columns = list(BASE_COLUMNS) + self.recorded_columns
        return pd.DataFrame([row.to_dict() for row in self._rows], columns=columns)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'initial_cash': self.initial_cash,
            'frequency': self.frequency,
            'rows': [
                {**row.to_dict(), 'date': row.date.isoformat()}
                for row in self._rows
            ],
            'orders': [order.to_dict() for order in self.orders],
            'fills': [fill.to_dict() for fill in self.fills],
        }

    def save_to_json(self, filepath: str) -> None:
        """Save series, orders and fills to a JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    def save_to_csv(self, filepath: str) -> None:
        """Save the performance table to a CSV file."""
        self.to_frame().to_csv(filepath, index=False)


class PerformanceMetrics(BaseModel):
    """Summary statistics over a performance series."""

    # Basic metrics
    total_return: float = Field(..., description="Total return")
    total_return_pct: float = Field(..., description="Total return percentage")
    annualized_return: float = Field(..., description="Annualized return percentage")
    max_drawdown: float = Field(..., description="Maximum drawdown")
    max_drawdown_pct: float = Field(..., description="Maximum drawdown percentage")

    # Risk metrics
    sharpe_ratio: Optional[float] = Field(None, description="Sharpe ratio")
    sortino_ratio: Optional[float] = Field(None, description="Sortino ratio")
    volatility: float = Field(..., description="Annualized volatility")

    # Portfolio metrics
    initial_capital: float = Field(..., description="Initial capital")
    final_capital: float = Field(..., description="Final capital")
    peak_capital: float = Field(..., description="Peak capital reached")
    total_fills: int = Field(default=0, description="Number of fills")
    total_commission: float = Field(default=0.0, description="Total commission paid")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump(mode='python', exclude_none=False)
