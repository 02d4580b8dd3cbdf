# barsim/core/context.py
"""
The ``context`` object handed to user callbacks.
"""

from typing import Any, Dict, Optional

import pandas as pd

from .history import DataHistoryStore
from .order_engine import OrderEngine
from .portfolio import Portfolio
from .recorder import Recorder
from ..models.market_data import Asset
from ..models.orders import Order


class Context:
    """
    Run state shared between ``initialize`` and every ``handle_data`` call.

    Engine state (``portfolio``, ``current_dt``, ``tick_index``) and the
    trading API are read-only attributes. Any other attribute is a user
    field that persists across ticks::

        def initialize(context):
            context.asset = context.symbol("AAPL")
            context.days = 0

        def handle_data(context, data):
            context.days += 1
            context.order_target(context.asset, 10)

    Each context belongs to exactly one simulation run.
    """

    def __init__(
        self,
        store: DataHistoryStore,
        portfolio: Portfolio,
        order_engine: OrderEngine,
        recorder: Recorder,
        config: Optional[Dict[str, Any]] = None,
    ):
        object.__setattr__(self, '_store', store)
        object.__setattr__(self, '_portfolio', portfolio)
        object.__setattr__(self, '_order_engine', order_engine)
        object.__setattr__(self, '_recorder', recorder)
        object.__setattr__(self, '_config', dict(config or {}))
        object.__setattr__(self, '_user', {})
        object.__setattr__(self, '_as_of', None)
        object.__setattr__(self, '_tick_index', -1)
        object.__setattr__(self, '_trading', False)

    # ------------------------------------------------------------------
    # User fields
    # ------------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        user = self.__dict__.get('_user')
        if user is None or name not in user:
            raise AttributeError(f"Context has no field '{name}'")
        return user[name]

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(type(self), name) or name in self.__dict__:
            raise AttributeError(f"Context attribute '{name}' is reserved by the engine")
        self._user[name] = value

    def __delattr__(self, name: str) -> None:
        if name not in self._user:
            raise AttributeError(f"Context has no field '{name}'")
        del self._user[name]

    @property
    def fields(self) -> Dict[str, Any]:
        """Copy of all user-defined fields."""
        return dict(self._user)

    # ------------------------------------------------------------------
    # Engine state
    # ------------------------------------------------------------------

    @property
    def portfolio(self) -> Portfolio:
        return self._portfolio

    @property
    def config(self) -> Dict[str, Any]:
        """Run parameters (dates, frequency, cash and margin settings)."""
        return dict(self._config)

    @property
    def current_dt(self) -> Optional[pd.Timestamp]:
        return self._as_of

    @property
    def tick_index(self) -> int:
        return self._tick_index

    def _advance(self, as_of: pd.Timestamp, tick_index: int, trading: bool = True) -> None:
        object.__setattr__(self, '_as_of', as_of)
        object.__setattr__(self, '_tick_index', tick_index)
        object.__setattr__(self, '_trading', trading)

    # ------------------------------------------------------------------
    # Trading API
    # ------------------------------------------------------------------

    def symbol(self, ticker: str) -> Asset:
        """Look up an asset by ticker."""
        return self._store.symbol(ticker)

    def _require_trading(self) -> None:
        if not self._trading:
            raise RuntimeError("Orders can only be placed from handle_data")

    def order(self, asset: Asset, amount: int) -> Order:
        """Buy (positive) or sell (negative) a number of shares."""
        self._require_trading()
        return self._order_engine.order(asset, amount, self._as_of, self._tick_index)

    def order_target(self, asset: Asset, target_shares: int) -> Order:
        """Adjust the position to ``target_shares``."""
        self._require_trading()
        return self._order_engine.order_target(asset, target_shares, self._as_of, self._tick_index)

    def order_target_value(self, asset: Asset, target_value: float) -> Order:
        """Adjust the position to be worth ``target_value``."""
        self._require_trading()
        return self._order_engine.order_target_value(asset, target_value, self._as_of, self._tick_index)

    def order_target_percent(self, asset: Asset, target_fraction: float) -> Order:
        """Adjust the position to ``target_fraction`` of portfolio value."""
        self._require_trading()
        return self._order_engine.order_target_percent(
            asset, target_fraction, self._as_of, self._tick_index
        )

    def record(self, *args: Any, **fields: Any) -> None:
        """Record values for this tick's performance row."""
        self._recorder.record(*args, **fields)

    def __repr__(self) -> str:
        return (f"Context(current_dt={self._as_of}, tick_index={self._tick_index}, "
                f"fields={sorted(self._user)})")
