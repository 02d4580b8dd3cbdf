# barsim/strategies/moving_average.py
"""
Dual moving average crossover.
"""

import logging
from typing import Any

from .base_algorithm import Algorithm
from ..core.errors import InsufficientHistoryError

logger = logging.getLogger(__name__)


class DualMovingAverage(Algorithm):
    """
    Fully invested while the short moving average is above the long one, flat otherwise.

    Ticks before ``long_window`` bars exist are skipped.

    Params:
        symbol: Ticker to trade (default 'AAPL')
        short_window: Short average length in bars (default 20)
        long_window: Long average length in bars (default 50)
        fraction: Portfolio fraction held while long (default 1.0)
    """

    def __init__(
        self,
        symbol: str = "AAPL",
        short_window: int = 20,
        long_window: int = 50,
        fraction: float = 1.0,
        **params: Any,
    ):
        if short_window >= long_window:
            raise ValueError("short_window must be less than long_window")
        super().__init__(
            symbol=symbol,
            short_window=short_window,
            long_window=long_window,
            fraction=fraction,
            **params,
        )

    def initialize(self, context):
        context.asset = context.symbol(self.params['symbol'])
        context.invested = False

    def handle_data(self, context, data):
        try:
            prices = data.history(context.asset, "price", self.params['long_window'])
        except InsufficientHistoryError:
            return
        short_mavg = prices.iloc[-self.params['short_window']:].mean()
        long_mavg = prices.mean()

        if short_mavg > long_mavg and not context.invested:
            context.order_target_percent(context.asset, self.params['fraction'])
            context.invested = True
            logger.debug(f"{context.current_dt}: crossed above, going long {context.asset.symbol}")
        elif short_mavg < long_mavg and context.invested:
            context.order_target(context.asset, 0)
            context.invested = False
            logger.debug(f"{context.current_dt}: crossed below, flattening {context.asset.symbol}")

        context.record(short_mavg=short_mavg, long_mavg=long_mavg)
