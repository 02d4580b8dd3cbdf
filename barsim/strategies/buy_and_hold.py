# barsim/strategies/buy_and_hold.py
"""
Buy a fixed number of shares on the first tick and hold them.
"""

import logging
from typing import Any

from .base_algorithm import Algorithm

logger = logging.getLogger(__name__)


class BuyAndHold(Algorithm):
    """
    Holds ``shares`` of ``symbol`` for the whole run and records its price.

    Params:
        symbol: Ticker to hold (default 'AAPL')
        shares: Target share count (default 10)
    """

    def __init__(self, symbol: str = "AAPL", shares: int = 10, **params: Any):
        super().__init__(symbol=symbol, shares=shares, **params)

    def initialize(self, context):
        context.asset = context.symbol(self.params['symbol'])
        logger.info(f"BuyAndHold holding {self.params['shares']} x {context.asset.symbol}")

    def handle_data(self, context, data):
        context.order_target(context.asset, self.params['shares'])
        context.record(price=data.current(context.asset, "price"))
