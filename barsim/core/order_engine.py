# barsim/core/order_engine.py
"""
Target-order resolution and immediate settlement.

Every order resolves at the price of the bar current as of its tick and
settles before the call returns. There are no resting orders, partial fills
or slippage.
"""

import math
import uuid
import logging
from dataclasses import dataclass
from typing import Callable, List

import pandas as pd

from .errors import InsufficientCashError
from .history import DataHistoryStore
from .portfolio import Portfolio
from ..models.market_data import Asset
from ..models.orders import Fill, Order, OrderStatus, TargetKind


logger = logging.getLogger(__name__)

# Absorbs float error when an order spends exactly the available cash
CASH_TOLERANCE = 1e-9


@dataclass
class CommissionModel:
    """Per-share plus per-fill commission."""
    per_share: float = 0.0
    per_trade: float = 0.0

    def calculate(self, delta_shares: int, price: float) -> float:
        """
        Calculate commission for a fill.

        Args:
            delta_shares: Signed share change
            price: Fill price

        Returns:
            Commission amount (zero when nothing trades)
        """
        if delta_shares == 0:
            return 0.0
        return abs(delta_shares) * self.per_share + self.per_trade


def _as_shares(value: float, what: str) -> int:
    """Coerce an integral share amount to int."""
    if isinstance(value, bool):
        raise ValueError(f"{what} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number) or not number.is_integer():
        raise ValueError(f"{what} must be a whole number of shares, got {value!r}")
    return int(number)


def _as_finite(value: float, what: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{what} must be finite, got {value!r}")
    return number


class OrderEngine:
    """
    Resolves target orders against current prices and settles them on the portfolio.

    Features:
    - Absolute, delta, value and percent targets
    - Floor rounding for value and percent targets
    - Cash check when margin is disabled
    - Pluggable commission model
    """

    def __init__(
        self,
        store: DataHistoryStore,
        portfolio: Portfolio,
        allow_margin: bool = False,
        commission: CommissionModel = None,
    ):
        """
        Initialize order engine.

        Args:
            store: History store providing prices
            portfolio: Portfolio the fills settle against
            allow_margin: Permit fills that leave cash negative
            commission: Commission model (zero commission when omitted)
        """
        self.store = store
        self.portfolio = portfolio
        self.allow_margin = allow_margin
        self.commission = commission or CommissionModel()
        self.orders: List[Order] = []
        self.fills: List[Fill] = []

    # ------------------------------------------------------------------
    # Order types
    # ------------------------------------------------------------------

    def order(self, asset: Asset, amount: int, as_of: pd.Timestamp, tick_index: int) -> Order:
        """Trade ``amount`` shares (signed)."""
        delta = _as_shares(amount, "amount")
        return self._submit(
            asset, TargetKind.DELTA, delta, as_of, tick_index,
            lambda price, current: current + delta,
        )

    def order_target(
        self, asset: Asset, target_shares: int, as_of: pd.Timestamp, tick_index: int
    ) -> Order:
        """Trade until the position holds ``target_shares``."""
        target = _as_shares(target_shares, "target_shares")
        return self._submit(
            asset, TargetKind.SHARES, target, as_of, tick_index,
            lambda price, current: target,
        )

    def order_target_value(
        self, asset: Asset, target_value: float, as_of: pd.Timestamp, tick_index: int
    ) -> Order:
        """Trade until the position is worth ``target_value``, rounded down to whole shares."""
        value = _as_finite(target_value, "target_value")
        return self._submit(
            asset, TargetKind.VALUE, value, as_of, tick_index,
            lambda price, current: math.floor(value / price),
        )

    def order_target_percent(
        self, asset: Asset, target_fraction: float, as_of: pd.Timestamp, tick_index: int
    ) -> Order:
        """Trade until the position is ``target_fraction`` of portfolio value, rounded down."""
        fraction = _as_finite(target_fraction, "target_fraction")

        def target(price: float, current: int) -> int:
            target_value = fraction * self.portfolio.value(as_of)
            return math.floor(target_value / price)

        return self._submit(asset, TargetKind.PERCENT, fraction, as_of, tick_index, target)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _submit(
        self,
        asset: Asset,
        kind: TargetKind,
        target: float,
        as_of: pd.Timestamp,
        tick_index: int,
        target_shares: Callable[[float, int], int],
    ) -> Order:
        self.store.validate_asset(asset)
        price = self.store.current(asset, "price", as_of)
        if not math.isfinite(price) or price <= 0:
            raise ValueError(f"Cannot trade {asset.symbol} at non-positive price {price}")

        current = self.portfolio.position(asset).shares
        delta = int(target_shares(price, current)) - current

        order = Order(
            id=str(uuid.uuid4()),
            asset=asset,
            kind=kind,
            target=target,
            created_at=pd.Timestamp(as_of).to_pydatetime(),
            tick_index=tick_index,
            delta=delta,
            price=price,
        )
        self.orders.append(order)

        if delta == 0:
            order.status = OrderStatus.NOOP
            logger.debug(f"Tick {tick_index}: {kind.value} order for {asset.symbol} "
                         f"already at target")
            return order

        commission = self.commission.calculate(delta, price)
        cash_after = self.portfolio.cash - delta * price - commission
        if not self.allow_margin and cash_after < -CASH_TOLERANCE:
            order.status = OrderStatus.REJECTED
            required = delta * price + commission
            logger.warning(f"Tick {tick_index}: insufficient cash for {delta:+d} "
                           f"{asset.symbol} @ {price:.2f}: need {required:,.2f}, "
                           f"have {self.portfolio.cash:,.2f}")
            raise InsufficientCashError(
                f"Order for {delta:+d} {asset.symbol} @ {price:.2f} needs "
                f"{required:,.2f}, only {self.portfolio.cash:,.2f} available",
                required=required,
                available=self.portfolio.cash,
            )

        self.portfolio.apply_fill(asset, delta, price)
        if commission:
            self.portfolio.pay_commission(commission)

        order.status = OrderStatus.FILLED
        order.commission = commission
        self.fills.append(Fill(
            order_id=order.id,
            asset=asset,
            delta=delta,
            price=price,
            commission=commission,
            timestamp=pd.Timestamp(as_of).to_pydatetime(),
        ))

        logger.debug(f"Tick {tick_index}: filled {delta:+d} {asset.symbol} @ {price:.2f}")
        return order
