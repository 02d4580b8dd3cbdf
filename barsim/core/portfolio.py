# barsim/core/portfolio.py
"""
Portfolio management and position tracking.
"""

from typing import Dict, List
from dataclasses import dataclass
import logging

from .history import DataHistoryStore
from ..models.market_data import Asset
from ..utils.time_helpers import DateLike


logger = logging.getLogger(__name__)


@dataclass
class Position:
    """Signed share count and cost basis in a single asset."""
    asset: Asset
    shares: int = 0
    cost_basis: float = 0.0

    @property
    def avg_price(self) -> float:
        """Average cost per share held."""
        if self.shares == 0:
            return 0.0
        return self.cost_basis / self.shares

    def apply(self, delta_shares: int, price: float) -> None:
        """
        Adjust shares and cost basis for a fill.

        Adding in the direction of the position adds to the basis, reducing
        scales it down pro rata, crossing zero restarts it at the fill price.
        """
        new_shares = self.shares + delta_shares

        if self.shares == 0 or (self.shares > 0) == (delta_shares > 0):
            self.cost_basis += delta_shares * price
        elif new_shares == 0:
            self.cost_basis = 0.0
        elif (new_shares > 0) == (self.shares > 0):
            self.cost_basis = self.avg_price * new_shares
        else:
            self.cost_basis = new_shares * price

        self.shares = new_shares

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'symbol': self.asset.symbol,
            'shares': self.shares,
            'cost_basis': self.cost_basis,
            'avg_price': self.avg_price,
        }


class Portfolio:
    """
    Cash and positions for one simulation run.

    Prices are always read from the history store at an explicit ``as_of``;
    the portfolio itself holds no market state.
    """

    def __init__(self, store: DataHistoryStore, initial_cash: float = 100000.0):
        """
        Initialize portfolio.

        Args:
            store: History store used to mark positions
            initial_cash: Starting cash amount
        """
        self.store = store
        self.initial_cash = initial_cash
        self.cash = initial_cash
        self.positions: Dict[Asset, Position] = {}
        self.total_commission = 0.0

        logger.debug(f"Portfolio initialized with {initial_cash:,.2f}")

    def position(self, asset: Asset) -> Position:
        """
        Get position for asset.

        Returns a flat position when nothing is held; it is not stored.
        """
        return self.positions.get(asset) or Position(asset)

    def positions_value(self, as_of: DateLike) -> float:
        """Value of all held positions at current prices."""
        total = 0.0
        for asset, pos in self.positions.items():
            if pos.shares != 0:
                total += pos.shares * self.store.current(asset, "price", as_of)
        return total

    def value(self, as_of: DateLike) -> float:
        """Total portfolio value: cash plus marked positions."""
        return self.cash + self.positions_value(as_of)

    def apply_fill(self, asset: Asset, delta_shares: int, price: float) -> None:
        """
        Settle a fill: move cash by ``-delta_shares * price`` and shares by ``delta_shares``.

        Args:
            asset: Asset traded
            delta_shares: Signed share change
            price: Fill price
        """
        self.cash -= delta_shares * price

        if asset not in self.positions:
            self.positions[asset] = Position(asset)
        pos = self.positions[asset]
        pos.apply(delta_shares, price)

        if pos.shares == 0:
            del self.positions[asset]

        logger.debug(f"Fill applied: {delta_shares:+d} {asset.symbol} @ {price:.2f} "
                     f"(cash={self.cash:,.2f})")

    def pay_commission(self, amount: float) -> None:
        """Debit a commission from cash."""
        self.cash -= amount
        self.total_commission += amount

    def get_positions_summary(self) -> List[Dict]:
        """
        Get summary of all positions.

        Returns:
            List of position dictionaries
        """
        return [pos.to_dict() for pos in self.positions.values()]
