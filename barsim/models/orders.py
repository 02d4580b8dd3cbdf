# barsim/models/orders.py
"""
Order and fill models.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime

from .market_data import Asset


class TargetKind(str, Enum):
    """How an order's target is expressed."""
    DELTA = "DELTA"
    SHARES = "SHARES"
    VALUE = "VALUE"
    PERCENT = "PERCENT"


class OrderStatus(str, Enum):
    """Order status."""
    PENDING = "PENDING"
    FILLED = "FILLED"
    NOOP = "NOOP"
    REJECTED = "REJECTED"


class Order(BaseModel):
    """Order intent, created and resolved within a single tick."""
    id: str = Field(..., description="Unique order ID")
    asset: Asset = Field(..., description="Asset being traded")
    kind: TargetKind = Field(..., description="Target kind")
    target: float = Field(..., description="Requested target in units of kind")
    created_at: datetime = Field(..., description="Tick timestamp the order was placed on")
    tick_index: int = Field(..., description="Tick index the order was placed on")
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Order status")

    # Resolution details
    delta: int = Field(default=0, description="Resolved share delta")
    price: Optional[float] = Field(None, description="Resolution price")
    commission: float = Field(default=0.0, description="Commission charged")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'symbol': self.asset.symbol,
            'kind': self.kind.value,
            'target': self.target,
            'created_at': self.created_at.isoformat(),
            'tick_index': self.tick_index,
            'status': self.status.value,
            'delta': self.delta,
            'price': self.price,
            'commission': self.commission,
        }


class Fill(BaseModel):
    """Settled change to a position."""
    order_id: str = Field(..., description="Order that produced the fill")
    asset: Asset = Field(..., description="Asset traded")
    delta: int = Field(..., description="Signed share change")
    price: float = Field(..., description="Fill price")
    commission: float = Field(default=0.0, description="Commission charged")
    timestamp: datetime = Field(..., description="Fill timestamp")

    @property
    def value(self) -> float:
        """Signed traded value (positive for buys)."""
        return self.delta * self.price

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'order_id': self.order_id,
            'symbol': self.asset.symbol,
            'delta': self.delta,
            'price': self.price,
            'commission': self.commission,
            'value': self.value,
            'timestamp': self.timestamp.isoformat(),
        }
