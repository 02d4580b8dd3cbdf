# barsim/models/market_data.py
"""
Market data models.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


BAR_FIELDS = ("open", "high", "low", "close", "volume")


class Asset(BaseModel):
    """Tradable instrument registered with a history store."""
    model_config = ConfigDict(frozen=True)

    sid: int = Field(..., description="Stable internal ID")
    symbol: str = Field(..., description="Ticker symbol")

    def __str__(self) -> str:
        return f"Asset({self.sid} [{self.symbol}])"


class Bar(BaseModel):
    """OHLCV bar for one asset at one timestamp."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="Bar timestamp")
    open: float = Field(..., description="Opening price")
    high: float = Field(..., description="High price")
    low: float = Field(..., description="Low price")
    close: float = Field(..., description="Closing price")
    volume: float = Field(default=0.0, description="Trading volume")
