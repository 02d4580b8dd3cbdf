# barsim/models/config.py
"""
Configuration models for the backtesting engine.
"""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field, field_validator
from datetime import datetime


VALID_FREQUENCIES = ['1d', '1m']
VALID_CALENDARS = ['all', 'weekdays']


class DataConfig(BaseModel):
    """Data source configuration."""
    symbols: List[str] = Field(default_factory=lambda: ["AAPL"], description="Symbols to load")
    bars_dir: Optional[str] = Field(default=None, description="Directory with one <SYMBOL>.csv per asset")
    frequency: str = Field(default="1d", description="Bar and clock frequency")
    start: str = Field(..., description="Start date (YYYY-MM-DD)")
    end: str = Field(..., description="End date (YYYY-MM-DD)")
    calendar: str = Field(default="all", description="Clock calendar: 'all' or 'weekdays'")
    session_open: Optional[str] = Field(default=None, description="Intraday session open (HH:MM), minute runs only")
    session_close: Optional[str] = Field(default=None, description="Intraday session close (HH:MM), minute runs only")
    use_synthetic: bool = Field(default=False, description="Generate synthetic bars instead of reading bars_dir")

    @field_validator('frequency')
    @classmethod
    def validate_frequency(cls, v):
        if v not in VALID_FREQUENCIES:
            raise ValueError(f"Frequency must be one of {VALID_FREQUENCIES}")
        return v

    @field_validator('calendar')
    @classmethod
    def validate_calendar(cls, v):
        if v not in VALID_CALENDARS:
            raise ValueError(f"Calendar must be one of {VALID_CALENDARS}")
        return v

    @field_validator('symbols')
    @classmethod
    def validate_symbols(cls, v):
        if not v:
            raise ValueError("At least one symbol is required")
        return [s.strip().upper() for s in v]


class BacktestConfig(BaseModel):
    """Backtest execution configuration."""
    initial_cash: float = Field(default=100000.0, description="Initial cash amount")
    allow_margin: bool = Field(default=False, description="Allow cash to go negative")
    commission_per_share: float = Field(default=0.0, description="Commission per share traded")
    commission_per_trade: float = Field(default=0.0, description="Fixed commission per fill")
    seed: int = Field(default=42, description="Random seed for synthetic data")
    show_progress: bool = Field(default=False, description="Show a progress bar over ticks")

    @field_validator('initial_cash')
    @classmethod
    def validate_initial_cash(cls, v):
        if v < 0:
            raise ValueError("Initial cash cannot be negative")
        return v

    @field_validator('commission_per_share', 'commission_per_trade')
    @classmethod
    def validate_commission(cls, v):
        if v < 0:
            raise ValueError("Commission cannot be negative")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format")
    file: Optional[str] = Field(default=None, description="Log file path")


class AppConfig(BaseModel):
    """Main application configuration."""
    data: DataConfig
    backtest: BacktestConfig = Field(default_factory=BacktestConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def run_id(self) -> str:
        """Generate a unique run ID."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{'-'.join(self.data.symbols)}_{self.data.frequency}_{timestamp}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode='python')

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'AppConfig':
        """Create from dictionary."""
        return cls(**config_dict)
