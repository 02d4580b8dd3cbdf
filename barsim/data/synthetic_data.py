# barsim/data/synthetic_data.py
"""
Synthetic bar generator for demos, tests and runs without a data directory.
"""

import logging
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from ..core.clock import ticks
from ..core.history import DataHistoryStore
from ..models.market_data import Bar
from ..utils.time_helpers import DateLike, normalize_frequency


logger = logging.getLogger(__name__)

# Fraction of a trading day covered by one bar
BAR_DAY_FRACTION = {
    '1d': 1.0,
    '1m': 1.0 / 390,
}


class SyntheticDataProvider:
    """
    Generates synthetic OHLCV bars on the same timestamps a clock would tick.

    Prices follow geometric Brownian motion with a little autocorrelation.
    A fixed seed gives identical bars on every call sequence.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize synthetic data provider.

        Args:
            seed: Random seed for reproducible data generation
        """
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def generate_ohlcv(
        self,
        start: DateLike,
        end: DateLike,
        frequency: str = "1d",
        calendar: str = "all",
        initial_price: float = 100.0,
        volatility: float = 0.02,
        trend: float = 0.0001,
        volume_base: float = 100000,
    ) -> List[Bar]:
        """
        Generate synthetic OHLCV bars.

        Args:
            start: First bar date
            end: Last bar date
            frequency: '1d' or '1m'
            calendar: 'all' or 'weekdays'
            initial_price: Starting price
            volatility: Price volatility (daily)
            trend: Daily drift
            volume_base: Base volume for generation

        Returns:
            List of Bar objects, one per clock tick
        """
        frequency = normalize_frequency(frequency)
        time_index = ticks(start, end, frequency, calendar).index

        if len(time_index) == 0:
            return []

        # Scale daily parameters down to the bar size
        fraction = BAR_DAY_FRACTION[frequency]
        adjusted_volatility = volatility * np.sqrt(fraction)
        adjusted_trend = trend * fraction

        n_periods = len(time_index)
        returns = self._rng.normal(adjusted_trend, adjusted_volatility, n_periods)
        returns = self._add_autocorrelation(returns, 0.1)
        closes = initial_price * np.exp(np.cumsum(returns))

        opens = np.empty(n_periods)
        opens[0] = initial_price
        opens[1:] = closes[:-1]

        # Intrabar range around the open/close body
        body_high = np.maximum(opens, closes)
        body_low = np.minimum(opens, closes)
        intrabar_range = (np.abs(closes - opens) * 0.5
                          + opens * adjusted_volatility * self._rng.random(n_periods))
        highs = body_high + intrabar_range * self._rng.random(n_periods)
        lows = np.maximum(body_low - intrabar_range * self._rng.random(n_periods), 0.01)

        volumes = volume_base * (0.5 + self._rng.random(n_periods)) * (1 + np.abs(returns) * 10)

        bars = [
            Bar(
                timestamp=timestamp.to_pydatetime(),
                open=float(round(opens[i], 2)),
                high=float(round(highs[i], 2)),
                low=float(round(lows[i], 2)),
                close=float(round(closes[i], 2)),
                volume=float(round(volumes[i])),
            )
            for i, timestamp in enumerate(time_index)
        ]

        logger.debug(f"Generated {len(bars)} synthetic {frequency} bars")
        return bars

    def generate_frame(self, start: DateLike, end: DateLike, **kwargs) -> pd.DataFrame:
        """Same as :meth:`generate_ohlcv` but as a DataFrame indexed by timestamp."""
        bars = self.generate_ohlcv(start, end, **kwargs)
        frame = pd.DataFrame([bar.model_dump() for bar in bars])
        if frame.empty:
            return frame
        return frame.set_index('timestamp')

    def populate_store(
        self,
        symbols: Iterable[str],
        start: DateLike,
        end: DateLike,
        frequency: str = "1d",
        calendar: str = "all",
        store: Optional[DataHistoryStore] = None,
        **kwargs,
    ) -> DataHistoryStore:
        """
        Generate bars for each symbol and register them with a history store.

        Args:
            symbols: Tickers to generate
            start: First bar date
            end: Last bar date
            frequency: '1d' or '1m'
            calendar: 'all' or 'weekdays'
            store: Store to add to (a new one when omitted)
            **kwargs: Passed through to :meth:`generate_ohlcv`

        Returns:
            The populated store
        """
        store = store if store is not None else DataHistoryStore()
        for symbol in symbols:
            bars = self.generate_ohlcv(start, end, frequency, calendar, **kwargs)
            store.add_bars(symbol, bars, frequency)
            logger.info(f"Generated {len(bars)} synthetic bars for {symbol}")
        return store

    def _add_autocorrelation(self, series: np.ndarray, correlation: float) -> np.ndarray:
        """Add autocorrelation to a time series."""
        if correlation == 0:
            return series

        result = np.copy(series)
        for i in range(1, len(result)):
            result[i] += correlation * result[i-1]

        return result
