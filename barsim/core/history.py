# barsim/core/history.py
"""
Bar storage and point-in-time history queries.

Windows returned by :meth:`DataHistoryStore.history` include the bar stamped
exactly at ``as_of``; nothing later than ``as_of`` is ever visible.
"""

import logging
import numbers
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .errors import InsufficientHistoryError, UnknownAssetError, UnknownSymbolError
from ..models.market_data import Asset, Bar, BAR_FIELDS
from ..utils.time_helpers import DateLike, normalize_frequency, to_timestamp


logger = logging.getLogger(__name__)

FIELD_ALIASES = {
    'price': 'close',
}

DAILY_AGGREGATION = {
    'open': 'first',
    'high': 'max',
    'low': 'min',
    'close': 'last',
    'volume': 'sum',
}


def resolve_field(field: str) -> str:
    """Map a query field name to the stored column."""
    column = FIELD_ALIASES.get(field, field)
    if column not in BAR_FIELDS:
        allowed = ", ".join(list(BAR_FIELDS) + list(FIELD_ALIASES))
        raise ValueError(f"Unknown bar field '{field}'. Allowed: {allowed}")
    return column


def bars_to_frame(bars: Union[Sequence[Bar], pd.DataFrame]) -> pd.DataFrame:
    """
    Normalize bars into a timestamp-indexed OHLCV frame.

    Accepts a sequence of :class:`Bar` or a DataFrame with OHLC columns and
    either a datetime index or a ``date``/``timestamp`` column.

    Raises:
        ValueError: On missing columns or duplicate timestamps
    """
    if isinstance(bars, pd.DataFrame):
        frame = bars.copy()
        frame.columns = [str(c).strip().lower() for c in frame.columns]
        for column in ('timestamp', 'date', 'datetime'):
            if column in frame.columns:
                frame = frame.set_index(column)
                break
    else:
        records = [bar.model_dump() for bar in bars]
        frame = pd.DataFrame(records, columns=['timestamp'] + list(BAR_FIELDS))
        frame = frame.set_index('timestamp')

    missing = [c for c in ('open', 'high', 'low', 'close') if c not in frame.columns]
    if missing:
        raise ValueError(f"Bars are missing columns: {missing}")
    if 'volume' not in frame.columns:
        frame['volume'] = 0.0

    index = pd.to_datetime(frame.index)
    if index.tz is not None:
        index = index.tz_convert(None)
    frame.index = index
    frame.index.name = 'timestamp'

    frame = frame[list(BAR_FIELDS)].astype(float).sort_index()
    if frame.index.has_duplicates:
        dupes = frame.index[frame.index.duplicated()].unique()
        raise ValueError(f"Duplicate bar timestamps: {[ts.isoformat() for ts in dupes[:5]]}")
    return frame


class DataHistoryStore:
    """
    Per-asset OHLCV bars with windowed history and current-bar lookups.

    Bars are loaded before a run and only read during it, so several
    simulations may share one store.
    """

    def __init__(self):
        self._assets_by_symbol: Dict[str, Asset] = {}
        self._assets_by_sid: Dict[int, Asset] = {}
        self._frames: Dict[Tuple[int, str], pd.DataFrame] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def add_bars(
        self,
        symbol: str,
        bars: Union[Sequence[Bar], pd.DataFrame],
        frequency: str = "1d",
    ) -> Asset:
        """
        Register an asset (if new) and append its bars.

        Args:
            symbol: Ticker symbol
            bars: Bars as Bar models or an OHLCV DataFrame
            frequency: '1d' or '1m'

        Returns:
            The registered Asset

        Raises:
            ValueError: If the bars overlap bars already stored
        """
        frequency = normalize_frequency(frequency)
        ticker = symbol.strip().upper()
        if not ticker:
            raise ValueError("Symbol cannot be empty")

        frame = bars_to_frame(bars)

        asset = self._assets_by_symbol.get(ticker)
        if asset is None:
            asset = Asset(sid=len(self._assets_by_sid), symbol=ticker)
            self._assets_by_symbol[ticker] = asset
            self._assets_by_sid[asset.sid] = asset
            logger.debug(f"Registered {asset}")

        key = (asset.sid, frequency)
        existing = self._frames.get(key)
        if existing is not None and not len(frame):
            logger.debug(f"No new {frequency} bars for {ticker}")
            return asset
        if existing is not None and len(existing):
            if frame.index[0] <= existing.index[-1]:
                raise ValueError(
                    f"Bars for {ticker} must be appended after {existing.index[-1].isoformat()}"
                )
            frame = pd.concat([existing, frame])

        self._frames[key] = frame
        logger.info(f"Loaded {len(frame)} {frequency} bars for {ticker}")
        return asset

    # ------------------------------------------------------------------
    # Asset lookup
    # ------------------------------------------------------------------

    def symbol(self, ticker: str) -> Asset:
        """
        Look up an asset by ticker.

        Raises:
            UnknownSymbolError: If the ticker has no loaded bars
        """
        asset = self._assets_by_symbol.get(str(ticker).strip().upper())
        if asset is None:
            raise UnknownSymbolError(f"Symbol '{ticker}' not found in loaded data")
        return asset

    @property
    def assets(self) -> List[Asset]:
        """All registered assets in sid order."""
        return [self._assets_by_sid[sid] for sid in sorted(self._assets_by_sid)]

    def validate_asset(self, asset: Asset) -> Asset:
        """
        Check that an asset belongs to this store.

        Raises:
            UnknownAssetError: If the asset was never registered here
        """
        if not isinstance(asset, Asset) or self._assets_by_sid.get(asset.sid) != asset:
            raise UnknownAssetError(f"{asset} was never registered with the data store")
        return asset

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _window(self, asset: Asset, frequency: str, as_of: pd.Timestamp) -> pd.DataFrame:
        """Bars at or before ``as_of`` for one asset and frequency."""
        frame = self._frames.get((asset.sid, frequency))
        if frame is not None:
            return frame.iloc[:frame.index.searchsorted(as_of, side='right')]

        minute = self._frames.get((asset.sid, '1m'))
        if frequency == '1d' and minute is not None:
            minute = minute.iloc[:minute.index.searchsorted(as_of, side='right')]
            daily = minute.resample('D').agg(DAILY_AGGREGATION)
            return daily.dropna(subset=['close'])

        raise InsufficientHistoryError(
            f"No {frequency} bars loaded for {asset.symbol}", requested=1, available=0
        )

    def _finest_frequency(self, asset: Asset) -> str:
        if (asset.sid, '1m') in self._frames:
            return '1m'
        return '1d'

    def history(
        self,
        asset: Asset,
        field: str,
        bar_count: int,
        frequency: str,
        as_of: DateLike,
    ) -> pd.Series:
        """
        Return the last ``bar_count`` values of a field, ending at ``as_of``.

        The window includes the bar stamped at ``as_of``. Values are floats
        indexed by bar timestamp in ascending order.

        Raises:
            UnknownAssetError: If the asset is not registered
            InsufficientHistoryError: If fewer than ``bar_count`` bars exist
            ValueError: On an unknown field or non-positive bar_count
        """
        self.validate_asset(asset)
        column = resolve_field(field)
        if isinstance(bar_count, bool) or not isinstance(bar_count, numbers.Integral) or bar_count <= 0:
            raise ValueError(f"bar_count must be a positive integer, got {bar_count!r}")
        bar_count = int(bar_count)

        frequency = normalize_frequency(frequency)
        as_of = to_timestamp(as_of)
        window = self._window(asset, frequency, as_of)

        if len(window) < bar_count:
            raise InsufficientHistoryError(
                f"Requested {bar_count} {frequency} bars of {asset.symbol} as of "
                f"{as_of.isoformat()}, only {len(window)} available",
                requested=bar_count,
                available=len(window),
            )

        series = window[column].iloc[-bar_count:].astype(float).copy()
        series.name = field
        return series

    def current(self, asset: Asset, field: str, as_of: DateLike) -> float:
        """
        Return a field from the bar at or immediately before ``as_of``.

        Uses minute bars when the asset has them, daily bars otherwise.

        Raises:
            UnknownAssetError: If the asset is not registered
            InsufficientHistoryError: If no bar exists at or before ``as_of``
        """
        self.validate_asset(asset)
        column = resolve_field(field)
        as_of = to_timestamp(as_of)
        frame = self._frames[(asset.sid, self._finest_frequency(asset))]

        position = frame.index.searchsorted(as_of, side='right')
        if position == 0:
            raise InsufficientHistoryError(
                f"No bar for {asset.symbol} at or before {as_of.isoformat()}",
                requested=1,
                available=0,
            )
        return float(frame[column].iat[position - 1])

    def has_bar(self, asset: Asset, as_of: DateLike, frequency: Optional[str] = None) -> bool:
        """Check whether a bar is stamped exactly at ``as_of``."""
        self.validate_asset(asset)
        frequency = normalize_frequency(frequency) if frequency else self._finest_frequency(asset)
        frame = self._frames.get((asset.sid, frequency))
        if frame is None:
            return False
        return to_timestamp(as_of) in frame.index


class DataView:
    """
    The ``data`` argument passed to ``handle_data``: the store pinned to one tick.
    """

    def __init__(self, store: DataHistoryStore, as_of: pd.Timestamp, frequency: str = "1d"):
        self._store = store
        self._as_of = as_of
        self._frequency = normalize_frequency(frequency)

    @property
    def current_dt(self) -> pd.Timestamp:
        """Timestamp of the tick this view is scoped to."""
        return self._as_of

    def current(self, asset: Asset, field: str = "price") -> float:
        """Field value on the bar at or before the current tick."""
        return self._store.current(asset, field, self._as_of)

    def history(
        self,
        asset: Asset,
        field: str,
        bar_count: int,
        frequency: Optional[str] = None,
    ) -> pd.Series:
        """Trailing window ending at (and including) the current tick."""
        return self._store.history(
            asset, field, bar_count, frequency or self._frequency, self._as_of
        )

    def can_trade(self, asset: Asset) -> bool:
        """Whether the asset has a bar stamped at the current tick."""
        return self._store.has_bar(asset, self._as_of)

    def __repr__(self) -> str:
        return f"DataView(as_of={self._as_of.isoformat()}, frequency={self._frequency!r})"
