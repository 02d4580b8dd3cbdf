# barsim/data/csv_loader.py
"""
Load OHLCV bars from CSV files on disk.

One file per asset, named ``<SYMBOL>.csv``, with a ``date`` (or
``timestamp``) column followed by open, high, low, close and an optional
volume column. Header names are case-insensitive.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from ..core.history import DataHistoryStore, bars_to_frame


logger = logging.getLogger(__name__)


def load_bars_csv(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read one bar file into a timestamp-indexed OHLCV frame.

    Args:
        path: CSV file path

    Returns:
        Sorted OHLCV DataFrame

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If required columns are missing or timestamps repeat
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Bar file not found: {path}")

    frame = pd.read_csv(path)
    try:
        bars = bars_to_frame(frame)
    except ValueError as e:
        raise ValueError(f"{path.name}: {e}") from e

    logger.debug(f"Read {len(bars)} bars from {path}")
    return bars


def load_bars_dir(
    directory: Union[str, Path],
    symbols: Optional[Iterable[str]] = None,
    frequency: str = "1d",
    store: Optional[DataHistoryStore] = None,
) -> DataHistoryStore:
    """
    Load ``<SYMBOL>.csv`` files from a directory into a history store.

    Args:
        directory: Directory holding the bar files
        symbols: Tickers to load (every CSV in the directory when omitted)
        frequency: Bar frequency of the files
        store: Store to add to (a new one when omitted)

    Returns:
        The populated store

    Raises:
        FileNotFoundError: If the directory or a requested symbol's file is missing
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Bars directory not found: {directory}")

    if symbols is None:
        paths = sorted(directory.glob("*.csv"))
    else:
        paths = [directory / f"{symbol.strip().upper()}.csv" for symbol in symbols]

    store = store if store is not None else DataHistoryStore()
    for path in paths:
        store.add_bars(path.stem, load_bars_csv(path), frequency)

    logger.info(f"Loaded {len(paths)} bar files from {directory}")
    return store
