# barsim/utils/time_helpers.py
"""
Time-related utility functions.
"""

from datetime import date, datetime, time
from typing import Optional, Union
import pandas as pd


DateLike = Union[str, date, datetime, pd.Timestamp]

FREQUENCY_ALIASES = {
    '1d': '1d',
    'd': '1d',
    'day': '1d',
    'daily': '1d',
    '1m': '1m',
    'm': '1m',
    '1min': '1m',
    'minute': '1m',
}

# Pandas offset aliases per normalized frequency
PANDAS_FREQ = {
    '1d': 'D',
    '1m': 'min',
}


def normalize_frequency(frequency: str) -> str:
    """
    Normalize a frequency name to '1d' or '1m'.

    Args:
        frequency: Frequency string (e.g. '1d', 'daily', '1m', 'minute')

    Returns:
        Normalized frequency

    Raises:
        ValueError: If the frequency is not supported
    """
    key = str(frequency).strip().lower()
    if key not in FREQUENCY_ALIASES:
        raise ValueError(f"Unsupported frequency: {frequency}")
    return FREQUENCY_ALIASES[key]


def parse_date_string(date_str: str) -> datetime:
    """
    Parse date string in various formats.

    Args:
        date_str: Date string

    Returns:
        Parsed datetime

    Raises:
        ValueError: If date format is not recognized
    """
    formats = [
        "%Y-%m-%d",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M",
        "%d/%m/%Y",
        "%Y%m%d"
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str.strip(), fmt)
        except ValueError:
            continue

    raise ValueError(f"Unable to parse date string: {date_str}")


def to_timestamp(value: DateLike) -> pd.Timestamp:
    """
    Coerce a date-like value into a timezone-naive pandas Timestamp.

    Args:
        value: String, date, datetime or Timestamp

    Returns:
        Pandas Timestamp
    """
    if isinstance(value, str):
        value = parse_date_string(value)
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts


def has_time_component(ts: pd.Timestamp) -> bool:
    """Check whether a timestamp is anything other than midnight."""
    return ts != ts.normalize()


def parse_session_time(value: Optional[str]) -> Optional[time]:
    """
    Parse an 'HH:MM' session boundary.

    Args:
        value: Time string or None

    Returns:
        Parsed time, or None when value is None
    """
    if value is None:
        return None
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        raise ValueError(f"Session time must be HH:MM, got: {value}")


def generate_time_range(
    start: pd.Timestamp,
    end: pd.Timestamp,
    frequency: str
) -> pd.DatetimeIndex:
    """
    Generate datetime range for given frequency.

    Args:
        start: Start timestamp
        end: End timestamp
        frequency: Frequency string

    Returns:
        Pandas DatetimeIndex
    """
    freq = PANDAS_FREQ[normalize_frequency(frequency)]
    return pd.date_range(start=start, end=end, freq=freq)


def format_duration(seconds: float) -> str:
    """
    Format duration in seconds to human readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    elif seconds < 86400:
        hours = seconds / 3600
        return f"{hours:.1f}h"
    else:
        days = seconds / 86400
        return f"{days:.1f}d"
