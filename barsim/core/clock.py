# barsim/core/clock.py
"""
Trading clock: the ordered timestamps a simulation steps through.
"""

import logging
from datetime import time
from typing import Iterator, Optional

import pandas as pd

from .errors import InvalidRangeError
from ..utils.time_helpers import (
    DateLike,
    generate_time_range,
    has_time_component,
    normalize_frequency,
    parse_session_time,
    to_timestamp,
)


logger = logging.getLogger(__name__)

CALENDARS = ("all", "weekdays")


class Clock:
    """
    Lazy, finite, restartable sequence of strictly increasing tick timestamps.

    Every call to ``iter()`` starts again from the first tick, so the same
    clock can drive several runs. Daily ticks are midnight timestamps with
    both ends inclusive. Minute ticks run from ``start`` to ``end``; an
    ``end`` without a time component means the last minute of that day.
    """

    def __init__(
        self,
        start: DateLike,
        end: DateLike,
        frequency: str = "1d",
        calendar: str = "all",
        session_open: Optional[str] = None,
        session_close: Optional[str] = None,
    ):
        try:
            self.frequency = normalize_frequency(frequency)
        except ValueError as e:
            raise InvalidRangeError(str(e)) from e

        if calendar not in CALENDARS:
            raise InvalidRangeError(f"Unsupported calendar: {calendar}")

        try:
            self.start = to_timestamp(start)
            self.end = to_timestamp(end)
            self.session_open: Optional[time] = parse_session_time(session_open)
            self.session_close: Optional[time] = parse_session_time(session_close)
        except ValueError as e:
            raise InvalidRangeError(str(e)) from e

        if self.start > self.end:
            raise InvalidRangeError(
                f"Start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

        if (self.session_open and self.session_close
                and self.session_open > self.session_close):
            raise InvalidRangeError(
                f"Session open {self.session_open} is after close {self.session_close}"
            )

        self.calendar = calendar
        self._index: Optional[pd.DatetimeIndex] = None

    def _build_index(self) -> pd.DatetimeIndex:
        if self.frequency == '1d':
            index = generate_time_range(self.start.normalize(), self.end.normalize(), self.frequency)
        else:
            end = self.end
            if not has_time_component(end):
                end = end + pd.Timedelta(days=1) - pd.Timedelta(minutes=1)
            index = generate_time_range(self.start.floor('min'), end, self.frequency)
            if self.session_open is not None:
                index = index[index.time >= self.session_open]
            if self.session_close is not None:
                index = index[index.time <= self.session_close]

        if self.calendar == "weekdays":
            index = index[index.dayofweek < 5]

        return index

    @property
    def index(self) -> pd.DatetimeIndex:
        """All tick timestamps as a DatetimeIndex (built on first use)."""
        if self._index is None:
            self._index = self._build_index()
            logger.debug(f"Clock built: {len(self._index)} {self.frequency} ticks "
                         f"from {self.start} to {self.end}")
        return self._index

    def __iter__(self) -> Iterator[pd.Timestamp]:
        for ts in self.index:
            yield ts

    def __len__(self) -> int:
        return len(self.index)

    def __repr__(self) -> str:
        return (f"Clock(start={self.start.isoformat()}, end={self.end.isoformat()}, "
                f"frequency={self.frequency!r}, calendar={self.calendar!r})")


def ticks(
    start_date: DateLike,
    end_date: DateLike,
    frequency: str = "1d",
    calendar: str = "all",
    session_open: Optional[str] = None,
    session_close: Optional[str] = None,
) -> Clock:
    """
    Enumerate trading timestamps between two dates.

    Args:
        start_date: First date (inclusive)
        end_date: Last date (inclusive)
        frequency: '1d' or '1m' (aliases 'daily', 'minute' accepted)
        calendar: 'all' for every calendar day, 'weekdays' for Monday to Friday
        session_open: Optional 'HH:MM' lower bound for minute ticks
        session_close: Optional 'HH:MM' upper bound for minute ticks

    Returns:
        A restartable Clock

    Raises:
        InvalidRangeError: If start is after end or the frequency is unsupported
    """
    return Clock(start_date, end_date, frequency, calendar, session_open, session_close)
