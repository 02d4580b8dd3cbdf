import pandas as pd
import pytest

from barsim.core.clock import Clock, ticks
from barsim.core.errors import InvalidRangeError


def test_daily_ticks_include_both_ends():
    clock = ticks("2013-01-01", "2013-01-05")

    assert len(clock) == 5
    assert list(clock)[0] == pd.Timestamp("2013-01-01")
    assert list(clock)[-1] == pd.Timestamp("2013-01-05")


def test_single_day_range_yields_one_tick():
    assert len(ticks("2013-01-01", "2013-01-01")) == 1


def test_clock_is_restartable():
    clock = ticks("2013-01-01", "2013-01-10")

    assert list(clock) == list(clock)


def test_ticks_strictly_increasing():
    stamps = list(ticks("2013-01-01", "2013-03-01"))

    assert all(a < b for a, b in zip(stamps, stamps[1:]))


def test_weekdays_calendar_skips_weekends():
    # 2013-01-05 and 2013-01-06 are Saturday and Sunday
    stamps = list(ticks("2013-01-01", "2013-01-07", calendar="weekdays"))

    assert len(stamps) == 5
    assert all(ts.dayofweek < 5 for ts in stamps)


def test_minute_ticks_cover_whole_end_day():
    clock = ticks("2013-01-01", "2013-01-01", frequency="1m")

    assert len(clock) == 24 * 60
    assert list(clock)[-1] == pd.Timestamp("2013-01-01 23:59")


def test_minute_ticks_with_session_bounds():
    clock = ticks("2013-01-02", "2013-01-03", frequency="minute",
                  session_open="09:30", session_close="16:00")

    stamps = list(clock)
    assert len(stamps) == 2 * 391
    assert stamps[0] == pd.Timestamp("2013-01-02 09:30")
    assert stamps[-1] == pd.Timestamp("2013-01-03 16:00")


def test_frequency_aliases_normalized():
    assert Clock("2013-01-01", "2013-01-02", frequency="daily").frequency == "1d"


def test_start_after_end_rejected():
    with pytest.raises(InvalidRangeError, match="after end"):
        ticks("2013-01-05", "2013-01-01")


def test_unsupported_frequency_rejected():
    with pytest.raises(InvalidRangeError, match="Unsupported frequency"):
        ticks("2013-01-01", "2013-01-05", frequency="1h")


def test_unsupported_calendar_rejected():
    with pytest.raises(InvalidRangeError, match="Unsupported calendar"):
        ticks("2013-01-01", "2013-01-05", calendar="nyse")


def test_unparseable_date_rejected():
    with pytest.raises(InvalidRangeError, match="Unable to parse"):
        ticks("not a date", "2013-01-05")


def test_session_open_after_close_rejected():
    with pytest.raises(InvalidRangeError, match="Session open"):
        ticks("2013-01-01", "2013-01-02", frequency="1m",
              session_open="16:00", session_close="09:30")
