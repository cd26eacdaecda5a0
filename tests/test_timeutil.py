import time

import pytest

from sysutilkit.timeutil import (
    CalendarTime,
    clock_nanosecond,
    compare_tm,
    gmtime_millisecond,
    gmtime_second,
    gmtime_tm,
    local_week_begin_gmt_second,
    localtime_second,
    localtime_tm,
    timezone_offset_second,
    tm_text,
)


def test_epoch_text():
    assert tm_text(gmtime_tm(0)) == "Thu Jan  1 00:00:00 1970"


def test_gmtime_matches_stdlib():
    value = 1_700_000_000
    tm = gmtime_tm(value).normalized()
    st = time.gmtime(value)
    assert (tm.year, tm.month, tm.mday) == (st.tm_year, st.tm_mon, st.tm_mday)
    assert (tm.hour, tm.minute, tm.second) == (st.tm_hour, st.tm_min, st.tm_sec)
    assert tm.yday + 1 == st.tm_yday


def test_normalize_round_trip():
    tm = gmtime_tm(1_234_567_890)
    assert tm.normalized().unnormalized() == tm


def test_normalized_sunday_is_seven():
    tm = CalendarTime(year=100, month=0, mday=2, hour=0, minute=0, second=0, wday=0, yday=1)
    assert tm.normalized().wday == 7
    assert tm.normalized().unnormalized().wday == 0


def test_localtime_tm_matches_stdlib():
    value = 1_600_000_000
    tm = localtime_tm(value)
    st = time.localtime(value)
    assert tm.year + 1900 == st.tm_year
    assert tm.hour == st.tm_hour


def test_compare_tm():
    earlier = gmtime_tm(1_000_000)
    later = gmtime_tm(1_000_060)
    assert compare_tm(earlier, later) == -1
    assert compare_tm(later, earlier) == 1
    assert compare_tm(earlier, earlier) == 0


def test_week_begin_is_monday_start():
    gmt = 1_700_000_000
    begin = local_week_begin_gmt_second(gmt, 0)
    assert begin <= gmt
    assert gmt - begin < 604800
    tm = gmtime_tm(begin)
    assert tm.wday == 1
    assert (tm.hour, tm.minute, tm.second) == (0, 0, 0)


def test_week_begin_shifts_with_timezone():
    gmt = 1_700_000_000
    tz_off = -3600
    begin = local_week_begin_gmt_second(gmt, tz_off)
    assert (begin - tz_off - 345600) % 604800 == 0
    assert 0 <= gmt - begin < 604800


def test_localtime_second_consistent():
    diff = gmtime_second() - timezone_offset_second() - localtime_second()
    assert abs(diff) <= 1


def test_millisecond_matches_second():
    assert abs(gmtime_millisecond() // 1000 - gmtime_second()) <= 1


def test_clock_monotonic():
    first = clock_nanosecond()
    second = clock_nanosecond()
    assert second >= first


def test_tm_text_rejects_bad_month():
    tm = CalendarTime(year=70, month=12, mday=1, hour=0, minute=0, second=0, wday=0, yday=0)
    with pytest.raises(ValueError):
        tm_text(tm)