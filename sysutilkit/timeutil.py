"""Wall-clock, calendar and monotonic time helpers."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace

_SECONDS_PER_WEEK = 604800
_EPOCH_TO_MONDAY = 345600

_WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class CalendarTime:
    """Broken-down time: years since 1900, months 0-11, weekdays with Sunday 0."""

    year: int
    month: int
    mday: int
    hour: int
    minute: int
    second: int
    wday: int
    yday: int
    isdst: int = 0

    def normalized(self) -> CalendarTime:
        """Return the full year, months 1-12 and Sunday as weekday 7."""
        return replace(
            self,
            year=self.year + 1900,
            month=self.month + 1,
            wday=7 if self.wday == 0 else self.wday,
        )

    def unnormalized(self) -> CalendarTime:
        """Undo normalized()."""
        return replace(
            self,
            year=self.year - 1900,
            month=self.month - 1,
            wday=0 if self.wday == 7 else self.wday,
        )


def _from_struct(st: time.struct_time) -> CalendarTime:
    return CalendarTime(
        year=st.tm_year - 1900,
        month=st.tm_mon - 1,
        mday=st.tm_mday,
        hour=st.tm_hour,
        minute=st.tm_min,
        second=st.tm_sec,
        wday=(st.tm_wday + 1) % 7,
        yday=st.tm_yday - 1,
        isdst=st.tm_isdst,
    )


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def timezone_offset_second() -> int:
    """Seconds to add to local time to get UTC (negative east of Greenwich)."""
    return -time.localtime().tm_gmtoff


def gmtime_second() -> int:
    return int(time.time())


def local_week_begin_gmt_second(gmt_sec: int, tz_off: int) -> int:
    """UTC second at which the local week (starting Monday) containing ``gmt_sec`` began."""
    shifted = gmt_sec - tz_off - _EPOCH_TO_MONDAY
    return (
        _trunc_div(shifted, _SECONDS_PER_WEEK) * _SECONDS_PER_WEEK
        + _EPOCH_TO_MONDAY
        + tz_off
    )


def localtime_second() -> int:
    return gmtime_second() - timezone_offset_second()


def gmtime_millisecond() -> int:
    return time.time_ns() // 1_000_000


def gmtime_tm(value: int) -> CalendarTime:
    """Break ``value`` seconds since the epoch into UTC calendar time."""
    return _from_struct(time.gmtime(value))


def localtime_tm(value: int) -> CalendarTime:
    """Break ``value`` seconds since the epoch into local calendar time."""
    return _from_struct(time.localtime(value))


def tm_text(tm: CalendarTime) -> str:
    """Render ``tm`` in the classic asctime layout, without the newline."""
    if not 0 <= tm.wday < 7 or not 0 <= tm.month < 12:
        raise ValueError("weekday or month out of range")
    return (
        f"{_WEEKDAYS[tm.wday]} {_MONTHS[tm.month]}{tm.mday:3d} "
        f"{tm.hour:02d}:{tm.minute:02d}:{tm.second:02d} {tm.year + 1900}"
    )


def compare_tm(t1: CalendarTime, t2: CalendarTime) -> int:
    """Compare day of year, then time of day; return -1, 0 or 1."""
    a = (t1.yday, t1.hour, t1.minute, t1.second)
    b = (t2.yday, t2.hour, t2.minute, t2.second)
    return (a > b) - (a < b)


def clock_nanosecond() -> int:
    """A monotonic clock reading in nanoseconds."""
    return time.monotonic_ns()