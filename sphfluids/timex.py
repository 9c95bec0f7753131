"""Scaled Julian time: calendar instants held as signed nanosecond counts."""

from __future__ import annotations

import math
import re
import time
from dataclasses import dataclass
from functools import total_ordering

NSEC_SCALAR = 1
MSEC_SCALAR = 1_000_000
SEC_SCALAR = 1_000_000_000
MIN_SCALAR = 60 * SEC_SCALAR
HR_SCALAR = 60 * MIN_SCALAR
DAY_SCALAR = 24 * HR_SCALAR

DAYS_IN_MONTH = (0, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _tmod(a: int, b: int) -> int:
    """Remainder carrying the sign of the dividend."""
    return a - b * _tdiv(a, b)


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class TimeParts:
    """Calendar fields of a scaled Julian time."""

    hour: int
    minute: int
    month: int
    day: int
    year: int
    second: int = 0
    msec: int = 0
    nsec: int = 0


def scaled_julian_time(hour, minute, month, day, year, sec=0, msec=0, nsec=0) -> int:
    """Return the scaled Julian time for the given calendar fields.

    Raises ValueError when the date or the hour and minute are out of range.
    """
    if month <= 0 or month > 12:
        raise ValueError(f"invalid month: {month}")
    limit = DAYS_IN_MONTH[month]
    if year % 4 == 0 and month == 2:
        limit += 1
    if day <= 0 or day > limit:
        raise ValueError(f"invalid day {day} for month {month} of {year}")
    if hour < 0 or hour > 23:
        raise ValueError(f"invalid hour: {hour}")
    if minute < 0 or minute > 59:
        raise ValueError(f"invalid minute: {minute}")

    mjd = 367 * year - _tdiv(7 * (year + _tdiv(month + 9, 12)), 4)
    mjd -= _tdiv(3 * (_tdiv(year + _tdiv(month - 9, 7), 100) + 1), 4)
    mjd += _tdiv(275 * month, 9) + day - 678973

    return (
        mjd * DAY_SCALAR
        + hour * HR_SCALAR
        + minute * MIN_SCALAR
        + sec * SEC_SCALAR
        + msec * MSEC_SCALAR
        + nsec * NSEC_SCALAR
    )


def split_time(sjt: int) -> TimeParts:
    """Break a scaled Julian time into its calendar fields."""
    ut = _tmod(sjt, DAY_SCALAR)
    mjd = float(_tdiv(sjt, DAY_SCALAR))

    z = math.floor(mjd + 1 + 2400000.5 - 1721118.5)
    g = z - 0.25
    a = math.floor(g / 36524.25)
    b = a - math.floor(a / 4.0)
    year = int(math.floor((b + g) / 365.25))
    c = b + z - math.floor(365.25 * year)
    month = int((5 * c + 456) / 153)
    day = int(c - _tdiv(153 * month - 457, 5))
    if month > 12:
        year += 1
        month -= 12

    hour = _tdiv(ut, HR_SCALAR)
    ut -= hour * HR_SCALAR
    minute = _tdiv(ut, MIN_SCALAR)
    ut -= minute * MIN_SCALAR
    second = _tdiv(ut, SEC_SCALAR)
    ut -= second * SEC_SCALAR
    msec = _tdiv(ut, MSEC_SCALAR)
    ut -= msec * MSEC_SCALAR
    nsec = _tdiv(ut, NSEC_SCALAR)
    return TimeParts(hour, minute, month, day, year, second, msec, nsec)


@total_ordering
class TimeX:
    """A point in time stored as a scaled Julian time in nanoseconds."""

    __slots__ = ("sjt",)

    def __init__(self, sjt=0):
        self.sjt = int(sjt)

    @classmethod
    def from_parts(cls, hour, minute, month, day, year, sec=0, msec=0, nsec=0) -> "TimeX":
        return cls(scaled_julian_time(hour, minute, month, day, year, sec, msec, nsec))

    @classmethod
    def now(cls) -> "TimeX":
        """Current local wall-clock time, to the second.

        The year is taken from its last two digits and so only spans 1931-2030.
        """
        lt = time.localtime()
        year = lt.tm_year % 100
        year += 1900 if year > 30 else 2000
        return cls.from_parts(lt.tm_hour, lt.tm_min, lt.tm_mon, lt.tm_mday, year, lt.tm_sec)

    def parts(self) -> TimeParts:
        return split_time(self.sjt)

    def set_time(self, hour, minute, month, day, year, sec=None, msec=None, nsec=None) -> None:
        """Set the date and time; seconds and below are kept when not given."""
        if sec is None:
            cur = self.parts()
            sec, msec, nsec = cur.second, cur.msec, cur.nsec
        self.sjt = scaled_julian_time(hour, minute, month, day, year, sec, msec or 0, nsec or 0)

    def set_seconds(self, sec, msec=0) -> None:
        """Replace seconds and milliseconds, keeping the date, hour and minute."""
        cur = self.parts()
        self.sjt = scaled_julian_time(cur.hour, cur.minute, cur.month, cur.day, cur.year, sec, msec, 0)

    @staticmethod
    def _strip_space(line: str) -> str:
        return line[1:] if line[:1] == " " else line

    def set_time_string(self, line: str) -> None:
        """Parse 'HH:MM MM-DD-YYYY', as written by readable_date."""
        dat = self._strip_space(line)
        self.set_time(
            _atoi(dat[0:2]),
            _atoi(dat[3:5]),
            _atoi(dat[6:8]),
            _atoi(dat[9:11]),
            _atoi(dat[12:16]),
        )

    def set_date(self, line: str) -> None:
        """Parse 'MM/DD/YYYY' and set the time to midnight of that day."""
        dat = self._strip_space(line)
        self.set_time(0, 0, _atoi(dat[0:2]), _atoi(dat[3:5]), _atoi(dat[6:10]))

    def day_of_week(self) -> int:
        """Day of week, 1 = Sunday to 7 = Saturday."""
        mjd = self.sjt / DAY_SCALAR
        jd = math.floor(mjd + 1 + 2400000.5)
        dow = (int(jd - 0.5) % 7) + 4
        if dow > 7:
            dow -= 7
        return dow

    def day_of_week_name(self) -> str:
        return DAY_NAMES[self.day_of_week() - 1]

    def week_of_year(self) -> int:
        """Week in the year, the first week of January being week 0."""
        cur = self.parts()
        mjd_start = scaled_julian_time(0, 0, 1, 1, cur.year) / DAY_SCALAR
        mjd_curr = scaled_julian_time(0, 0, cur.month, cur.day, cur.year) / DAY_SCALAR
        jd = math.floor(mjd_start + 1 + 2400000.5)
        dow = (int(jd - 0.5) % 7) + 4
        if dow > 7:
            dow -= 7
        return int((mjd_curr - mjd_start + dow - 1) / 7)

    def elapsed_days(self, base: "TimeX") -> int:
        return _tdiv(self.sjt - base.sjt, DAY_SCALAR)

    def elapsed_weeks(self, base: "TimeX") -> int:
        return _tdiv(self.elapsed_days(base), 7)

    def elapsed_months(self, base: "TimeX") -> int:
        return int(self.elapsed_days(base) / 30.416)

    def elapsed_years(self, base: "TimeX") -> int:
        b = base.parts()
        e = self.parts()
        if e.month < b.month or (e.month == b.month and e.day < b.day):
            return e.year - b.year - 1
        return e.year - b.year

    def frac_day(self, base: "TimeX") -> int:
        """Position within the day since base, in 5-minute steps."""
        return _tdiv(_tmod(self.sjt - base.sjt, DAY_SCALAR), MIN_SCALAR * 5)

    def frac_week(self, base: "TimeX") -> int:
        """Position within the week since base, in hours."""
        day = _tmod(self.elapsed_days(base), 7)
        hrs = _tdiv(_tmod(self.sjt - base.sjt, DAY_SCALAR), HR_SCALAR)
        return day * 24 + hrs

    def frac_month(self, base: "TimeX") -> int:
        """Position within the month since base, in 4-hour steps."""
        day = int(math.fmod(float(self.elapsed_days(base)), 30.416))
        hrs = _tdiv(_tmod(self.sjt - base.sjt, DAY_SCALAR), HR_SCALAR * 4)
        return day * (24 // 4) + hrs

    def frac_year(self, base: "TimeX") -> int:
        """Days since the last anniversary of base."""
        b = base.parts()
        e = self.parts()
        if (e.month, e.day) == (b.month, b.day):
            return 0
        earlier = e.month < b.month or (e.month == b.month and e.day < b.day)
        year = e.year - 1 if earlier else e.year
        last = scaled_julian_time(e.hour, e.minute, b.month, b.day, year)
        return _tdiv(self.sjt - last, DAY_SCALAR)

    def readable_date(self) -> str:
        p = self.parts()
        return f"{p.hour:02d}:{p.minute:02d} {p.month:02d}-{p.day:02d}-{p.year:04d}"

    def readable_time(self) -> str:
        p = self.parts()
        return f"{p.minute:02d}:{p.second:02d},{p.msec:03d}.{p.nsec:06d}"

    def readable_seconds(self) -> str:
        p = self.parts()
        return f"{p.second:02d} {p.msec:03d}.{p.nsec:06d}"

    def seconds(self) -> float:
        return self.sjt / SEC_SCALAR

    def milliseconds(self) -> float:
        return self.sjt / MSEC_SCALAR

    def advance(self, other: "TimeX") -> None:
        self.sjt += other.sjt

    def advance_days(self, n: int) -> None:
        self.sjt += DAY_SCALAR * n

    def advance_hours(self, n: int) -> None:
        self.sjt += HR_SCALAR * n

    def advance_minutes(self, n: int) -> None:
        self.sjt += MIN_SCALAR * n

    def advance_seconds(self, n: int) -> None:
        self.sjt += SEC_SCALAR * n

    def advance_msec(self, n: int) -> None:
        self.sjt += MSEC_SCALAR * n

    def __add__(self, other: "TimeX") -> "TimeX":
        if not isinstance(other, TimeX):
            return NotImplemented
        return TimeX(self.sjt + other.sjt)

    def __sub__(self, other: "TimeX") -> "TimeX":
        if not isinstance(other, TimeX):
            return NotImplemented
        return TimeX(self.sjt - other.sjt)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeX):
            return NotImplemented
        return self.sjt == other.sjt

    def __lt__(self, other: "TimeX") -> bool:
        if not isinstance(other, TimeX):
            return NotImplemented
        return self.sjt < other.sjt

    __hash__ = None

    def __repr__(self) -> str:
        return f"TimeX({self.sjt})"