import pytest

from sphfluids.timex import (
    DAY_NAMES,
    MSEC_SCALAR,
    SEC_SCALAR,
    TimeParts,
    TimeX,
    scaled_julian_time,
    split_time,
)


@pytest.mark.parametrize(
    "fields",
    [
        (0, 0, 1, 1, 2000, 0, 0, 0),
        (7, 14, 3, 5, 2021, 3, 32, 7),
        (23, 59, 12, 31, 1999, 59, 999, 999999),
        (12, 30, 2, 29, 2000, 1, 2, 3),
        (6, 1, 7, 4, 1950, 0, 0, 0),
    ],
)
def test_round_trip(fields):
    sjt = scaled_julian_time(*fields)
    assert split_time(sjt) == TimeParts(*fields)


def test_round_trip_over_many_years():
    for year in range(2000, 2080, 7):
        for month in range(1, 13):
            for day in (1, 15, 28):
                t = TimeX.from_parts(23, 59, month, day, year)
                p = t.parts()
                assert (p.hour, p.minute, p.month, p.day, p.year) == (23, 59, month, day, year)


@pytest.mark.parametrize(
    "fields",
    [
        (0, 0, 0, 1, 2000),
        (0, 0, 13, 1, 2000),
        (0, 0, 1, 0, 2000),
        (0, 0, 2, 30, 2000),
        (0, 0, 2, 29, 2001),
        (0, 0, 4, 31, 2001),
        (24, 0, 1, 1, 2000),
        (0, 60, 1, 1, 2000),
        (-1, 0, 1, 1, 2000),
    ],
)
def test_invalid_raises(fields):
    with pytest.raises(ValueError):
        scaled_julian_time(*fields)


def test_known_weekday():
    assert TimeX.from_parts(0, 0, 1, 1, 2000).day_of_week_name() == "Saturday"


def test_day_of_week_cycles():
    t = TimeX.from_parts(10, 0, 3, 1, 2010)
    prev = t.day_of_week()
    for _ in range(14):
        t.advance_days(1)
        cur = t.day_of_week()
        assert 1 <= cur <= 7
        assert (cur - prev) % 7 == 1
        assert t.day_of_week_name() == DAY_NAMES[cur - 1]
        prev = cur


@pytest.mark.parametrize("year", [1999, 2000, 2013, 2024])
def test_week_of_year_starts_at_zero_and_grows(year):
    t = TimeX.from_parts(0, 0, 1, 1, year)
    assert t.week_of_year() == 0
    prev = 0
    for _ in range(364):
        t.advance_days(1)
        w = t.week_of_year()
        assert w in (prev, prev + 1)
        prev = w


def test_readable_date_round_trip():
    t = TimeX.from_parts(7, 14, 3, 5, 2021)
    text = t.readable_date()
    assert text == "07:14 03-05-2021"
    other = TimeX()
    other.set_time_string(" " + text)
    assert other == t


def test_set_time_string_invalid():
    t = TimeX.from_parts(1, 2, 3, 4, 2005)
    with pytest.raises(ValueError):
        t.set_time_string("garbage")
    assert t.parts().year == 2005


def test_readable_time_fields():
    t = TimeX.from_parts(7, 14, 3, 5, 2021, 3, 32, 7)
    assert t.readable_time() == "14:03,032.000007"
    assert t.readable_seconds() == "03 032.000007"


def test_set_date_keeps_seconds():
    t = TimeX.from_parts(9, 30, 6, 1, 2015, 45, 12, 0)
    t.set_date("03/05/2021")
    assert t.parts() == TimeParts(0, 0, 3, 5, 2021, 45, 12, 0)


def test_set_time_without_seconds_keeps_them():
    t = TimeX.from_parts(9, 30, 6, 1, 2015, 45, 12, 8)
    t.set_time(1, 2, 7, 8, 2016)
    assert t.parts() == TimeParts(1, 2, 7, 8, 2016, 45, 12, 8)


def test_set_time_invalid_leaves_value():
    t = TimeX.from_parts(9, 30, 6, 1, 2015)
    before = t.sjt
    with pytest.raises(ValueError):
        t.set_time(1, 2, 2, 30, 2016, 0, 0, 0)
    assert t.sjt == before


def test_set_seconds_keeps_date():
    t = TimeX.from_parts(9, 30, 6, 1, 2015, 45, 12, 8)
    t.set_seconds(10, 20)
    assert t.parts() == TimeParts(9, 30, 6, 1, 2015, 10, 20, 0)


def test_elapsed_days_and_weeks():
    base = TimeX.from_parts(8, 0, 5, 10, 2012)
    t = TimeX(base.sjt)
    t.advance_days(10)
    assert t.elapsed_days(base) == 10
    assert t.elapsed_weeks(base) == 1
    assert t.elapsed_months(base) == 0


def test_elapsed_years():
    base = TimeX.from_parts(0, 0, 3, 15, 2000)
    assert TimeX.from_parts(0, 0, 3, 14, 2005).elapsed_years(base) == 4
    assert TimeX.from_parts(0, 0, 3, 15, 2005).elapsed_years(base) == 5
    assert TimeX.from_parts(0, 0, 2, 20, 2005).elapsed_years(base) == 4
    assert TimeX.from_parts(0, 0, 4, 1, 2005).elapsed_years(base) == 5


def test_frac_year_same_day_is_zero():
    base = TimeX.from_parts(0, 0, 3, 15, 2000)
    assert TimeX.from_parts(5, 0, 3, 15, 2007).frac_year(base) == 0


def test_frac_year_after_anniversary():
    base = TimeX.from_parts(0, 0, 3, 15, 2000)
    t = TimeX.from_parts(0, 0, 3, 15, 2007)
    t.advance_days(20)
    assert t.frac_year(base) == 20


def test_frac_day_and_week():
    base = TimeX.from_parts(0, 0, 1, 1, 2010)
    t = TimeX(base.sjt)
    t.advance_minutes(5 * 7)
    assert t.frac_day(base) == 7
    t = TimeX(base.sjt)
    t.advance_days(3)
    t.advance_hours(5)
    assert t.frac_week(base) == 3 * 24 + 5


def test_arithmetic_and_ordering():
    a = TimeX.from_parts(1, 0, 1, 1, 2001)
    b = TimeX.from_parts(2, 0, 1, 1, 2001)
    assert (a + b) - b == a
    assert a < b and b > a and a <= a and b >= a
    c = TimeX(a.sjt)
    c.advance(TimeX(b.sjt - a.sjt))
    assert c == b


def test_seconds_and_milliseconds():
    t = TimeX(3 * SEC_SCALAR)
    assert t.seconds() == 3.0
    t.advance_msec(250)
    assert t.milliseconds() == (3 * SEC_SCALAR + 250 * MSEC_SCALAR) / MSEC_SCALAR
    t.advance_seconds(2)
    assert t.sjt == 5 * SEC_SCALAR + 250 * MSEC_SCALAR


def test_now_within_supported_span():
    p = TimeX.now().parts()
    assert 1931 <= p.year <= 2030
    assert 1 <= p.month <= 12