from datetime import date, datetime, timezone

import pytest

from services.calendar_service import (
    get_zone, is_valid_timezone, local_day, local_day_bounds_utc, today_in_timezone,
    week_ordinal, weekday_index, iso_week_key, format_date_in_timezone,
)


def test_timestamp_buckets_into_local_day():
    ts = "2024-01-01T03:30:00Z"
    assert local_day(ts, "America/Los_Angeles") == date(2023, 12, 31)
    assert local_day(ts, "UTC") == date(2024, 1, 1)


def test_late_utc_evening_is_next_day_east_of_utc():
    assert local_day("2024-01-01T23:30:00Z", "Asia/Tokyo") == date(2024, 1, 2)
    assert local_day("2024-01-01T23:30:00Z", "UTC") == date(2024, 1, 1)


def test_plain_dates_are_not_shifted():
    assert local_day("2024-01-01", "Pacific/Auckland") == date(2024, 1, 1)
    assert local_day(date(2024, 1, 1), "America/Los_Angeles") == date(2024, 1, 1)


def test_naive_datetime_is_treated_as_utc():
    assert local_day(datetime(2024, 1, 1, 3, 30), "America/Los_Angeles") == date(2023, 12, 31)


def test_unknown_timezone_raises():
    with pytest.raises(ValueError):
        get_zone("Mars/Olympus_Mons")
    assert not is_valid_timezone("Mars/Olympus_Mons")
    assert is_valid_timezone("Europe/Berlin")


def test_today_in_timezone():
    now = datetime(2024, 3, 10, 2, 0, tzinfo=timezone.utc)
    assert today_in_timezone("UTC", now) == date(2024, 3, 10)
    assert today_in_timezone("America/New_York", now) == date(2024, 3, 9)
    assert format_date_in_timezone(now, "America/New_York") == "2024-03-09"


def test_week_ordinal_is_consecutive_across_new_year():
    # 2020-12-28 is a Monday in ISO week 53 of 2020, 2021-01-04 starts week 1
    assert iso_week_key(date(2020, 12, 31)) == (2020, 53)
    assert week_ordinal(date(2021, 1, 4)) - week_ordinal(date(2020, 12, 28)) == 1
    assert week_ordinal(date(2021, 1, 3)) == week_ordinal(date(2020, 12, 28))


def test_weekday_index_starts_on_sunday():
    assert weekday_index(date(2024, 1, 7)) == 0  # Sunday
    assert weekday_index(date(2024, 1, 8)) == 1
    assert weekday_index(date(2024, 1, 13)) == 6


def test_local_day_bounds_utc():
    start, end = local_day_bounds_utc(date(2024, 1, 1), "America/Los_Angeles")
    assert start == datetime(2024, 1, 1, 8, 0)
    assert end == datetime(2024, 1, 2, 8, 0)
