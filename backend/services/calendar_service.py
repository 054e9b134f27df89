"""
calendar_service.py: Timezone-aware calendar bucketing
Turns stored dates and timestamps into calendar days in a user's IANA
timezone, and maps days onto ISO weeks and weekday indices.
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import DEFAULT_TIMEZONE


def get_zone(tz_name: str | None) -> ZoneInfo:
    """Resolve an IANA name. Raises ValueError for unknown zones."""
    name = tz_name or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def is_valid_timezone(tz_name: str) -> bool:
    if not tz_name or not isinstance(tz_name, str):
        return False
    try:
        get_zone(tz_name)
        return True
    except ValueError:
        return False


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 string to datetime; a trailing Z is read as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_utc(value: datetime) -> datetime:
    """Aware datetime in UTC; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_day(value, tz_name: str | None = None) -> date:
    """
    Calendar day of `value` in the given timezone.

    A bare date (or a `YYYY-MM-DD` string) is already a calendar day and is
    returned unchanged; timestamps are converted into the zone first.
    """
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        value = parse_timestamp(text)

    if isinstance(value, datetime):
        return to_utc(value).astimezone(get_zone(tz_name)).date()
    if isinstance(value, date):
        return value
    raise ValueError(f"Unsupported date value: {value!r}")


def format_date_in_timezone(value, tz_name: str | None = None) -> str:
    return local_day(value, tz_name).isoformat()


def today_in_timezone(tz_name: str | None = None, now: datetime | None = None) -> date:
    now = now or datetime.now(timezone.utc)
    return local_day(now, tz_name)


def days_between(later: date, earlier: date) -> int:
    return (later - earlier).days


def iso_week_key(day: date) -> tuple[int, int]:
    """(ISO year, ISO week); the week belongs to the year holding its Thursday."""
    iso = day.isocalendar()
    return iso[0], iso[1]


def week_ordinal(day: date) -> int:
    """Sequential week number, consecutive across year boundaries."""
    monday = day - timedelta(days=day.weekday())
    return (monday.toordinal() - 1) // 7


def weekday_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def local_day_bounds_utc(day: date, tz_name: str | None = None) -> tuple[datetime, datetime]:
    """Naive-UTC [start, end) of a local calendar day, for querying UTC columns."""
    zone = get_zone(tz_name)
    start = datetime(day.year, day.month, day.day, tzinfo=zone)
    end = start + timedelta(days=1)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )
