"""
streak_service.py: Streak & completion calculator
Single source of truth for habit statistics. Pure functions of
(log dates, frequency rule, timezone, now): no database access, no writes.
"""

from datetime import datetime, timedelta

from services.calendar_service import local_day, today_in_timezone, week_ordinal


class FrequencyRule:
    """How a habit's completions are grouped into streak periods."""
    name = ""

    def current_streak(self, days: list, today) -> int:
        raise NotImplementedError

    def longest_streak(self, days: list) -> int:
        raise NotImplementedError


class RunLengthRule(FrequencyRule):
    """Consecutive periods with at least one completion form a run."""

    def period(self, day) -> int:
        raise NotImplementedError

    def current_streak(self, days: list, today) -> int:
        periods = sorted({self.period(d) for d in days}, reverse=True)
        if not periods:
            return 0
        # one period of grace: an empty "today so far" keeps yesterday's run alive
        if self.period(today) - periods[0] > 1:
            return 0

        streak = 1
        for prev, curr in zip(periods, periods[1:]):
            if prev - curr != 1:
                break
            streak += 1
        return streak

    def longest_streak(self, days: list) -> int:
        periods = sorted({self.period(d) for d in days})
        longest = run = 0
        prev = None
        for p in periods:
            run = run + 1 if prev is not None and p - prev == 1 else 1
            longest = max(longest, run)
            prev = p
        return longest


class DailyRule(RunLengthRule):
    name = "daily"

    def period(self, day) -> int:
        return day.toordinal()


class WeeklyRule(RunLengthRule):
    name = "weekly"

    def period(self, day) -> int:
        return week_ordinal(day)


class CustomRule(FrequencyRule):
    """
    Custom schedules are not streaked: the "streak" is the number of
    completion days inside a trailing window, provided the habit was done
    recently at all.
    """
    name = "custom"
    WINDOW_DAYS = 30
    RECENT_DAYS = 7

    def _window_count(self, days: set, end) -> int:
        start = end - timedelta(days=self.WINDOW_DAYS)
        return sum(1 for d in days if start <= d <= end)

    def current_streak(self, days: list, today) -> int:
        distinct = set(days)
        if not distinct:
            return 0
        if (today - max(distinct)).days > self.RECENT_DAYS:
            return 0
        return self._window_count(distinct, today)

    def longest_streak(self, days: list) -> int:
        distinct = set(days)
        return max((self._window_count(distinct, d) for d in distinct), default=0)


RULES = {rule.name: rule for rule in (DailyRule(), WeeklyRule(), CustomRule())}


def get_rule(frequency: str) -> FrequencyRule:
    try:
        return RULES[frequency]
    except KeyError:
        raise ValueError(f"Unknown habit frequency: {frequency}")


def completion_rate(completed: int, total: int) -> float:
    """Completed logs over all log rows, as a percentage."""
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 2)


def calculate_current_streak(completion_dates, frequency: str, tz_name: str = "UTC",
                             now: datetime = None) -> int:
    rule = get_rule(frequency)
    days = [local_day(d, tz_name) for d in completion_dates]
    return rule.current_streak(days, today_in_timezone(tz_name, now))


def calculate_habit_stats(logs, frequency: str, tz_name: str = "UTC", now: datetime = None) -> dict:
    """
    `logs` is an iterable of (completion_date, status) pairs, where the date
    is a `YYYY-MM-DD` string, a date, or a timestamp.
    """
    rule = get_rule(frequency)
    logs = list(logs)
    completed = [local_day(d, tz_name) for d, status in logs if status == "completed"]
    today = today_in_timezone(tz_name, now)

    return {
        "current_streak": rule.current_streak(completed, today),
        "longest_streak": rule.longest_streak(completed),
        "completion_rate": completion_rate(len(completed), len(logs)),
        "total_completions": len(completed),
        "total_days": len(logs),
    }
