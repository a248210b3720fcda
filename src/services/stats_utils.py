"""Pure helpers for date windows and productivity arithmetic."""

from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timedelta
from typing import NamedTuple, TypeVar

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import MO, relativedelta

from src.core.config import constants


T = TypeVar("T")


class DateInterval(NamedTuple):
    """Closed interval ``[start, end]`` in server-local time."""

    start: datetime
    end: datetime


class DateIntervals(NamedTuple):
    today: DateInterval
    week: DateInterval
    month: DateInterval


def start_of_day(value: datetime | date) -> datetime:
    return datetime.combine(value.date() if isinstance(value, datetime) else value, time.min)


def end_of_day(value: datetime | date) -> datetime:
    return datetime.combine(value.date() if isinstance(value, datetime) else value, time.max)


def get_date_intervals(reference: datetime | None = None) -> DateIntervals:
    """Today, the Monday-to-Sunday week and the calendar month containing ``reference``."""
    reference = reference or datetime.now()
    day = reference.date()

    week_start = day + relativedelta(weekday=MO(-1))
    month_start = day.replace(day=1)
    month_end = month_start + relativedelta(months=1, days=-1)

    return DateIntervals(
        today=DateInterval(start_of_day(day), end_of_day(day)),
        week=DateInterval(start_of_day(week_start), end_of_day(week_start + timedelta(days=6))),
        month=DateInterval(start_of_day(month_start), end_of_day(month_end)),
    )


def shift_interval(interval: DateInterval, *, days: int) -> DateInterval:
    """Move both ends of an interval by the same number of days."""
    delta = timedelta(days=days)
    return DateInterval(interval.start + delta, interval.end + delta)


def is_date_in_period(value: datetime, interval: DateInterval) -> bool:
    return interval.start <= value <= interval.end


def calculate_productivity(
    focus_minutes: int,
    expected_focus_minutes: int = constants.EXPECTED_DAILY_FOCUS_MINUTES,
) -> int:
    """Focus time as a percentage of the expected focus, clamped to 0..100."""
    if expected_focus_minutes == 0:
        return 0
    return min(100, max(0, round(focus_minutes / expected_focus_minutes * 100)))


def convert_pomodoros_to_focus_time(
    completed_pomodoros: int,
    pomodoro_minutes: int = constants.DEFAULT_FOCUS_MINUTES,
) -> int:
    return completed_pomodoros * pomodoro_minutes


def calculate_average_productivity(daily_productivity: Iterable[int]) -> int:
    """Rounded unweighted mean, 0 for no days."""
    values = list(daily_productivity)
    if not values:
        return 0
    return round(sum(values) / len(values))


def calculate_longest_focus_streak(focus_days: Iterable[date | datetime]) -> int:
    """Longest run of consecutive calendar days.

    Repeated days neither extend nor break a run.
    """
    days = sorted(d.date() if isinstance(d, datetime) else d for d in focus_days)
    if not days:
        return 0

    longest = current = 1
    for previous, day in zip(days, days[1:], strict=False):
        gap = (day - previous).days
        if gap == 1:
            current += 1
            longest = max(longest, current)
        elif gap > 1:
            current = 1
    return longest


def find_most_productive_day(daily_productivity: dict[str, int]) -> str | None:
    """Key with the highest score. Ties go to the first key in iteration order."""
    best_key: str | None = None
    best_score = 0
    for key, score in daily_productivity.items():
        if best_key is None or score > best_score:
            best_key, best_score = key, score
    return best_key


def get_days_in_range(start: datetime | date, end: datetime | date) -> list[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    first = start.date() if isinstance(start, datetime) else start
    last = end.date() if isinstance(end, datetime) else end
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


def format_date_key(value: datetime | date) -> str:
    return value.strftime("%Y-%m-%d")


def parse_timestamp(value: datetime | str) -> datetime:
    """Accept either a datetime or a stored ISO-8601 string."""
    if isinstance(value, datetime):
        return value
    return dateutil_parser.isoparse(value)


def group_by_date(items: Iterable[T], key: Callable[[T], datetime | str | None]) -> dict[str, list[T]]:
    """Bucket items by the calendar day of ``key(item)``. Items without a timestamp are skipped."""
    grouped: dict[str, list[T]] = {}
    for item in items:
        stamp = key(item)
        if stamp is None:
            continue
        grouped.setdefault(format_date_key(parse_timestamp(stamp)), []).append(item)
    return grouped


def calculate_change_percent(current: int, previous: int) -> int:
    """Percent change from ``previous``; 0 when there is no baseline."""
    if previous == 0:
        return 0
    return round((current - previous) / previous * 100)
