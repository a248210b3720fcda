"""Statistics aggregator: read-only productivity views over pomodoros and tasks.

All windows are closed intervals in server-local time, anchored to ``now``
(injectable for tests). Productivity compares focus minutes with a fixed daily
target of 8 hours, scaled by 7 for the week and by 30 for the month.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any

from src.core import db_client
from src.core.config import constants
from src.core.envelope import service_operation
from src.core.errors import DependencyFailureError, ErrorCode, InvalidInputError
from src.core.logging import span
from src.domain.pomodoro import PomodoroStatus
from src.domain.task import Task
from src.models.service_models import (
    ComparativeStats,
    DailyProductivity,
    MetricComparison,
    OverviewStats,
    PeriodCounts,
    ProductivityPeriod,
    ProductivitySummary,
    SummaryStats,
    TasksByPeriod,
)
from src.services import stats_utils, task_service
from src.services.stats_utils import DateInterval


logger = logging.getLogger(__name__)

DAILY_TARGET = constants.EXPECTED_DAILY_FOCUS_MINUTES
WEEKLY_TARGET = DAILY_TARGET * constants.DAYS_PER_WEEK
MONTHLY_TARGET = DAILY_TARGET * constants.DAYS_PER_MONTH


def _owner(user_id: str) -> str:
    return f'user_id = "{db_client.sanitize_param(user_id)}"'


def _within(field: str, interval: DateInterval) -> str:
    start = db_client.to_db_timestamp(interval.start)
    end = db_client.to_db_timestamp(interval.end)
    return f'{field} >= "{start}" && {field} <= "{end}"'


def _completed_pomodoros_filter(user_id: str, interval: DateInterval | None = None) -> str:
    query = f'{_owner(user_id)} && status = "{PomodoroStatus.COMPLETED}"'
    return f"{query} && {_within('completed_at', interval)}" if interval else query


def _completed_tasks_filter(user_id: str, interval: DateInterval | None = None) -> str:
    query = f'{_owner(user_id)} && completed = "true"'
    return f"{query} && {_within('updated_at', interval)}" if interval else query


async def _focus_minutes_per_pomodoro(user_id: str) -> int:
    """The user's focus setting without creating a settings row as a side effect."""
    record = await db_client.get_first_record(collection="pomodoro_settings", filter_query=_owner(user_id))
    if record is None or not record.get("focus_duration"):
        return constants.DEFAULT_FOCUS_MINUTES
    return int(record["focus_duration"])


async def _tasks_in_window(user_id: str, interval: DateInterval, *, include_incomplete: bool) -> list[Task]:
    """Tasks created or scheduled to start inside the window, newest first."""
    completed_filter = "" if include_incomplete else ' && completed = "true"'
    by_created, by_start = await asyncio.gather(
        task_service.list_user_tasks(user_id=user_id, filter_query=_within("created_at", interval) + completed_filter),
        task_service.list_user_tasks(user_id=user_id, filter_query=_within("start_at", interval) + completed_filter),
    )

    merged: dict[str, dict[str, Any]] = {r["id"]: r for r in by_created}
    for record in by_start:
        merged.setdefault(record["id"], record)

    ordered = sorted(merged.values(), key=lambda r: stats_utils.parse_timestamp(r["created_at"]), reverse=True)
    return [await task_service.to_task(r) for r in ordered]


@service_operation("stats_service.get_tasks_by_periods")
async def get_tasks_by_periods(
    *,
    user_id: str,
    include_incomplete: bool = False,
    now: datetime | None = None,
) -> TasksByPeriod:
    """Tasks per window, completed only unless ``include_incomplete``."""
    intervals = stats_utils.get_date_intervals(now)
    today, week, month = await asyncio.gather(
        *(_tasks_in_window(user_id, i, include_incomplete=include_incomplete) for i in intervals)
    )
    return TasksByPeriod(today=today, week=week, month=month)


async def _window_figures(user_id: str, interval: DateInterval, focus_minutes: int, target: int) -> dict[str, int]:
    pomodoros, tasks_completed = await asyncio.gather(
        db_client.count_records(collection="pomodoros", filter_query=_completed_pomodoros_filter(user_id, interval)),
        db_client.count_records(collection="tasks", filter_query=_completed_tasks_filter(user_id, interval)),
    )
    focus_time = stats_utils.convert_pomodoros_to_focus_time(pomodoros, focus_minutes)
    return {
        "pomodoros": pomodoros,
        "tasks_completed": tasks_completed,
        "focus_time": focus_time,
        "productivity": stats_utils.calculate_productivity(focus_time, target),
    }


@service_operation("stats_service.get_overview_stats")
async def get_overview_stats(*, user_id: str, now: datetime | None = None) -> OverviewStats:
    """Pomodoros, completed tasks, focus time and productivity for today, this week and this month."""
    intervals = stats_utils.get_date_intervals(now)
    focus_minutes = await _focus_minutes_per_pomodoro(user_id)

    today, week, month = await asyncio.gather(
        _window_figures(user_id, intervals.today, focus_minutes, DAILY_TARGET),
        _window_figures(user_id, intervals.week, focus_minutes, WEEKLY_TARGET),
        _window_figures(user_id, intervals.month, focus_minutes, MONTHLY_TARGET),
    )

    def counts(metric: str) -> PeriodCounts:
        return PeriodCounts(today=today[metric], week=week[metric], month=month[metric])

    return OverviewStats(
        pomodoros=counts("pomodoros"),
        tasks_completed=counts("tasks_completed"),
        focus_time=counts("focus_time"),
        productivity=counts("productivity"),
    )


@service_operation("stats_service.get_summary_stats")
async def get_summary_stats(*, user_id: str) -> SummaryStats:
    """Lifetime totals, average daily productivity, longest streak and best day."""
    focus_minutes = await _focus_minutes_per_pomodoro(user_id)

    with span("stats_service.get_summary_stats.query"):
        pomodoros, total_tasks = await asyncio.gather(
            db_client.list_all_records(
                collection="pomodoros",
                filter_query=_completed_pomodoros_filter(user_id),
                sort="completed_at ASC",
            ),
            db_client.count_records(collection="tasks", filter_query=_completed_tasks_filter(user_id)),
        )

    by_day = stats_utils.group_by_date(pomodoros, lambda p: p.get("completed_at"))
    daily_productivity = {
        day: stats_utils.calculate_productivity(
            stats_utils.convert_pomodoros_to_focus_time(len(items), focus_minutes)
        )
        for day, items in sorted(by_day.items())
    }
    focus_days = [date.fromisoformat(day) for day in daily_productivity]

    return SummaryStats(
        total_pomodoros=len(pomodoros),
        total_tasks_completed=total_tasks,
        total_focus_time=stats_utils.convert_pomodoros_to_focus_time(len(pomodoros), focus_minutes),
        average_productivity=stats_utils.calculate_average_productivity(daily_productivity.values()),
        longest_focus_streak=stats_utils.calculate_longest_focus_streak(focus_days),
        most_productive_day=stats_utils.find_most_productive_day(daily_productivity),
    )


@service_operation("stats_service.get_productivity_data_for_period")
async def get_productivity_data_for_period(
    *,
    user_id: str,
    start: datetime,
    end: datetime,
) -> ProductivityPeriod:
    """One row per calendar day in ``[start, end]``, idle days included, plus totals.

    Aware bounds are converted to server-local time before the days are cut.
    """
    start, end = db_client.to_server_local(start), db_client.to_server_local(end)
    if end < start:
        raise InvalidInputError("end must not be before start", code=ErrorCode.ERR_INVALID_DATE_RANGE)

    interval = DateInterval(stats_utils.start_of_day(start), stats_utils.end_of_day(end))
    focus_minutes = await _focus_minutes_per_pomodoro(user_id)

    pomodoros, tasks = await asyncio.gather(
        db_client.list_all_records(collection="pomodoros", filter_query=_completed_pomodoros_filter(user_id, interval)),
        db_client.list_all_records(collection="tasks", filter_query=_completed_tasks_filter(user_id, interval)),
    )
    pomodoros_by_day = stats_utils.group_by_date(pomodoros, lambda p: p.get("completed_at"))
    tasks_by_day = stats_utils.group_by_date(tasks, lambda t: t.get("updated_at"))

    daily_data = []
    for day in stats_utils.get_days_in_range(interval.start, interval.end):
        key = stats_utils.format_date_key(day)
        day_pomodoros = len(pomodoros_by_day.get(key, []))
        focus_time = stats_utils.convert_pomodoros_to_focus_time(day_pomodoros, focus_minutes)
        daily_data.append(
            DailyProductivity(
                date=key,
                pomodoros=day_pomodoros,
                tasks_completed=len(tasks_by_day.get(key, [])),
                focus_time=focus_time,
                productivity=stats_utils.calculate_productivity(focus_time),
            )
        )

    return ProductivityPeriod(
        daily_data=daily_data,
        summary=ProductivitySummary(
            total_pomodoros=len(pomodoros),
            total_tasks_completed=len(tasks),
            total_focus_time=stats_utils.convert_pomodoros_to_focus_time(len(pomodoros), focus_minutes),
            average_productivity=stats_utils.calculate_average_productivity(d.productivity for d in daily_data),
        ),
    )


def _compare(current: int, previous: int) -> MetricComparison:
    return MetricComparison(
        current=current,
        previous=previous,
        change=current - previous,
        change_percent=stats_utils.calculate_change_percent(current, previous),
    )


@service_operation("stats_service.get_comparative_stats")
async def get_comparative_stats(*, user_id: str, now: datetime | None = None) -> ComparativeStats:
    """This week against the same seven days shifted one week back."""
    week = stats_utils.get_date_intervals(now).week
    previous_week = stats_utils.shift_interval(week, days=-constants.DAYS_PER_WEEK)

    current_result, previous_result = await asyncio.gather(
        get_productivity_data_for_period(user_id=user_id, start=week.start, end=week.end),
        get_productivity_data_for_period(user_id=user_id, start=previous_week.start, end=previous_week.end),
    )
    if not current_result.success or not previous_result.success:
        raise DependencyFailureError("Could not load weekly productivity for comparison")

    current: ProductivitySummary = current_result.data.summary
    previous: ProductivitySummary = previous_result.data.summary

    return ComparativeStats(
        pomodoros=_compare(current.total_pomodoros, previous.total_pomodoros),
        tasks_completed=_compare(current.total_tasks_completed, previous.total_tasks_completed),
        productivity=_compare(current.average_productivity, previous.average_productivity),
    )
