"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting database
dictionaries into typed objects with validation.
"""

from typing import Any

from pydantic import BaseModel, Field

from src.core.errors import ErrorDetail
from src.domain.flower import Flower
from src.domain.pomodoro import Pomodoro
from src.domain.task import Task


class ServiceResult(BaseModel):
    """Uniform ``{success, data | error}`` envelope returned by every service operation."""

    success: bool
    data: Any = None
    error: ErrorDetail | None = None
    cached: bool | None = None

    @classmethod
    def ok(cls, data: Any = None, *, cached: bool | None = None) -> "ServiceResult":
        return cls(success=True, data=data, cached=cached)

    @classmethod
    def fail(cls, error: ErrorDetail) -> "ServiceResult":
        return cls(success=False, error=error)

    def to_response(self) -> dict[str, Any]:
        """Serialize to the wire shape, omitting the branch that does not apply."""
        if not self.success:
            return {"success": False, "error": self.error.model_dump(mode="json") if self.error else None}

        if isinstance(self.data, BaseModel):
            payload = self.data.model_dump(mode="json")
        elif isinstance(self.data, list):
            payload = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in self.data]
        else:
            payload = self.data

        response: dict[str, Any] = {"success": True, "data": payload}
        if self.cached is not None:
            response["cached"] = self.cached
        return response


class CompletionResult(BaseModel):
    """Outcome of a task completion check."""

    task_completed: bool
    completed_pomodoros: int
    required_pomodoros: int
    flowers_created: bool = False
    flowers: list[Flower] = Field(default_factory=list)


class FinishResult(BaseModel):
    """A finished pomodoro plus whatever the completion trigger did with its task."""

    pomodoro: Pomodoro
    completion: CompletionResult | None = None


class PeriodCounts(BaseModel):
    """One number per statistics window."""

    today: int
    week: int
    month: int


class TasksByPeriod(BaseModel):
    """Tasks bucketed by statistics window."""

    today: list[Task]
    week: list[Task]
    month: list[Task]


class OverviewStats(BaseModel):
    """Per-window pomodoro, task, focus and productivity figures."""

    pomodoros: PeriodCounts
    tasks_completed: PeriodCounts
    focus_time: PeriodCounts
    productivity: PeriodCounts


class SummaryStats(BaseModel):
    """Lifetime performance summary for a user."""

    total_pomodoros: int
    total_tasks_completed: int
    total_focus_time: int
    average_productivity: int
    longest_focus_streak: int
    most_productive_day: str | None = None


class DailyProductivity(BaseModel):
    """Activity for a single calendar day."""

    date: str
    pomodoros: int
    tasks_completed: int
    focus_time: int
    productivity: int


class ProductivitySummary(BaseModel):
    """Totals across a productivity period."""

    total_pomodoros: int
    total_tasks_completed: int
    total_focus_time: int
    average_productivity: int


class ProductivityPeriod(BaseModel):
    """Daily rows for a closed date range plus their summary."""

    daily_data: list[DailyProductivity]
    summary: ProductivitySummary


class MetricComparison(BaseModel):
    """Current vs previous value of one metric."""

    current: int
    previous: int
    change: int
    change_percent: int


class ComparativeStats(BaseModel):
    """This week compared with the seven days before it."""

    pomodoros: MetricComparison
    tasks_completed: MetricComparison
    productivity: MetricComparison


class PriorityCounts(BaseModel):
    """Flower counts per task priority."""

    low: int
    medium: int
    high: int


class GardenStats(BaseModel):
    """Aggregate view of a user's garden."""

    total_flowers: int
    normal_flowers: int
    legendary_flowers: int
    flowers_by_priority: PriorityCounts
    high_priority_tasks_completed: int
    next_legendary_at: int | None = None
