"""Core request and result models for federated task queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

ALL = "all"


class TaskView(str, Enum):
    """Named temporal / status presets shared by every source."""

    RECENT = "recent"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"
    NOTDONE = "notdone"
    DATE_RANGE = "date_range"
    IGNORE_DATE = "ignore_date"
    HISTORY = "history"
    DEFAULT = "default"

    @classmethod
    def parse(cls, value: Any) -> "TaskView":
        """Map a caller-supplied string onto a view, falling back to DEFAULT."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        if not normalized:
            return cls.DEFAULT
        try:
            return cls(normalized)
        except ValueError:
            logger.warning(f"Unrecognized task view '{value}', using date range behaviour")
            return cls.DEFAULT


def month_start(day: date) -> date:
    return day.replace(day=1)


class FilterContext(BaseModel):
    """Caller filters shared by listing, counting and statistics calls."""

    model_config = ConfigDict(frozen=True)

    role: Literal["admin", "user"] = "admin"
    username: Optional[str] = None
    staff_filter: Optional[str] = None
    department_filter: Optional[str] = None
    task_view: TaskView = TaskView.DEFAULT
    date_range_start: Optional[date] = None
    date_range_end: Optional[date] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)
    sources: Optional[Tuple[str, ...]] = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Any:
        return str(value).strip().lower() if value is not None else "admin"

    @field_validator("task_view", mode="before")
    @classmethod
    def _parse_view(cls, value: Any) -> TaskView:
        return TaskView.parse(value)

    @field_validator("username", "staff_filter", "department_filter", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @model_validator(mode="after")
    def _check_range(self) -> "FilterContext":
        if self.date_range_start and self.date_range_end and self.date_range_start > self.date_range_end:
            raise ValueError("date_range_start must not be after date_range_end")
        return self

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def staff(self) -> Optional[str]:
        """Staff filter, or None when it selects everyone."""
        if self.staff_filter and self.staff_filter.lower() != ALL:
            return self.staff_filter
        return None

    @property
    def department(self) -> Optional[str]:
        """Department filter, or None when it selects every department."""
        if self.department_filter and self.department_filter.lower() != ALL:
            return self.department_filter
        return None

    def resolve_range(self, today: date) -> Tuple[date, date]:
        """Range bounds, defaulting to the first of the month through today."""
        start = self.date_range_start or month_start(today)
        end = self.date_range_end or today
        return start, end


@dataclass(frozen=True)
class NormalizedTaskRow:
    """One task renormalized into the shared output shape."""

    source: str
    source_row_id: str
    task_id: Optional[str]
    description: Optional[str]
    assignee_name: Optional[str]
    department: Optional[str]
    frequency: Optional[str]
    start_date: Optional[datetime]
    completion_date: Optional[datetime]
    status: Optional[str]

    @property
    def sort_id(self) -> str:
        return f"{self.source}_{self.source_row_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "source_row_id": self.source_row_id,
            "task_id": self.task_id,
            "description": self.description,
            "assignee_name": self.assignee_name,
            "department": self.department,
            "frequency": self.frequency,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "completion_date": self.completion_date.isoformat() if self.completion_date else None,
            "status": self.status,
        }


@dataclass
class TaskPage:
    """Listing result: one globally ordered page plus the total match count."""

    rows: List[NormalizedTaskRow]
    page: int
    limit: int
    total_count: int
    by_source: Dict[str, int] = field(default_factory=dict)


@dataclass
class AggregateCount:
    """Cross-source count with a per-source breakdown."""

    total: int = 0
    by_source: Dict[str, int] = field(default_factory=dict)
    source_ok: Dict[str, bool] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    def add(self, source: str, count: int, ok: bool = True, error: Optional[str] = None) -> None:
        self.by_source[source] = int(count)
        self.source_ok[source] = ok
        if error:
            self.errors[source] = error
        self.total = sum(self.by_source.values())

    @property
    def partial(self) -> bool:
        return not all(self.source_ok.values())


METRIC_NAMES = ("total", "completed", "not_done", "overdue", "pending", "upcoming")


@dataclass
class MultiMetricSummary:
    """Six task metrics computed for a single source in one round trip."""

    source: str
    total: int = 0
    completed: int = 0
    not_done: int = 0
    overdue: int = 0
    pending: int = 0
    upcoming: int = 0
    ok: bool = True
    error: Optional[str] = None

    def metric(self, name: str) -> int:
        return int(getattr(self, name))


@dataclass
class MetricBreakdown:
    count: int = 0
    breakdown: Dict[str, int] = field(default_factory=dict)


@dataclass
class StatisticsSummary:
    """Cross-source fold of per-source metric summaries."""

    metrics: Dict[str, MetricBreakdown]
    completion_rate: float
    date_range_start: date
    date_range_end: date
    source_ok: Dict[str, bool] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    def count(self, metric: str) -> int:
        return self.metrics[metric].count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": {
                name: {"count": m.count, "breakdown": dict(m.breakdown)}
                for name, m in self.metrics.items()
            },
            "completion_rate": self.completion_rate,
            "date_range": {
                "start": self.date_range_start.isoformat(),
                "end": self.date_range_end.isoformat(),
            },
            "source_ok": dict(self.source_ok),
            "errors": dict(self.errors),
        }


def performance_score(part: int, whole: int) -> float:
    """``part / whole`` as a percentage offset from 100; -100.0 when ``whole`` is 0."""
    if whole <= 0:
        return -100.0
    return round(part / whole * 100.0 - 100.0, 2)


@dataclass
class StaffPerformance:
    """Task outcomes for one assignee within one department, summed over sources."""

    department: Optional[str]
    name: str
    total_tasks: int = 0
    completed_tasks: int = 0
    done_on_time: int = 0
    by_source: Dict[str, int] = field(default_factory=dict)

    @property
    def pending_tasks(self) -> int:
        return self.total_tasks - self.completed_tasks

    @property
    def completion_score(self) -> float:
        return performance_score(self.completed_tasks, self.total_tasks)

    @property
    def ontime_score(self) -> float:
        return performance_score(self.done_on_time, self.completed_tasks)

    @property
    def total_score(self) -> float:
        return max(round(self.completion_score + self.ontime_score, 2), -100.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "department": self.department,
            "name": self.name,
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "pending_tasks": self.pending_tasks,
            "done_on_time": self.done_on_time,
            "completion_score": self.completion_score,
            "ontime_score": self.ontime_score,
            "total_score": self.total_score,
            "by_source": dict(self.by_source),
        }


@dataclass
class StaffReport:
    """One page of per-staff performance rows plus report-wide totals."""

    rows: List[StaffPerformance]
    page: int
    limit: int
    total_rows: int
    staff_count: int
    date_range_start: date
    date_range_end: date
    source_ok: Dict[str, bool] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return not all(self.source_ok.values())
