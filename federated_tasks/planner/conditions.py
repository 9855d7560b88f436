"""Per-source condition builder.

Translates the shared filter vocabulary (role scoping, department scoping and
task views) into predicates over one source's native column names. Bind
placeholders are SQLAlchemy named parameters ``:p<n>`` numbered from the
caller-supplied start index, so predicates built for several fragments can
be composed into one statement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from federated_tasks.catalog.registry import SourceDescriptor
from federated_tasks.models import FilterContext, TaskView


def placeholder(index: int) -> str:
    return f":p{index}"


def text_equals(column: str, token: str) -> str:
    """Case-insensitive match ignoring surrounding whitespace on the stored value."""
    return f"LOWER(TRIM({column})) = LOWER({token})"


def day_of(column: str) -> str:
    """Calendar-day projection in the configured timezone (see ``connectors.pools``)."""
    return f"date({column})"


@dataclass
class ConditionSet:
    predicates: List[str] = field(default_factory=list)
    params: List[Any] = field(default_factory=list)
    start_index: int = 1

    @property
    def next_index(self) -> int:
        return self.start_index + len(self.params)

    def bind(self, value: Any) -> str:
        token = placeholder(self.next_index)
        self.params.append(value)
        return token

    def add(self, predicate: str) -> None:
        self.predicates.append(predicate)

    def bind_map(self) -> Dict[str, Any]:
        return {f"p{self.start_index + i}": value for i, value in enumerate(self.params)}

    def where_sql(self) -> str:
        return f" WHERE {' AND '.join(self.predicates)}" if self.predicates else ""


def build_scope_conditions(
    source: SourceDescriptor,
    ctx: FilterContext,
    start_index: int = 1,
) -> ConditionSet:
    """Role, staff and department scoping only."""
    conds = ConditionSet(start_index=start_index)

    if ctx.role == "user" and ctx.username:
        conds.add(text_equals(source.name_column, conds.bind(ctx.username.strip())))
    elif ctx.role == "admin" and ctx.staff:
        conds.add(text_equals(source.name_column, conds.bind(ctx.staff.strip())))

    if ctx.department:
        conds.add(text_equals(source.department_column, conds.bind(ctx.department.strip())))

    return conds


def _add_range(conds: ConditionSet, column: str, start: date, end: date) -> None:
    conds.add(f"{day_of(column)} BETWEEN {conds.bind(start)} AND {conds.bind(end)}")


def build_conditions(
    source: SourceDescriptor,
    ctx: FilterContext,
    start_index: int = 1,
    today: Optional[date] = None,
) -> ConditionSet:
    """Scoping plus the temporal predicate of ``ctx.task_view``."""
    today = today or date.today()
    conds = build_scope_conditions(source, ctx, start_index)
    range_start, range_end = ctx.resolve_range(today)

    d = source.date_column
    done = source.completion_column
    view = ctx.task_view

    if view is TaskView.RECENT:
        conds.add(f"{day_of(d)} = {conds.bind(today)}")
        conds.add(f"{done} IS NULL")
        _add_range(conds, d, range_start, range_end)
    elif view is TaskView.UPCOMING:
        conds.add(f"{day_of(d)} = {conds.bind(today + timedelta(days=1))}")
        conds.add(f"{done} IS NULL")
    elif view is TaskView.OVERDUE:
        conds.add(f"{day_of(d)} < {conds.bind(today)}")
        conds.add(f"{done} IS NULL")
        _add_range(conds, d, range_start, range_end)
    elif view is TaskView.NOTDONE:
        conds.add(f"{source.status_expr()} = 'no'")
        if source.notdone_requires_completion:
            conds.add(f"{done} IS NOT NULL")
        _add_range(conds, d, range_start, range_end)
    elif view is TaskView.HISTORY:
        conds.add(f"{done} IS NOT NULL")
        _add_range(conds, done, range_start, range_end)
    elif view is TaskView.IGNORE_DATE:
        pass
    else:
        # DATE_RANGE and the fallback for unrecognized views
        _add_range(conds, d, range_start, range_end)

    return conds
