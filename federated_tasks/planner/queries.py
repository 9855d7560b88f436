"""SQL statement builders wrapped around the per-source condition builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Optional

from federated_tasks.catalog.registry import SourceDescriptor
from federated_tasks.models import FilterContext, TaskView
from federated_tasks.planner.conditions import (
    ConditionSet,
    build_conditions,
    build_scope_conditions,
    day_of,
    text_equals,
)


@dataclass
class SourceStatement:
    """One query bound to the source whose pool must run it."""

    source: SourceDescriptor
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)


def order_clause(source: SourceDescriptor, view: TaskView) -> str:
    """Local ordering matching the global merge key for ``view``."""
    tie_break = f"CAST({source.row_id_column} AS TEXT) ASC"
    if view is TaskView.HISTORY:
        col = source.completion_column
        return f"ORDER BY ({col} IS NULL), {col} DESC, {tie_break}"
    col = source.date_column
    return f"ORDER BY ({col} IS NULL), {col} ASC, {tie_break}"


def build_list_statement(
    source: SourceDescriptor,
    ctx: FilterContext,
    window: int,
    today: date,
) -> SourceStatement:
    """Top-``window`` rows of one source under the global ordering.

    Always fetched from offset 0: the merge paginator needs every row that
    could rank inside the first ``window`` rows of the union.
    """
    conds = build_conditions(source, ctx, start_index=1, today=today)
    limit_token = conds.bind(int(window))
    sql = (
        f"SELECT {source.select_list()} FROM {source.table_name}"
        f"{conds.where_sql()} {order_clause(source, ctx.task_view)} LIMIT {limit_token}"
    )
    return SourceStatement(source=source, sql=sql, params=conds.bind_map())


def build_count_statement(source: SourceDescriptor, ctx: FilterContext, today: date) -> SourceStatement:
    conds = build_conditions(source, ctx, start_index=1, today=today)
    sql = f"SELECT COUNT(*) AS task_count FROM {source.table_name}{conds.where_sql()}"
    return SourceStatement(source=source, sql=sql, params=conds.bind_map())


def _sum_when(predicate: str, alias: str) -> str:
    return f"COALESCE(SUM(CASE WHEN {predicate} THEN 1 ELSE 0 END), 0) AS {alias}"


def build_stats_statement(source: SourceDescriptor, ctx: FilterContext, today: date) -> SourceStatement:
    """Six metrics in one pass via conditional aggregation.

    The WHERE clause carries scoping only; the date range lives inside the
    CASE expressions because ``upcoming`` ignores it.
    """
    conds: ConditionSet = build_scope_conditions(source, ctx, start_index=1)
    range_start, range_end = ctx.resolve_range(today)

    d = day_of(source.date_column)
    done = source.completion_column
    status = f"COALESCE({source.status_expr()}, '')"

    p_start = conds.bind(range_start)
    p_end = conds.bind(range_end)
    p_today = conds.bind(today)
    p_tomorrow = conds.bind(today + timedelta(days=1))

    in_range = f"{d} BETWEEN {p_start} AND {p_end}"
    is_open = f"{done} IS NULL AND {status} NOT IN ('yes', 'no')"

    columns = [
        _sum_when(in_range, "total"),
        _sum_when(
            f"{in_range} AND ({status} = 'yes' OR ({done} IS NOT NULL AND {status} <> 'no'))",
            "completed",
        ),
        _sum_when(f"{in_range} AND {status} = 'no'", "not_done"),
        _sum_when(f"{in_range} AND {is_open} AND {d} < {p_today}", "overdue"),
        _sum_when(f"{in_range} AND {is_open} AND {d} = {p_today}", "pending"),
        _sum_when(f"{is_open} AND {d} = {p_tomorrow}", "upcoming"),
    ]
    sql = f"SELECT {', '.join(columns)} FROM {source.table_name}{conds.where_sql()}"
    return SourceStatement(source=source, sql=sql, params=conds.bind_map())


def build_distinct_statement(
    source: SourceDescriptor,
    column: str,
    department: Optional[str] = None,
) -> SourceStatement:
    """DISTINCT non-blank values of ``column`` ('name' or 'department')."""
    if column == "name":
        native = source.name_column
    elif column == "department":
        native = source.department_column
    else:
        raise ValueError(f"Unsupported distinct column: {column}")

    conds = ConditionSet()
    conds.add(f"{native} IS NOT NULL")
    conds.add(f"TRIM({native}) <> ''")
    if department:
        conds.add(text_equals(source.department_column, conds.bind(department.strip())))
    sql = f"SELECT DISTINCT TRIM({native}) AS value FROM {source.table_name}{conds.where_sql()}"
    return SourceStatement(source=source, sql=sql, params=conds.bind_map())


def build_staff_statement(source: SourceDescriptor, ctx: FilterContext, today: date) -> SourceStatement:
    """Per department and assignee: total, completed and done-on-time tasks in range.

    Completed means status 'yes'; on time additionally needs the completion
    day to be no later than the start day.
    """
    conds = build_scope_conditions(source, ctx, start_index=1)
    range_start, range_end = ctx.resolve_range(today)

    d = day_of(source.date_column)
    done = source.completion_column
    status = f"COALESCE({source.status_expr()}, '')"
    department = f"TRIM({source.department_column})"
    name = f"TRIM({source.name_column})"

    conds.add(f"{source.name_column} IS NOT NULL")
    conds.add(f"{name} <> ''")
    conds.add(f"{d} BETWEEN {conds.bind(range_start)} AND {conds.bind(range_end)}")

    columns = [
        f"{department} AS department",
        f"{name} AS name",
        "COUNT(*) AS total_tasks",
        _sum_when(f"{status} = 'yes'", "completed_tasks"),
        _sum_when(f"{status} = 'yes' AND {done} IS NOT NULL AND {day_of(done)} <= {d}", "done_on_time"),
    ]
    sql = (
        f"SELECT {', '.join(columns)} FROM {source.table_name}"
        f"{conds.where_sql()} GROUP BY {department}, {name}"
    )
    return SourceStatement(source=source, sql=sql, params=conds.bind_map())
