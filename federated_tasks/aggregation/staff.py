"""Per-staff performance report folded across sources."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from federated_tasks.catalog.registry import SourceDescriptor
from federated_tasks.executor.engine import FailurePolicy, FederatedExecutor, SourceResult
from federated_tasks.models import FilterContext, StaffPerformance, StaffReport
from federated_tasks.planner.queries import build_staff_statement


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _order_key(entry: StaffPerformance) -> Tuple[bool, str, str]:
    return (entry.department is None, (entry.department or "").lower(), entry.name.lower())


def fold_staff_rows(results: Iterable[SourceResult]) -> Tuple[List[StaffPerformance], Dict[str, bool], Dict[str, str]]:
    """Merge grouped rows keyed by (department, name), case-insensitively; first spelling wins."""
    entries: Dict[Tuple[str, str], StaffPerformance] = {}
    source_ok: Dict[str, bool] = {}
    errors: Dict[str, str] = {}
    for result in results:
        source_ok[result.source] = result.ok
        if result.error:
            errors[result.source] = result.error
        for row in result.rows:
            name = _clean(row.get("name"))
            if name is None:
                continue
            department = _clean(row.get("department"))
            key = ((department or "").lower(), name.lower())
            entry = entries.get(key)
            if entry is None:
                entry = entries[key] = StaffPerformance(department=department, name=name)
            total = int(row.get("total_tasks") or 0)
            entry.total_tasks += total
            entry.completed_tasks += int(row.get("completed_tasks") or 0)
            entry.done_on_time += int(row.get("done_on_time") or 0)
            entry.by_source[result.source] = entry.by_source.get(result.source, 0) + total
    return sorted(entries.values(), key=_order_key), source_ok, errors


def count_staff(entries: Iterable[StaffPerformance]) -> int:
    return len({entry.name.lower() for entry in entries})


async def collect_staff_report(
    executor: FederatedExecutor,
    sources: Sequence[SourceDescriptor],
    ctx: FilterContext,
    today: date,
) -> StaffReport:
    """One grouped query per source, degrade-to-empty on failure, paged after the fold."""
    statements = [build_staff_statement(source, ctx, today) for source in sources]
    results = await executor.run(statements, FailurePolicy.DEGRADE)
    entries, source_ok, errors = fold_staff_rows(results)
    range_start, range_end = ctx.resolve_range(today)
    return StaffReport(
        rows=entries[ctx.offset:ctx.offset + ctx.limit],
        page=ctx.page,
        limit=ctx.limit,
        total_rows=len(entries),
        staff_count=count_staff(entries),
        date_range_start=range_start,
        date_range_end=range_end,
        source_ok=source_ok,
        errors=errors,
    )
