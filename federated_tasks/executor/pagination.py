"""K-way merge pagination over independently sorted per-source row sets.

Each source is asked for its first ``offset + limit`` rows under the global
ordering. A row ranked below that point inside its own source already has
``offset + limit`` rows of the same source ahead of it, so it cannot appear
in the global top ``offset + limit``. Concatenating, sorting and slicing the
per-source windows therefore yields exactly the page a full union would.

Cost grows with page depth: O(sources * (offset + limit)) rows per page.
There is no snapshot cursor; concurrent writes can shift rows across pages.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from federated_tasks.dates import coerce_datetime
from federated_tasks.models import NormalizedTaskRow, TaskView


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def normalize_row(source: str, row: Mapping[str, Any], tz: Optional[ZoneInfo] = None) -> NormalizedTaskRow:
    return NormalizedTaskRow(
        source=source,
        source_row_id=str(row.get("source_row_id")),
        task_id=_text(row.get("task_id")),
        description=_text(row.get("description")),
        assignee_name=_text(row.get("assignee_name")),
        department=_text(row.get("department")),
        frequency=_text(row.get("frequency")),
        start_date=coerce_datetime(row.get("start_date"), tz),
        completion_date=coerce_datetime(row.get("completion_date"), tz),
        status=_text(row.get("status")),
    )


def _ascending_key(row: NormalizedTaskRow):
    return (row.start_date is None, row.start_date or datetime.min, row.sort_id)


def sort_rows(rows: Iterable[NormalizedTaskRow], view: TaskView = TaskView.DEFAULT) -> List[NormalizedTaskRow]:
    """Stable global ordering used by every listing."""
    if view is TaskView.HISTORY:
        # completion_date DESC, sort_id ASC, nulls last: two stable passes
        ordered = sorted(rows, key=lambda r: r.sort_id)
        ordered.sort(key=lambda r: r.completion_date or datetime.min, reverse=True)
        ordered.sort(key=lambda r: r.completion_date is None)
        return ordered
    return sorted(rows, key=_ascending_key)


def merge_page(
    row_sets: Sequence[Sequence[NormalizedTaskRow]],
    offset: int,
    limit: int,
    view: TaskView = TaskView.DEFAULT,
) -> List[NormalizedTaskRow]:
    """Slice ``[offset, offset + limit)`` of the globally ordered union."""
    combined: List[NormalizedTaskRow] = []
    for rows in row_sets:
        combined.extend(rows)
    return sort_rows(combined, view)[offset:offset + limit]


def fetch_window(offset: int, limit: int) -> int:
    return offset + limit


def normalize_results(results: Iterable[Any], tz: Optional[ZoneInfo] = None) -> Dict[str, List[NormalizedTaskRow]]:
    """SourceResult list -> source name -> normalized rows."""
    return {r.source: [normalize_row(r.source, row, tz) for row in r.rows] for r in results}
