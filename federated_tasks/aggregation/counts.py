"""Cross-source task counts with per-source breakdown."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

from federated_tasks.catalog.registry import SourceDescriptor
from federated_tasks.executor.engine import FailurePolicy, FederatedExecutor, SourceResult
from federated_tasks.models import AggregateCount, FilterContext
from federated_tasks.planner.queries import build_count_statement


def _row_count(result: SourceResult) -> int:
    if not result.rows:
        return 0
    row = result.rows[0]
    value = row.get("task_count")
    if value is None and row:
        value = next(iter(row.values()))
    return int(value or 0)


def fold_counts(results: Iterable[SourceResult]) -> AggregateCount:
    aggregate = AggregateCount()
    for result in results:
        aggregate.add(
            result.source,
            _row_count(result) if result.ok else 0,
            ok=result.ok,
            error=result.error,
        )
    return aggregate


async def count_tasks(
    executor: FederatedExecutor,
    sources: Sequence[SourceDescriptor],
    ctx: FilterContext,
    today: date,
    policy: FailurePolicy = FailurePolicy.DEGRADE,
) -> AggregateCount:
    """One COUNT(*) per source; failed sources count as zero with ok=False."""
    statements = [build_count_statement(source, ctx, today) for source in sources]
    results = await executor.run(statements, policy)
    return fold_counts(results)
