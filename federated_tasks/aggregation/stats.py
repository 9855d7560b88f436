"""Multi-metric statistics folded across sources."""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Sequence

from federated_tasks.catalog.registry import SourceDescriptor
from federated_tasks.executor.engine import FailurePolicy, FederatedExecutor, SourceResult
from federated_tasks.models import (
    METRIC_NAMES,
    FilterContext,
    MetricBreakdown,
    MultiMetricSummary,
    StatisticsSummary,
)
from federated_tasks.planner.queries import build_stats_statement


def completion_rate(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(completed / total * 100.0, 1)


def summarize_result(result: SourceResult) -> MultiMetricSummary:
    summary = MultiMetricSummary(source=result.source, ok=result.ok, error=result.error)
    if not result.ok or not result.rows:
        return summary
    row = result.rows[0]
    for name in METRIC_NAMES:
        setattr(summary, name, max(int(row.get(name) or 0), 0))
    return summary


def fold_summaries(
    summaries: Iterable[MultiMetricSummary],
    range_start: date,
    range_end: date,
) -> StatisticsSummary:
    metrics: Dict[str, MetricBreakdown] = {name: MetricBreakdown() for name in METRIC_NAMES}
    source_ok: Dict[str, bool] = {}
    errors: Dict[str, str] = {}
    for summary in summaries:
        source_ok[summary.source] = summary.ok
        if summary.error:
            errors[summary.source] = summary.error
        for name in METRIC_NAMES:
            value = summary.metric(name)
            bucket = metrics[name]
            bucket.breakdown[summary.source] = value
            bucket.count += value

    return StatisticsSummary(
        metrics=metrics,
        completion_rate=completion_rate(metrics["completed"].count, metrics["total"].count),
        date_range_start=range_start,
        date_range_end=range_end,
        source_ok=source_ok,
        errors=errors,
    )


async def collect_statistics(
    executor: FederatedExecutor,
    sources: Sequence[SourceDescriptor],
    ctx: FilterContext,
    today: date,
) -> StatisticsSummary:
    """One conditional-aggregation query per source, degrade-to-zero on failure."""
    statements = [build_stats_statement(source, ctx, today) for source in sources]
    results = await executor.run(statements, FailurePolicy.DEGRADE)
    summaries: List[MultiMetricSummary] = [summarize_result(r) for r in results]
    range_start, range_end = ctx.resolve_range(today)
    return fold_summaries(summaries, range_start, range_end)
