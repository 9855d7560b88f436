"""Federated task service: the surface consumed by HTTP handlers.

Listing calls fail fast when any source fails. Counting, statistics and
lookup calls degrade: a failed source contributes zero and is reported in
``source_ok``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from federated_tasks.aggregation.counts import count_tasks as federated_count
from federated_tasks.aggregation.counts import fold_counts
from federated_tasks.aggregation.staff import collect_staff_report
from federated_tasks.aggregation.stats import collect_statistics
from federated_tasks.attendance import (
    AttendanceRefresher,
    RefreshFn,
    SingleFlightRefresh,
    refresh_best_effort,
)
from federated_tasks.catalog.registry import SourceDescriptor, SourceRegistry
from federated_tasks.config import Settings, get_settings
from federated_tasks.connectors.pools import PoolRegistry
from federated_tasks.executor.engine import FailurePolicy, FederatedExecutor
from federated_tasks.executor.pagination import fetch_window, merge_page, normalize_results
from federated_tasks.logging_config import setup_logging
from federated_tasks.models import (
    AggregateCount,
    FilterContext,
    StaffReport,
    StatisticsSummary,
    TaskPage,
    TaskView,
)
from federated_tasks.planner.queries import (
    build_count_statement,
    build_distinct_statement,
    build_list_statement,
)

logger = logging.getLogger(__name__)


def merge_distinct(values: Iterable[Any]) -> List[str]:
    """Trim, de-duplicate case-insensitively (first spelling wins), sort case-insensitively."""
    seen: Dict[str, str] = {}
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if text and text.lower() not in seen:
            seen[text.lower()] = text
    return sorted(seen.values(), key=lambda v: v.lower())


class TaskFederationService:
    """Listing, counting and statistics across every registered task source."""

    def __init__(
        self,
        pools: PoolRegistry,
        registry: Optional[SourceRegistry] = None,
        settings: Optional[Settings] = None,
        attendance: Optional[AttendanceRefresher] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or SourceRegistry()
        self.pools = pools
        self.attendance = attendance
        self.tz = ZoneInfo(self.settings.timezone)
        self._clock = clock
        self.executor = FederatedExecutor(pools, slow_query_seconds=self.settings.slow_query_seconds)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        attendance_refresh: Optional[RefreshFn] = None,
        configure_logging: bool = True,
    ) -> "TaskFederationService":
        """Production wiring: logging, one engine pool per binding, throttled attendance refresh."""
        settings = settings or get_settings()
        if configure_logging:
            setup_logging(settings.log_level)
        attendance = None
        if attendance_refresh is not None:
            attendance = SingleFlightRefresh(attendance_refresh, min_gap_seconds=settings.attendance_min_gap_seconds)
        return cls(PoolRegistry.from_settings(settings), settings=settings, attendance=attendance)

    async def aclose(self) -> None:
        await self.pools.dispose()

    def today(self) -> date:
        if self._clock is not None:
            return self._clock()
        return datetime.now(self.tz).date()

    def make_filter(self, **params: Any) -> FilterContext:
        """Build a FilterContext, applying the configured default page size."""
        params.setdefault("limit", self.settings.default_page_limit)
        return FilterContext(**params)

    def _sources(self, ctx: FilterContext) -> Sequence[SourceDescriptor]:
        return self.registry.select(ctx.sources)

    def _bounded(self, ctx: FilterContext) -> FilterContext:
        if ctx.limit > self.settings.max_page_limit:
            logger.warning(f"Page limit {ctx.limit} exceeds maximum, clamping to {self.settings.max_page_limit}")
            return ctx.model_copy(update={"limit": self.settings.max_page_limit})
        return ctx

    async def _before_query(self, ctx: FilterContext) -> None:
        if ctx.task_view is TaskView.NOTDONE:
            await refresh_best_effort(self.attendance)

    async def list_tasks(self, ctx: FilterContext) -> TaskPage:
        """One globally ordered page plus the total number of matches.

        Raises:
            SourceQueryError: when any source query fails.
        """
        ctx = self._bounded(ctx)
        await self._before_query(ctx)
        today = self.today()
        sources = self._sources(ctx)
        window = fetch_window(ctx.offset, ctx.limit)

        list_statements = [build_list_statement(s, ctx, window, today) for s in sources]
        count_statements = [build_count_statement(s, ctx, today) for s in sources]
        outcomes = await asyncio.gather(
            self.executor.run(list_statements, FailurePolicy.FAIL_FAST),
            self.executor.run(count_statements, FailurePolicy.FAIL_FAST),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        list_results, count_results = outcomes

        by_source = normalize_results(list_results, self.tz)
        rows = merge_page([by_source[s.name] for s in sources], ctx.offset, ctx.limit, ctx.task_view)
        counts = fold_counts(count_results)
        logger.info(
            f"Listed {len(rows)} of {counts.total} tasks (view={ctx.task_view.value}, page={ctx.page})"
        )
        return TaskPage(
            rows=rows,
            page=ctx.page,
            limit=ctx.limit,
            total_count=counts.total,
            by_source=dict(counts.by_source),
        )

    async def count_tasks(self, ctx: FilterContext) -> AggregateCount:
        await self._before_query(ctx)
        result = await federated_count(self.executor, self._sources(ctx), ctx, self.today())
        if result.partial:
            failed = [name for name, ok in result.source_ok.items() if not ok]
            logger.warning(f"Partial task count, failed sources: {', '.join(failed)}")
        return result

    async def task_statistics(self, ctx: FilterContext) -> StatisticsSummary:
        await refresh_best_effort(self.attendance)
        return await collect_statistics(self.executor, self._sources(ctx), ctx, self.today())

    async def dashboard_summary(self, ctx: FilterContext) -> Dict[str, Any]:
        """Flat summary used by dashboard cards."""
        stats = await self.task_statistics(ctx)
        return {
            "total_tasks": stats.count("total"),
            "completed_tasks": stats.count("completed"),
            "pending_tasks": stats.count("pending"),
            "overdue_tasks": stats.count("overdue"),
            "upcoming_tasks": stats.count("upcoming"),
            "not_done_tasks": stats.count("not_done"),
            "completion_rate": stats.completion_rate,
            "source_ok": dict(stats.source_ok),
        }

    async def staff_report(self, ctx: FilterContext) -> StaffReport:
        """Per department and assignee performance over the context's range.

        Honours role, staff and department scoping, so a user sees only
        their own rows. Failed sources contribute no rows.
        """
        ctx = self._bounded(ctx)
        report = await collect_staff_report(self.executor, self._sources(ctx), ctx, self.today())
        if report.partial:
            failed = [name for name, ok in report.source_ok.items() if not ok]
            logger.warning(f"Partial staff report, failed sources: {', '.join(failed)}")
        return report

    async def _distinct(self, column: str, department: Optional[str] = None) -> List[str]:
        statements = [build_distinct_statement(s, column, department) for s in self.registry]
        results = await self.executor.run(statements, FailurePolicy.DEGRADE)
        return merge_distinct(row.get("value") for r in results for row in r.rows)

    async def list_departments(self) -> List[str]:
        return await self._distinct("department")

    async def list_staff(self, department: Optional[str] = None) -> List[str]:
        if department and department.strip().lower() == "all":
            department = None
        return await self._distinct("name", department)
