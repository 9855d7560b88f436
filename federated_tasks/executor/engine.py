"""Concurrent fan-out of per-source statements."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from federated_tasks.connectors.pools import PoolRegistry
from federated_tasks.errors import SourceQueryError
from federated_tasks.planner.queries import SourceStatement

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    """How a single source failure affects the federated call."""

    FAIL_FAST = "fail_fast"
    DEGRADE = "degrade"


@dataclass
class SourceResult:
    source: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    ok: bool = True
    error: Optional[str] = None
    duration_ms: float = 0.0


class FederatedExecutor:
    """Runs one statement per source concurrently against its bound pool.

    The caller always waits for every branch to settle; no branch is
    cancelled when another fails.
    """

    def __init__(self, pools: PoolRegistry, slow_query_seconds: float = 0.5):
        self.pools = pools
        self.slow_query_seconds = slow_query_seconds

    async def _run_one(self, statement: SourceStatement) -> SourceResult:
        source = statement.source
        started = time.perf_counter()
        pool = self.pools.get(source.pool_binding)
        rows = await pool.query(statement.sql, statement.params)
        elapsed = time.perf_counter() - started
        if elapsed > self.slow_query_seconds:
            logger.warning(f"Slow query on source '{source.name}': {elapsed:.3f}s ({len(rows)} rows)")
        else:
            logger.debug(f"Source '{source.name}' returned {len(rows)} rows in {elapsed:.3f}s")
        return SourceResult(source=source.name, rows=rows, duration_ms=elapsed * 1000.0)

    async def run(
        self,
        statements: Sequence[SourceStatement],
        policy: FailurePolicy,
    ) -> List[SourceResult]:
        """Execute ``statements`` concurrently; results keep statement order."""
        outcomes = await asyncio.gather(
            *(self._run_one(s) for s in statements),
            return_exceptions=True,
        )

        results: List[SourceResult] = []
        first_failure: Optional[SourceQueryError] = None
        for statement, outcome in zip(statements, outcomes):
            name = statement.source.name
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(f"Query against source '{name}' failed: {outcome}", exc_info=outcome)
                if policy is FailurePolicy.FAIL_FAST:
                    if first_failure is None:
                        first_failure = SourceQueryError(name, outcome)
                    continue
                results.append(SourceResult(source=name, ok=False, error=f"{type(outcome).__name__}: {outcome}"))
                continue
            results.append(outcome)

        if first_failure is not None:
            raise first_failure from first_failure.cause
        return results
