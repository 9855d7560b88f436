"""Single-flight guard around the attendance reconciliation collaborator.

The reconciliation job marks tasks as not done from biometric attendance
logs. The federation layer only needs it to have run recently before it
answers "not done" questions; its heuristics live elsewhere.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

RefreshFn = Callable[[], Awaitable[Dict[str, Any]]]


@runtime_checkable
class AttendanceRefresher(Protocol):
    async def refresh_sync(self) -> Dict[str, Any]:
        ...


class SingleFlightRefresh:
    """Throttled, de-duplicated wrapper over an async refresh callable.

    Concurrent callers share one in-flight run; an attempt that finished less
    than ``min_gap_seconds`` ago, failed or not, short-circuits to
    ``{"skipped": True}``.
    """

    def __init__(
        self,
        refresh: RefreshFn,
        min_gap_seconds: float = 55.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._refresh = refresh
        self.min_gap_seconds = min_gap_seconds
        self._clock = clock
        self._last_run: Optional[float] = None
        self._in_flight: Optional[asyncio.Task] = None

    def _recent(self) -> bool:
        return self._last_run is not None and (self._clock() - self._last_run) < self.min_gap_seconds

    async def _run(self) -> Dict[str, Any]:
        try:
            return await self._refresh()
        finally:
            self._last_run = self._clock()
            self._in_flight = None

    async def refresh_sync(self) -> Dict[str, Any]:
        if self._in_flight is not None:
            logger.debug("Attendance refresh already in flight, joining it")
            return await asyncio.shield(self._in_flight)
        if self._recent():
            logger.debug("Attendance refresh skipped (recent run)")
            return {"skipped": True}
        self._in_flight = asyncio.ensure_future(self._run())
        return await asyncio.shield(self._in_flight)


async def refresh_best_effort(refresher: Optional[AttendanceRefresher]) -> Optional[Dict[str, Any]]:
    """Run the refresher, logging and discarding any failure."""
    if refresher is None:
        return None
    try:
        summary = await refresher.refresh_sync()
        logger.debug(f"Attendance refresh summary: {summary}")
        return summary
    except Exception as exc:
        logger.warning(f"Attendance refresh failed, continuing with current task state: {exc}")
        return None
