"""SQLAlchemy async engine pools, one per source binding."""

from __future__ import annotations

import logging
from datetime import date, datetime
from functools import partial
from typing import Any, Dict, List, Mapping, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import event
from sqlalchemy import text as sql_text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from federated_tasks.config import Settings
from federated_tasks.dates import local_day
from federated_tasks.errors import PoolNotConfiguredError

logger = logging.getLogger(__name__)


def _adapt_sqlite_param(value: Any) -> Any:
    # SQLite stores timestamps as ISO text; compare against the same shape.
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return value


class EnginePool:
    """QueryPool backed by a SQLAlchemy ``AsyncEngine``.

    Every call checks a connection out of the engine pool for the duration of
    the statement only and returns it whether the statement succeeds or not.
    """

    def __init__(self, engine: AsyncEngine, name: str = ""):
        self.engine = engine
        self.name = name or engine.url.database or "pool"
        self._is_sqlite = engine.dialect.name == "sqlite"

    def _adapt(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        if not self._is_sqlite:
            return dict(params)
        return {k: _adapt_sqlite_param(v) for k, v in params.items()}

    async def query(self, text: str, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        async with self.engine.connect() as conn:
            result = await conn.execute(sql_text(text), self._adapt(params or {}))
            return [dict(row) for row in result.mappings().all()]

    async def dispose(self) -> None:
        await self.engine.dispose()


def install_local_date(engine: AsyncEngine, tz: ZoneInfo) -> None:
    """Replace SQLite's one-argument ``date()`` with a day in ``tz``.

    SQLite's builtin normalizes offset-bearing text to UTC; PostgreSQL
    evaluates ``date()`` in the session TimeZone, which is set to ``tz``.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _register(dbapi_connection, connection_record):
        dbapi_connection.create_function("date", 1, partial(local_day, tz=tz))


def session_connect_args(url: str, timezone: str) -> Dict[str, Any]:
    """Driver arguments that pin the server session TimeZone."""
    if url.startswith("postgresql+psycopg"):
        return {"options": f"-c TimeZone={timezone}"}
    return {}


def create_engine_for_url(url: str, settings: Settings) -> AsyncEngine:
    """Build an async engine, applying pool sizing where the dialect supports it.

    Every engine computes calendar days in ``settings.timezone``, the same
    zone rows are normalized into.
    """
    if url.startswith("sqlite"):
        # File-backed SQLite gains nothing from a persistent pool.
        engine = create_async_engine(url, poolclass=NullPool)
        install_local_date(engine, ZoneInfo(settings.timezone))
        return engine
    return create_async_engine(
        url,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        pool_recycle=settings.pool_recycle,
        pool_pre_ping=True,
        connect_args=session_connect_args(url, settings.timezone),
    )


class PoolRegistry:
    """Process-wide mapping of pool binding -> QueryPool."""

    def __init__(self, pools: Optional[Mapping[str, Any]] = None):
        self._pools: Dict[str, Any] = dict(pools or {})

    @classmethod
    def from_settings(cls, settings: Settings) -> "PoolRegistry":
        pools: Dict[str, Any] = {}
        for binding, url in settings.database_urls().items():
            pools[binding] = EnginePool(create_engine_for_url(url, settings), name=binding)
            logger.info(f"Connection pool ready for binding '{binding}'")
        return cls(pools)

    @classmethod
    def from_urls(cls, urls: Mapping[str, str], settings: Settings) -> "PoolRegistry":
        return cls({b: EnginePool(create_engine_for_url(u, settings), name=b) for b, u in urls.items()})

    def register(self, binding: str, pool: Any) -> None:
        self._pools[binding] = pool

    def get(self, binding: str):
        pool = self._pools.get(binding)
        if pool is None:
            raise PoolNotConfiguredError(binding)
        return pool

    def bindings(self) -> List[str]:
        return list(self._pools)

    async def dispose(self) -> None:
        for binding, pool in self._pools.items():
            dispose = getattr(pool, "dispose", None)
            if dispose is None:
                continue
            try:
                await dispose()
            except Exception as exc:
                logger.warning(f"Failed to dispose pool '{binding}': {exc}")
