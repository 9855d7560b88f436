"""
Federated task test configuration.

Each source store is a SQLite file seeded with ``sqlite3`` and served through
an ``sqlite+aiosqlite`` engine, so the production SQL runs unchanged.
"""

from __future__ import annotations

import sqlite3
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pytest
import pytest_asyncio

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from federated_tasks.config import Settings
from federated_tasks.connectors.pools import PoolRegistry
from federated_tasks.service import TaskFederationService

TODAY = date(2025, 1, 20)

SCHEMAS = {
    "main": """
        CREATE TABLE checklist (
            task_id INTEGER PRIMARY KEY,
            department TEXT,
            name TEXT,
            task_description TEXT,
            frequency TEXT,
            task_start_date TEXT,
            submission_date TEXT,
            status TEXT
        );
    """,
    "housekeeping": """
        CREATE TABLE assign_task (
            id INTEGER PRIMARY KEY,
            task_id INTEGER,
            department TEXT,
            name TEXT,
            task_description TEXT,
            frequency TEXT,
            task_start_date TEXT,
            submission_date TEXT,
            status TEXT
        );
    """,
    "maintenance": """
        CREATE TABLE maintenance_task_assign (
            "id" INTEGER PRIMARY KEY,
            "Task_No" TEXT,
            "Doer_Name" TEXT,
            "machine_department" TEXT,
            "Description" TEXT,
            "Frequency" TEXT,
            "Task_Start_Date" TEXT,
            "Actual_Date" TEXT,
            "Task_Status" TEXT
        );
    """,
}

BINDING_FOR_SOURCE = {"checklist": "main", "housekeeping": "housekeeping", "maintenance": "maintenance"}


class TaskStores:
    """Seeding helper over the three SQLite source files."""

    def __init__(self, paths: Mapping[str, Path]):
        self.paths = dict(paths)
        self._next_id = {source: 1 for source in BINDING_FOR_SOURCE}

    def urls(self) -> Dict[str, str]:
        return {binding: f"sqlite+aiosqlite:///{path}" for binding, path in self.paths.items()}

    def add(
        self,
        source: str,
        start: Optional[str],
        done: Optional[str] = None,
        status: Optional[str] = None,
        name: str = "Asha",
        department: str = "Kitchen",
        description: str = "Daily task",
    ) -> str:
        row_id = self._next_id[source]
        self._next_id[source] += 1
        conn = sqlite3.connect(self.paths[BINDING_FOR_SOURCE[source]])
        try:
            if source == "checklist":
                conn.execute(
                    "INSERT INTO checklist(task_id, department, name, task_description, frequency, "
                    "task_start_date, submission_date, status) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (row_id, department, name, description, "daily", start, done, status),
                )
            elif source == "housekeeping":
                conn.execute(
                    "INSERT INTO assign_task(id, task_id, department, name, task_description, frequency, "
                    "task_start_date, submission_date, status) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (row_id, 100 + row_id, department, name, description, "weekly", start, done, status),
                )
            else:
                conn.execute(
                    'INSERT INTO maintenance_task_assign("id", "Task_No", "Doer_Name", "machine_department", '
                    '"Description", "Frequency", "Task_Start_Date", "Actual_Date", "Task_Status") '
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (row_id, f"TM-{row_id}", name, department, description, "monthly", start, done, status),
                )
            conn.commit()
        finally:
            conn.close()
        return f"{source}_{row_id}"


class FailingPool:
    """Pool whose every query fails, standing in for an unreachable store."""

    def __init__(self, message: str = "connection refused"):
        self.message = message
        self.calls = 0

    async def query(self, text: str, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        self.calls += 1
        raise ConnectionError(self.message)


class CountingRefresher:
    def __init__(self, fail: bool = False):
        self.calls = 0
        self.fail = fail

    async def refresh_sync(self) -> Dict[str, Any]:
        self.calls += 1
        if self.fail:
            raise RuntimeError("attendance device unreachable")
        return {"updated": 0}


@pytest.fixture
def test_settings() -> Settings:
    return Settings(timezone="UTC", slow_query_seconds=5.0, max_page_limit=500)


@pytest.fixture
def stores(tmp_path: Path) -> TaskStores:
    paths = {}
    for binding, ddl in SCHEMAS.items():
        path = tmp_path / f"{binding}.sqlite"
        conn = sqlite3.connect(path)
        conn.executescript(ddl)
        conn.commit()
        conn.close()
        paths[binding] = path
    return TaskStores(paths)


@pytest.fixture
def refresher() -> CountingRefresher:
    return CountingRefresher()


@pytest_asyncio.fixture
async def service(stores: TaskStores, test_settings: Settings, refresher: CountingRefresher):
    pools = PoolRegistry.from_urls(stores.urls(), test_settings)
    svc = TaskFederationService(pools, settings=test_settings, attendance=refresher, clock=lambda: TODAY)
    yield svc
    await svc.aclose()
