"""Source registry describing each federated task store."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from federated_tasks.errors import RegistryError, UnknownSourceError

NORMALIZED_FIELDS: Tuple[str, ...] = (
    "source_row_id",
    "task_id",
    "description",
    "assignee_name",
    "department",
    "frequency",
    "start_date",
    "completion_date",
    "status",
)


@dataclass(frozen=True)
class SourceDescriptor:
    """Static description of one physical task store.

    Column attributes hold SQL-ready identifiers (already quoted where the
    store uses mixed-case names). ``projection`` maps every normalized field
    to an expression over the store's own columns.
    """

    name: str
    pool_binding: str
    table_name: str
    projection: Mapping[str, str]
    row_id_column: str
    date_column: str
    completion_column: str
    name_column: str
    department_column: str
    status_column: str
    status_is_text_castable: bool = False
    notdone_requires_completion: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "projection", MappingProxyType(dict(self.projection)))

    def missing_fields(self) -> List[str]:
        return [f for f in NORMALIZED_FIELDS if not str(self.projection.get(f, "")).strip()]

    def select_list(self) -> str:
        return ", ".join(f"{self.projection[f]} AS {f}" for f in NORMALIZED_FIELDS)

    def status_expr(self) -> str:
        if self.status_is_text_castable:
            return f"LOWER(CAST({self.status_column} AS TEXT))"
        return f"LOWER({self.status_column})"


def default_sources() -> Tuple[SourceDescriptor, ...]:
    """The three production stores, in registration order."""

    checklist = SourceDescriptor(
        name="checklist",
        pool_binding="main",
        table_name="checklist",
        projection={
            "source_row_id": "CAST(task_id AS TEXT)",
            "task_id": "CAST(task_id AS TEXT)",
            "description": "task_description",
            "assignee_name": "name",
            "department": "department",
            "frequency": "frequency",
            "start_date": "task_start_date",
            "completion_date": "submission_date",
            "status": "CAST(status AS TEXT)",
        },
        row_id_column="task_id",
        date_column="task_start_date",
        completion_column="submission_date",
        name_column="name",
        department_column="department",
        status_column="status",
        status_is_text_castable=True,
    )
    housekeeping = SourceDescriptor(
        name="housekeeping",
        pool_binding="housekeeping",
        table_name="assign_task",
        projection={
            "source_row_id": "CAST(id AS TEXT)",
            "task_id": "CAST(task_id AS TEXT)",
            "description": "task_description",
            "assignee_name": "name",
            "department": "department",
            "frequency": "frequency",
            "start_date": "task_start_date",
            "completion_date": "submission_date",
            "status": "status",
        },
        row_id_column="id",
        date_column="task_start_date",
        completion_column="submission_date",
        name_column="name",
        department_column="department",
        status_column="status",
        notdone_requires_completion=True,
    )
    maintenance = SourceDescriptor(
        name="maintenance",
        pool_binding="maintenance",
        table_name="maintenance_task_assign",
        projection={
            "source_row_id": 'CAST("id" AS TEXT)',
            "task_id": 'CAST("Task_No" AS TEXT)',
            "description": '"Description"',
            "assignee_name": '"Doer_Name"',
            "department": '"machine_department"',
            "frequency": '"Frequency"',
            "start_date": '"Task_Start_Date"',
            "completion_date": '"Actual_Date"',
            "status": '"Task_Status"',
        },
        row_id_column='"id"',
        date_column='"Task_Start_Date"',
        completion_column='"Actual_Date"',
        name_column='"Doer_Name"',
        department_column='"machine_department"',
        status_column='"Task_Status"',
    )
    return (checklist, housekeeping, maintenance)


@dataclass(frozen=True)
class SourceRegistry:
    """Read-only, ordered collection of source descriptors."""

    sources: Tuple[SourceDescriptor, ...] = field(default_factory=default_sources)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sources", tuple(self.sources))
        seen = set()
        for source in self.sources:
            if source.name in seen:
                raise RegistryError(f"Duplicate source name: {source.name}")
            seen.add(source.name)
            missing = source.missing_fields()
            if missing:
                raise RegistryError(f"Source '{source.name}' projection lacks fields: {', '.join(missing)}")

    def __iter__(self) -> Iterator[SourceDescriptor]:
        return iter(self.sources)

    def __len__(self) -> int:
        return len(self.sources)

    def names(self) -> List[str]:
        return [s.name for s in self.sources]

    def get(self, name: str) -> SourceDescriptor:
        for source in self.sources:
            if source.name == name:
                return source
        raise UnknownSourceError(name)

    def bindings(self) -> Dict[str, List[str]]:
        """Pool binding -> names of the sources bound to it."""
        result: Dict[str, List[str]] = {}
        for source in self.sources:
            result.setdefault(source.pool_binding, []).append(source.name)
        return result

    def select(self, names: Optional[Iterable[str]] = None) -> Sequence[SourceDescriptor]:
        """Subset in registration order; None selects every source."""
        if names is None:
            return self.sources
        wanted = set()
        for name in names:
            self.get(name)
            wanted.add(name)
        return tuple(s for s in self.sources if s.name in wanted)
