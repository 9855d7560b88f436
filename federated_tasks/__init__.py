"""Federated listing, counting and statistics over independently-schemed task stores."""

from .catalog.registry import SourceDescriptor, SourceRegistry, default_sources
from .models import (
    AggregateCount,
    FilterContext,
    NormalizedTaskRow,
    StaffPerformance,
    StaffReport,
    StatisticsSummary,
    TaskPage,
    TaskView,
)
from .service import TaskFederationService

__all__ = [
    "AggregateCount",
    "FilterContext",
    "NormalizedTaskRow",
    "SourceDescriptor",
    "SourceRegistry",
    "StaffPerformance",
    "StaffReport",
    "StatisticsSummary",
    "TaskFederationService",
    "TaskPage",
    "TaskView",
    "default_sources",
]
