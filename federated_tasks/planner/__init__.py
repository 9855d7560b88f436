from .conditions import ConditionSet, build_conditions, build_scope_conditions
from .queries import (
    SourceStatement,
    build_count_statement,
    build_list_statement,
    build_staff_statement,
    build_stats_statement,
)

__all__ = [
    "ConditionSet",
    "SourceStatement",
    "build_conditions",
    "build_count_statement",
    "build_list_statement",
    "build_scope_conditions",
    "build_staff_statement",
    "build_stats_statement",
]
