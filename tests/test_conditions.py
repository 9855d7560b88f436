from __future__ import annotations

from datetime import date

from federated_tasks.catalog.registry import SourceRegistry
from federated_tasks.models import FilterContext, TaskView
from federated_tasks.planner.conditions import build_conditions, build_scope_conditions

TODAY = date(2025, 1, 20)
REGISTRY = SourceRegistry()
CHECKLIST = REGISTRY.get("checklist")
HOUSEKEEPING = REGISTRY.get("housekeeping")
MAINTENANCE = REGISTRY.get("maintenance")


def test_user_role_scopes_to_username_from_start_index():
    ctx = FilterContext(role="user", username="Asha", staff_filter="Ravi")
    conds = build_scope_conditions(CHECKLIST, ctx, start_index=5)
    assert conds.predicates == ["LOWER(TRIM(name)) = LOWER(:p5)"]
    assert conds.params == ["Asha"]
    assert conds.next_index == 6
    assert conds.bind_map() == {"p5": "Asha"}


def test_admin_staff_and_department_filters_use_native_columns():
    ctx = FilterContext(role="admin", staff_filter="Ravi", department_filter="Boiler")
    conds = build_scope_conditions(MAINTENANCE, ctx)
    assert conds.predicates == [
        'LOWER(TRIM("Doer_Name")) = LOWER(:p1)',
        'LOWER(TRIM("machine_department")) = LOWER(:p2)',
    ]
    assert conds.params == ["Ravi", "Boiler"]


def test_all_filters_add_no_scoping():
    ctx = FilterContext(role="admin", staff_filter="all", department_filter="ALL")
    conds = build_scope_conditions(CHECKLIST, ctx)
    assert conds.predicates == []
    assert conds.where_sql() == ""


def test_recent_view_requires_today_and_open_task():
    ctx = FilterContext(task_view="recent")
    conds = build_conditions(CHECKLIST, ctx, today=TODAY)
    assert "date(task_start_date) = :p1" in conds.predicates
    assert "submission_date IS NULL" in conds.predicates
    assert "date(task_start_date) BETWEEN :p2 AND :p3" in conds.predicates
    assert conds.params == [TODAY, date(2025, 1, 1), TODAY]


def test_upcoming_view_is_strictly_tomorrow_without_range():
    ctx = FilterContext(task_view="upcoming", date_range_start=date(2024, 1, 1))
    conds = build_conditions(HOUSEKEEPING, ctx, today=TODAY)
    assert conds.predicates == ["date(task_start_date) = :p1", "submission_date IS NULL"]
    assert conds.params == [date(2025, 1, 21)]


def test_overdue_view_is_before_today_and_bounded():
    ctx = FilterContext(
        task_view="overdue", date_range_start=date(2024, 12, 1), date_range_end=date(2025, 1, 31)
    )
    conds = build_conditions(MAINTENANCE, ctx, today=TODAY)
    assert conds.predicates == [
        'date("Task_Start_Date") < :p1',
        '"Actual_Date" IS NULL',
        'date("Task_Start_Date") BETWEEN :p2 AND :p3',
    ]
    assert conds.params == [TODAY, date(2024, 12, 1), date(2025, 1, 31)]


def test_notdone_completion_requirement_is_per_source():
    ctx = FilterContext(task_view="notdone")
    checklist = build_conditions(CHECKLIST, ctx, today=TODAY)
    housekeeping = build_conditions(HOUSEKEEPING, ctx, today=TODAY)

    assert "LOWER(CAST(status AS TEXT)) = 'no'" in checklist.predicates
    assert "submission_date IS NOT NULL" not in checklist.predicates
    assert "LOWER(status) = 'no'" in housekeeping.predicates
    assert "submission_date IS NOT NULL" in housekeeping.predicates


def test_ignore_date_view_adds_no_temporal_predicate():
    ctx = FilterContext(task_view="ignore_date", department_filter="Kitchen")
    conds = build_conditions(CHECKLIST, ctx, today=TODAY)
    assert conds.predicates == ["LOWER(TRIM(department)) = LOWER(:p1)"]


def test_unrecognized_view_falls_back_to_date_range():
    fallback = build_conditions(CHECKLIST, FilterContext(task_view="tomorrowish"), today=TODAY)
    explicit = build_conditions(CHECKLIST, FilterContext(task_view="date_range"), today=TODAY)
    assert fallback.predicates == explicit.predicates
    assert fallback.params == explicit.params


def test_history_view_filters_on_completion_date():
    ctx = FilterContext(task_view=TaskView.HISTORY)
    conds = build_conditions(CHECKLIST, ctx, today=TODAY)
    assert conds.predicates == [
        "submission_date IS NOT NULL",
        "date(submission_date) BETWEEN :p1 AND :p2",
    ]
