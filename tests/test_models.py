from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from federated_tasks.models import AggregateCount, FilterContext, TaskView


def test_filter_defaults_and_offset():
    ctx = FilterContext(page=3, limit=20)
    assert ctx.role == "admin"
    assert ctx.task_view is TaskView.DEFAULT
    assert ctx.offset == 40


@pytest.mark.parametrize("field,value", [("page", 0), ("limit", 0)])
def test_page_and_limit_must_be_positive(field, value):
    with pytest.raises(ValidationError):
        FilterContext(**{field: value})


def test_unknown_view_degrades_to_default():
    assert FilterContext(task_view="someday").task_view is TaskView.DEFAULT
    assert FilterContext(task_view=" Overdue ").task_view is TaskView.OVERDUE
    assert FilterContext(task_view=None).task_view is TaskView.DEFAULT


def test_range_defaults_to_month_to_date():
    ctx = FilterContext()
    assert ctx.resolve_range(date(2025, 3, 14)) == (date(2025, 3, 1), date(2025, 3, 14))

    ctx = FilterContext(date_range_start="2025-02-10")
    assert ctx.resolve_range(date(2025, 3, 14)) == (date(2025, 2, 10), date(2025, 3, 14))


def test_inverted_range_is_rejected():
    with pytest.raises(ValidationError):
        FilterContext(date_range_start=date(2025, 2, 1), date_range_end=date(2025, 1, 1))


def test_blank_filters_are_treated_as_absent():
    ctx = FilterContext(staff_filter="  ", department_filter="all", role="USER", username="Asha")
    assert ctx.staff_filter is None
    assert ctx.department is None
    assert ctx.role == "user"


def test_aggregate_count_total_tracks_breakdown():
    counts = AggregateCount()
    counts.add("checklist", 4)
    counts.add("housekeeping", 0, ok=False, error="ConnectionError: refused")
    counts.add("maintenance", 3)
    assert counts.total == sum(counts.by_source.values()) == 7
    assert counts.partial
    assert counts.errors == {"housekeeping": "ConnectionError: refused"}
