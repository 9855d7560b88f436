from .counts import count_tasks, fold_counts
from .staff import collect_staff_report, fold_staff_rows
from .stats import collect_statistics, completion_rate, fold_summaries

__all__ = [
    "collect_staff_report",
    "collect_statistics",
    "completion_rate",
    "count_tasks",
    "fold_counts",
    "fold_staff_rows",
    "fold_summaries",
]
