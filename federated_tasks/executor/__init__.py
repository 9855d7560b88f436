from .engine import FailurePolicy, FederatedExecutor, SourceResult
from .pagination import merge_page, normalize_row, sort_rows

__all__ = ["FailurePolicy", "FederatedExecutor", "SourceResult", "merge_page", "normalize_row", "sort_rows"]
