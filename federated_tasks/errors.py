"""Exceptions raised by the federation layer."""

from typing import Optional


class FederationError(Exception):
    """Base class for federation failures."""
    pass


class RegistryError(FederationError):
    """Raised when the source registry is inconsistent."""
    pass


class UnknownSourceError(FederationError):
    """Raised when a caller names a source that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown task source: {name}")
        self.name = name


class PoolNotConfiguredError(FederationError):
    """Raised when a source is bound to a pool that was never created."""

    def __init__(self, binding: str):
        super().__init__(f"No connection pool configured for binding: {binding}")
        self.binding = binding


class SourceQueryError(FederationError):
    """Raised when a per-source query fails under the fail-fast policy."""

    def __init__(self, source: str, cause: Optional[BaseException] = None):
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error"
        super().__init__(f"Query against source '{source}' failed ({detail})")
        self.source = source
        self.cause = cause
