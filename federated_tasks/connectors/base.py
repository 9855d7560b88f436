"""Connection pool interface consumed by the federated executor."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Protocol, runtime_checkable


@runtime_checkable
class QueryPool(Protocol):
    """A long-lived pool bound to one physical store."""

    async def query(self, text: str, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        ...
