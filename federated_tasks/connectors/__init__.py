"""Connection pools for the federated task stores."""

from .base import QueryPool
from .pools import EnginePool, PoolRegistry, create_engine_for_url

__all__ = ["EnginePool", "PoolRegistry", "QueryPool", "create_engine_for_url"]
