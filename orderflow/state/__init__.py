"""State management modules."""

from orderflow.config import get_settings
from orderflow.state.redis_store import RedisStore
from orderflow.state.store import MemoryStore, OrderStore
from orderflow.state.workflow import (
    OrderTransitions,
    allowed_targets,
    can_transition,
    ensure_transition,
    status_update_targets,
)

__all__ = [
    "OrderStore",
    "MemoryStore",
    "RedisStore",
    "OrderTransitions",
    "can_transition",
    "ensure_transition",
    "allowed_targets",
    "status_update_targets",
    "build_store",
]


def build_store(backend: str | None = None) -> OrderStore:
    """Create the store selected by ``store_backend``."""
    backend = backend or get_settings().store_backend
    if backend == "redis":
        return RedisStore()
    return MemoryStore()
