"""State store: last-applied resource attributes keyed by address."""

from .models import ResourceState, StateSnapshot
from .store import StateStore, MemoryStateStore, JsonStateStore

__all__ = [
    "ResourceState",
    "StateSnapshot",
    "StateStore",
    "MemoryStateStore",
    "JsonStateStore",
]
