from .json_snapshot_store import JsonSnapshotStore
from .memory import InMemoryPersistence

__all__ = ["InMemoryPersistence", "JsonSnapshotStore"]
