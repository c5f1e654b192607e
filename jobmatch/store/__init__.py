from .base import DocumentStore, Snapshot
from .memory import InMemoryDocumentStore
from .json_store import JsonSnapshotStore

__all__ = ["DocumentStore", "Snapshot", "InMemoryDocumentStore", "JsonSnapshotStore"]
