"""Key-value persistence for JSON-serialisable collections."""

from rolapet.storage.store import BaseStore, JsonFileStore, MemoryStore

__all__ = ["BaseStore", "JsonFileStore", "MemoryStore"]
