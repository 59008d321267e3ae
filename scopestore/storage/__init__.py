"""Storage layer — scoped backends, the StorageController facade, and
the connection persistence policy built on top of it.

Backends store whole values per key. Merging happens only in
ConnectionPersistence, which rewrites a scope's full collection on
every change.
"""

from scopestore.storage.backends import JsonFileStore, KeyValueStore, MemoryStore
from scopestore.storage.connections import ConnectionPersistence
from scopestore.storage.controller import StorageController

__all__ = [
    "ConnectionPersistence",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "StorageController",
]
