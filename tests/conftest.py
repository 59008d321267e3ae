"""Shared test fixtures for scopestore tests.

Provides in-memory backends, a StorageController over them, and a
ConnectionPersistence with a configurable default saving location.
"""

from dataclasses import dataclass
from itertools import count

import pytest

from scopestore.schemas.enums import DefaultSavingLocation, StorageScope, StorageVariable
from scopestore.storage.backends import MemoryStore
from scopestore.storage.connections import ConnectionPersistence
from scopestore.storage.controller import StorageController


# ---------------------------------------------------------------------------
# Sample records, in their persisted (camelCase) form
# ---------------------------------------------------------------------------
def stored_connection(
    connection_id: str,
    name: str | None = None,
    scope: StorageScope | None = StorageScope.GLOBAL,
    connection_string: str = "mongodb://localhost",
) -> dict:
    entry: dict = {
        "id": connection_id,
        "connectionOptions": {"connectionString": connection_string},
    }
    if name is not None:
        entry["name"] = name
    if scope is not None:
        entry["storageLocation"] = scope.value
    return entry


@pytest.fixture
def make_stored():
    """Builder for persisted connection entries."""
    return stored_connection


@dataclass
class SavingConfig:
    """Mutable stand-in for the host's connectionSaving setting."""
    default_connection_saving_location: DefaultSavingLocation = DefaultSavingLocation.GLOBAL


# ---------------------------------------------------------------------------
# Backends and facade
# ---------------------------------------------------------------------------
@pytest.fixture
def global_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def workspace_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def controller(global_store: MemoryStore, workspace_store: MemoryStore) -> StorageController:
    return StorageController(global_store, workspace_store)


@pytest.fixture
def saving_config() -> SavingConfig:
    return SavingConfig()


@pytest.fixture
def id_factory():
    """Deterministic user id generator that counts its calls."""
    counter = count(1)

    def _factory() -> str:
        return f"user-{next(counter)}"

    return _factory


@pytest.fixture
def persistence(
    controller: StorageController,
    saving_config: SavingConfig,
    id_factory,
) -> ConnectionPersistence:
    return ConnectionPersistence(controller, saving_config, id_factory=id_factory)


@pytest.fixture
def seeded_global(global_store: MemoryStore) -> MemoryStore:
    """Global store holding one saved connection, conn1."""
    global_store.write(
        StorageVariable.GLOBAL_SAVED_CONNECTIONS.value,
        {"conn1": stored_connection("conn1", "saved1", StorageScope.GLOBAL)},
    )
    return global_store


@pytest.fixture
def seeded_workspace(workspace_store: MemoryStore) -> MemoryStore:
    """Workspace store holding one saved connection, conn1."""
    workspace_store.write(
        StorageVariable.WORKSPACE_SAVED_CONNECTIONS.value,
        {"conn1": stored_connection("conn1", "saved1", StorageScope.WORKSPACE)},
    )
    return workspace_store
