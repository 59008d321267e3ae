"""ConnectionPersistence — scope policy for saved connections and user id.

Built on StorageController. Owns no persistent state of its own: every
operation reads the current collection for a scope, computes the new
value, and writes the whole collection back (read-merge-write).

Merge rules:
- A save inserts or overwrites exactly one entry, keyed by record id.
  Every other entry is written back untouched.
- A record's storage_location always equals the scope of the
  collection it is stored in.
- New connections without an explicit scope go to the configured
  default saving location.

The backends offer no compare-and-swap, so each scope's read-merge-write
runs under a per-scope lock. This serializes writers inside one process;
writers in other processes can still race.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Mapping
from typing import Any
from uuid import uuid4

import structlog
from pydantic import ValidationError

from scopestore.config.saving import SavingLocationProvider
from scopestore.exceptions import MalformedCollectionError, ScopeMismatchError
from scopestore.schemas.connection import ConnectionRecord
from scopestore.schemas.enums import DefaultSavingLocation, StorageScope, StorageVariable
from scopestore.storage.controller import StorageController

logger = structlog.get_logger()

RecordInput = ConnectionRecord | Mapping[str, Any]

_SCOPE_KEYS = ("storageLocation", "storage_location")


def _new_user_id() -> str:
    return str(uuid4())


class ConnectionPersistence:
    """Saves, lists and removes connections across the two scopes.

    Args:
        controller: Facade over the global and workspace backends.
        config: Provider of the default connection saving location.
        id_factory: Generates the user id the first time one is needed.
        strict_collections: If True, a malformed stored collection raises
            MalformedCollectionError. By default it is logged and read
            as empty.
    """

    def __init__(
        self,
        controller: StorageController,
        config: SavingLocationProvider,
        *,
        id_factory: Callable[[], str] | None = None,
        strict_collections: bool = False,
    ) -> None:
        self._controller = controller
        self._config = config
        self._id_factory = id_factory or _new_user_id
        self._strict = strict_collections

        self._scope_locks: dict[StorageScope, threading.RLock] = {
            scope: threading.RLock() for scope in StorageScope
        }
        self._user_id_lock = threading.Lock()
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Scope resolution
    # ------------------------------------------------------------------

    def resolve_default_scope(self) -> StorageScope:
        """Scope that new connections default into."""
        location = DefaultSavingLocation.parse(self._config.default_connection_saving_location)
        return location.to_scope()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def store_new_connection(self, record: RecordInput) -> ConnectionRecord:
        """Save a new connection to the configured default scope.

        The record is stamped with the resolved scope, overriding any
        storage_location the caller supplied, valid or not.

        Returns:
            The stored record.
        """
        scope = self.resolve_default_scope()
        if isinstance(record, Mapping):
            record = {k: v for k, v in record.items() if k not in _SCOPE_KEYS}
        stamped = ConnectionRecord.coerce(record).stamped(scope)
        return await self._save_to_scope(stamped, scope)

    def store_new_connection_in_background(self, record: RecordInput) -> asyncio.Task:
        """Schedule store_new_connection without waiting for it.

        Must be called from a running event loop. A failure is logged
        when the task finishes; awaiting the returned task re-raises it.
        """
        task = asyncio.get_running_loop().create_task(self.store_new_connection(record))
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    async def save_connection(self, record: RecordInput) -> ConnectionRecord:
        """Save a connection to the scope it is stamped with.

        Records without a storage_location are treated as new
        connections and go to the default scope.
        """
        record = ConnectionRecord.coerce(record)
        if record.storage_location is None:
            return await self.store_new_connection(record)
        return await self._save_to_scope(record, record.storage_location)

    async def save_connection_to_global_store(self, record: RecordInput) -> ConnectionRecord:
        """Merge *record* into the global collection."""
        return await self._save_to_scope(ConnectionRecord.coerce(record), StorageScope.GLOBAL)

    async def save_connection_to_workspace_store(self, record: RecordInput) -> ConnectionRecord:
        """Merge *record* into the workspace collection."""
        return await self._save_to_scope(ConnectionRecord.coerce(record), StorageScope.WORKSPACE)

    async def remove_connection(
        self,
        connection_id: str,
        scope: StorageScope | None = None,
    ) -> bool:
        """Remove a connection by id.

        Args:
            connection_id: Id of the connection to remove.
            scope: Collection to remove it from (None = both).

        Returns:
            True if an entry was removed from any collection.
        """
        scopes = [StorageScope(scope)] if scope is not None else list(StorageScope)
        removed = False

        for target in scopes:
            variable = StorageVariable.saved_connections_for(target)
            with self._scope_locks[target]:
                collection = self._read_collection(target)
                if connection_id not in collection:
                    continue
                del collection[connection_id]
                self._controller.update(variable, collection, target)

            removed = True
            logger.info(
                "Connection removed",
                connection_id=connection_id,
                scope=target.value,
                remaining=len(collection),
            )
        return removed

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def has_saved_connections(self) -> bool:
        """True if either scope's collection holds at least one entry."""
        has_global = bool(self._read_collection(StorageScope.GLOBAL))
        has_workspace = bool(self._read_collection(StorageScope.WORKSPACE))
        return has_global or has_workspace

    def get_saved_connections(self, scope: StorageScope) -> dict[str, ConnectionRecord]:
        """Parsed view of one scope's collection, keyed by connection id.

        Entries stored without a storage_location are reported with the
        collection's scope.
        """
        scope = StorageScope(scope)
        records: dict[str, ConnectionRecord] = {}

        for connection_id, entry in self._read_collection(scope).items():
            try:
                record = ConnectionRecord.model_validate(entry)
            except ValidationError as exc:
                if self._strict:
                    raise MalformedCollectionError(
                        f"Invalid connection {connection_id!r} in {scope.value} collection: {exc}",
                        scope=scope,
                    ) from exc
                logger.warning(
                    "Skipping invalid connection entry",
                    connection_id=connection_id,
                    scope=scope.value,
                    error=str(exc),
                )
                continue
            records[connection_id] = record.stamped(scope) if record.storage_location is None else record

        return records

    def get_all_saved_connections(self) -> dict[str, ConnectionRecord]:
        """Connections from both scopes; workspace entries win on id collision."""
        merged = self.get_saved_connections(StorageScope.GLOBAL)
        merged.update(self.get_saved_connections(StorageScope.WORKSPACE))
        return merged

    # ------------------------------------------------------------------
    # Identity and first-run state
    # ------------------------------------------------------------------

    def get_user_id(self) -> str:
        """Return the installation's user id, creating it on first call.

        Once stored the id is never regenerated or overwritten, even if
        the stored value is empty.
        """
        with self._user_id_lock:
            existing = self._controller.get(StorageVariable.GLOBAL_USER_ID)
            if existing is not None:
                return str(existing)

            user_id = self._id_factory()
            self._controller.update(StorageVariable.GLOBAL_USER_ID, user_id, StorageScope.GLOBAL)

        logger.info("User id created", user_id=user_id)
        return user_id

    def has_been_shown_initial_view(self) -> bool:
        return bool(self._controller.get(StorageVariable.GLOBAL_HAS_BEEN_SHOWN_INITIAL_VIEW))

    def mark_initial_view_shown(self) -> None:
        self._controller.update(
            StorageVariable.GLOBAL_HAS_BEEN_SHOWN_INITIAL_VIEW, True, StorageScope.GLOBAL
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _save_to_scope(self, record: ConnectionRecord, scope: StorageScope) -> ConnectionRecord:
        """Read-merge-write one record into *scope*'s collection."""
        if record.storage_location is None:
            record = record.stamped(scope)
        elif record.storage_location != scope:
            raise ScopeMismatchError(
                f"Connection {record.id!r} is stamped {record.storage_location.value} "
                f"and cannot be saved to the {scope.value} store",
                scope=scope,
            )

        variable = StorageVariable.saved_connections_for(scope)
        with self._scope_locks[scope]:
            collection = self._read_collection(scope)
            replaced = record.id in collection
            collection[record.id] = record.to_stored()
            self._controller.update(variable, collection, scope)

        logger.info(
            "Connection saved",
            connection_id=record.id,
            scope=scope.value,
            replaced=replaced,
            total=len(collection),
        )
        return record

    def _read_collection(self, scope: StorageScope) -> dict[str, Any]:
        """Read *scope*'s raw collection; missing reads as empty.

        A stored value that is not a mapping is malformed: strict mode
        raises, otherwise it reads as empty. Individual entries that are
        not mappings are dropped the same way.
        """
        raw = self._controller.get(StorageVariable.saved_connections_for(scope), scope)
        if raw is None:
            return {}

        if not isinstance(raw, dict):
            self._malformed(scope, f"expected a mapping, got {type(raw).__name__}")
            return {}

        collection: dict[str, Any] = {}
        for connection_id, entry in raw.items():
            if not isinstance(entry, dict):
                self._malformed(
                    scope,
                    f"entry {connection_id!r} is {type(entry).__name__}, not a mapping",
                )
                continue
            collection[connection_id] = entry
        return collection

    def _malformed(self, scope: StorageScope, reason: str) -> None:
        if self._strict:
            raise MalformedCollectionError(
                f"Malformed {scope.value} connection collection: {reason}",
                scope=scope,
            )
        logger.warning("Malformed connection collection", scope=scope.value, reason=reason)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            logger.warning("Background connection save cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background connection save failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
