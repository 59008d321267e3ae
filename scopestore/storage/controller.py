"""StorageController — one get/update surface over the two scoped backends.

Every StorageVariable belongs to exactly one scope family; the
controller dispatches each call to that family's backend. It is
structurally transparent: values go in and come out untouched, and
merging is left entirely to callers such as ConnectionPersistence.
"""

from __future__ import annotations

from typing import Any

import structlog

from scopestore.exceptions import BackendUnavailableError, ScopeMismatchError
from scopestore.schemas.enums import StorageScope, StorageVariable
from scopestore.storage.backends import KeyValueStore

logger = structlog.get_logger()


class StorageController:
    """Dispatches get/update for StorageVariables to the right backend.

    Both backends are owned by the host and injected here; the
    controller keeps no other state.
    """

    def __init__(self, global_store: KeyValueStore, workspace_store: KeyValueStore) -> None:
        self._stores: dict[StorageScope, KeyValueStore] = {
            StorageScope.GLOBAL: global_store,
            StorageScope.WORKSPACE: workspace_store,
        }

    def store_for(self, scope: StorageScope) -> KeyValueStore:
        """Backend holding values for *scope*."""
        return self._stores[StorageScope(scope)]

    def get(self, variable: StorageVariable, scope: StorageScope | None = None) -> Any | None:
        """Return the stored value for *variable*, or None if never written.

        Args:
            variable: Storage variable to read.
            scope: Scope to read from. Defaults to the variable's own
                scope family (GLOBAL for every global variable).

        Raises:
            ScopeMismatchError: If *scope* is not the variable's family.
            BackendUnavailableError: If the backend read fails.
        """
        variable = StorageVariable(variable)
        resolved = self._resolve(variable, scope)
        try:
            value = self._stores[resolved].read(variable.value)
        except (OSError, TypeError, ValueError) as exc:
            raise BackendUnavailableError(
                message=f"Failed to read {variable.value} from {resolved.value} store: {exc}",
                scope=resolved,
                variable=variable,
            ) from exc

        logger.debug(
            "Storage variable read",
            variable=variable.value,
            scope=resolved.value,
            found=value is not None,
        )
        return value

    def update(
        self,
        variable: StorageVariable,
        value: Any,
        scope: StorageScope | None = None,
    ) -> None:
        """Replace the stored value for *variable* with *value*.

        Raises:
            ScopeMismatchError: If *scope* is not the variable's family.
            BackendUnavailableError: If the backend write fails.
        """
        variable = StorageVariable(variable)
        resolved = self._resolve(variable, scope)
        try:
            self._stores[resolved].write(variable.value, value)
        except (OSError, TypeError, ValueError) as exc:
            raise BackendUnavailableError(
                message=f"Failed to write {variable.value} to {resolved.value} store: {exc}",
                scope=resolved,
                variable=variable,
            ) from exc

        logger.debug("Storage variable written", variable=variable.value, scope=resolved.value)

    @staticmethod
    def _resolve(variable: StorageVariable, scope: StorageScope | None) -> StorageScope:
        if scope is None:
            return variable.scope
        scope = StorageScope(scope)
        if scope != variable.scope:
            raise ScopeMismatchError(
                f"{variable.value} is a {variable.scope.value} variable and "
                f"cannot be used with the {scope.value} store",
                scope=scope,
            )
        return scope
