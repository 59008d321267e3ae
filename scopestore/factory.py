"""Factory — wires backends, StorageController and ConnectionPersistence.

The host owns both backends; this module builds file-backed ones from
ScopeStoreSettings and resolves where the default saving location comes
from:

  SCOPESTORE_CONFIG (YAML connectionSaving section), if set
  otherwise SCOPESTORE_DEFAULT_SAVING_LOCATION
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from scopestore.config.saving import ConnectionSavingConfig, SavingLocationProvider
from scopestore.config.settings import ScopeStoreSettings, get_settings
from scopestore.storage.backends import JsonFileStore, KeyValueStore
from scopestore.storage.connections import ConnectionPersistence
from scopestore.storage.controller import StorageController

logger = structlog.get_logger()


def resolve_saving_config(settings: ScopeStoreSettings) -> SavingLocationProvider:
    """Pick the provider of the default connection saving location."""
    if settings.config_path is not None:
        config = ConnectionSavingConfig.from_yaml(settings.config_path)
        logger.debug(
            "Saving location loaded from YAML",
            path=str(settings.config_path),
            location=config.default_connection_saving_location.value,
        )
        return config
    return settings


def build_persistence(
    settings: ScopeStoreSettings | None = None,
    *,
    global_store: KeyValueStore | None = None,
    workspace_store: KeyValueStore | None = None,
    id_factory: Callable[[], str] | None = None,
) -> tuple[StorageController, ConnectionPersistence]:
    """Build the storage facade and the connection policy.

    Parameters
    ----------
    settings:
        Settings to build from. Loaded from the environment if None.
    global_store, workspace_store:
        Backends to use instead of the JSON state files under
        settings.global_dir and settings.workspace_dir.
    id_factory:
        Override for user id generation.

    Returns
    -------
    tuple[StorageController, ConnectionPersistence]
    """
    settings = settings or get_settings()

    if global_store is None:
        global_store = JsonFileStore(settings.global_state_path)
    if workspace_store is None:
        workspace_store = JsonFileStore(settings.workspace_state_path)

    controller = StorageController(global_store, workspace_store)
    persistence = ConnectionPersistence(
        controller,
        resolve_saving_config(settings),
        id_factory=id_factory,
        strict_collections=settings.strict_collections,
    )
    logger.debug(
        "Persistence built",
        global_store=type(global_store).__name__,
        workspace_store=type(workspace_store).__name__,
        strict_collections=settings.strict_collections,
    )
    return controller, persistence
