"""Centralized environment-based settings for scopestore.

Reads configuration from environment variables with sensible defaults.

Usage:
    from scopestore.config.settings import get_settings
    settings = get_settings()
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from scopestore.schemas.enums import DefaultSavingLocation


@dataclass(frozen=True)
class ScopeStoreSettings:
    """Immutable application settings loaded from environment."""

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Storage
    global_dir: Path = Path("~/.scopestore")
    workspace_dir: Path = Path(".scopestore")

    # Connection saving
    default_connection_saving_location: DefaultSavingLocation = DefaultSavingLocation.GLOBAL
    strict_collections: bool = False

    # Optional YAML file with a connectionSaving section
    config_path: Optional[Path] = None

    @property
    def global_state_path(self) -> Path:
        return self.global_dir.expanduser() / "global_state.json"

    @property
    def workspace_state_path(self) -> Path:
        return self.workspace_dir.expanduser() / "workspace_state.json"


def get_settings() -> ScopeStoreSettings:
    """Load settings from environment variables.

    Environment variables (all optional):
        SCOPESTORE_LOG_LEVEL: Logging level (default: INFO)
        SCOPESTORE_JSON_LOGS: Render logs as JSON (default: true)
        SCOPESTORE_GLOBAL_DIR: Directory of the global store (default: ~/.scopestore)
        SCOPESTORE_WORKSPACE_DIR: Directory of the workspace store (default: .scopestore)
        SCOPESTORE_DEFAULT_SAVING_LOCATION: Global or Workspace (default: Global)
        SCOPESTORE_STRICT_COLLECTIONS: Fail on malformed collections (default: false)
        SCOPESTORE_CONFIG: YAML file overriding the connectionSaving section

    Raises:
        ConfigurationError: If SCOPESTORE_DEFAULT_SAVING_LOCATION is unknown.
    """
    def _bool(key: str, default: bool = False) -> bool:
        val = os.environ.get(key, "").lower()
        if val in ("1", "true", "yes"):
            return True
        if val in ("0", "false", "no"):
            return False
        return default

    config_path = os.environ.get("SCOPESTORE_CONFIG", "")

    return ScopeStoreSettings(
        log_level=os.environ.get("SCOPESTORE_LOG_LEVEL", "INFO").upper(),
        json_logs=_bool("SCOPESTORE_JSON_LOGS", True),
        global_dir=Path(os.environ.get("SCOPESTORE_GLOBAL_DIR", "~/.scopestore")),
        workspace_dir=Path(os.environ.get("SCOPESTORE_WORKSPACE_DIR", ".scopestore")),
        default_connection_saving_location=DefaultSavingLocation.parse(
            os.environ.get("SCOPESTORE_DEFAULT_SAVING_LOCATION", "Global")
        ),
        strict_collections=_bool("SCOPESTORE_STRICT_COLLECTIONS", False),
        config_path=Path(config_path) if config_path else None,
    )
