"""Connection saving configuration.

The policy layer only needs one read-only value, the default
connection saving location. It receives it through any object with a
``default_connection_saving_location`` attribute: ScopeStoreSettings,
ConnectionSavingConfig loaded from YAML, or a test double.

YAML layout::

    connectionSaving:
      defaultConnectionSavingLocation: Workspace
"""

from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from scopestore.exceptions import ConfigurationError
from scopestore.schemas.enums import DefaultSavingLocation


class SavingLocationProvider(Protocol):
    """Read-only source of the default connection saving location."""

    @property
    def default_connection_saving_location(self) -> DefaultSavingLocation:
        ...


class ConnectionSavingConfig(BaseModel):
    """The ``connectionSaving`` configuration section."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    default_connection_saving_location: DefaultSavingLocation = Field(
        default=DefaultSavingLocation.GLOBAL,
        alias="defaultConnectionSavingLocation",
        description="Scope new connections are saved to when none is chosen",
    )

    @field_validator("default_connection_saving_location", mode="before")
    @classmethod
    def parse_location(cls, v: Any) -> DefaultSavingLocation:
        return DefaultSavingLocation.parse(v)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ConnectionSavingConfig":
        """Load the ``connectionSaving`` section from a YAML file.

        A missing section yields the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the section is not a mapping or holds
                an unknown saving location.
        """
        path = Path(path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")
        section = raw.get("connectionSaving") or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'connectionSaving' in {path} must be a mapping")

        return cls.model_validate(section)
