"""Shared enumerations for scopestore schemas.

All enums used across scopestore are defined here to ensure
consistency and avoid circular imports.
"""

from enum import Enum

from scopestore.exceptions import ConfigurationError


class StorageScope(str, Enum):
    """Persistence domain with its own independent backing store."""
    GLOBAL = "GLOBAL"
    WORKSPACE = "WORKSPACE"


class StorageVariable(str, Enum):
    """Storage Variable Registry — the fixed set of logical record slots.

    Each variable is bound to exactly one scope family. The saved
    connection collections exist once per family as distinct members.
    """
    GLOBAL_USER_ID = "GLOBAL_USER_ID"
    GLOBAL_SAVED_CONNECTIONS = "GLOBAL_SAVED_CONNECTIONS"
    WORKSPACE_SAVED_CONNECTIONS = "WORKSPACE_SAVED_CONNECTIONS"
    GLOBAL_HAS_BEEN_SHOWN_INITIAL_VIEW = "GLOBAL_HAS_BEEN_SHOWN_INITIAL_VIEW"

    @property
    def scope(self) -> StorageScope:
        """Scope family this variable is read from and written to."""
        return _VARIABLE_SCOPES[self]

    @classmethod
    def saved_connections_for(cls, scope: StorageScope) -> "StorageVariable":
        """Connection collection variable for *scope*."""
        if scope == StorageScope.WORKSPACE:
            return cls.WORKSPACE_SAVED_CONNECTIONS
        return cls.GLOBAL_SAVED_CONNECTIONS


_VARIABLE_SCOPES: dict[StorageVariable, StorageScope] = {
    StorageVariable.GLOBAL_USER_ID: StorageScope.GLOBAL,
    StorageVariable.GLOBAL_SAVED_CONNECTIONS: StorageScope.GLOBAL,
    StorageVariable.WORKSPACE_SAVED_CONNECTIONS: StorageScope.WORKSPACE,
    StorageVariable.GLOBAL_HAS_BEEN_SHOWN_INITIAL_VIEW: StorageScope.GLOBAL,
}


class DefaultSavingLocation(str, Enum):
    """Configured scope for new connections saved without an explicit one."""
    GLOBAL = "Global"
    WORKSPACE = "Workspace"

    def to_scope(self) -> StorageScope:
        if self is DefaultSavingLocation.WORKSPACE:
            return StorageScope.WORKSPACE
        return StorageScope.GLOBAL

    @classmethod
    def parse(cls, value: "str | DefaultSavingLocation") -> "DefaultSavingLocation":
        """Parse a configured value case-insensitively.

        Raises:
            ConfigurationError: If the value names no known location.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ConfigurationError(
            f"Unknown default connection saving location: {value!r} "
            f"(expected one of {[m.value for m in cls]})"
        )
