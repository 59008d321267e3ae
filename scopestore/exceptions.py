"""scopestore exception hierarchy.

All custom exceptions inherit from ScopeStoreError, allowing callers
to catch broad or specific error categories as needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scopestore.schemas.enums import StorageScope, StorageVariable


class ScopeStoreError(Exception):
    """Base exception for all scopestore errors."""

    def __init__(self, message: str = "", scope: StorageScope | None = None) -> None:
        self.scope = scope
        super().__init__(message)


class BackendUnavailableError(ScopeStoreError):
    """Raised when a backing key/value store read or write fails.

    Examples: unreadable state file, permission denied, value that
    cannot be serialized.
    """

    def __init__(
        self,
        message: str = "",
        scope: StorageScope | None = None,
        variable: StorageVariable | None = None,
    ) -> None:
        self.variable = variable
        super().__init__(message, scope)


class MalformedCollectionError(ScopeStoreError):
    """Raised in strict mode when a stored connection collection is not
    a mapping of connection id to connection record.
    """


class ScopeMismatchError(ScopeStoreError):
    """Raised when a variable or record is used under the wrong scope.

    This is a programming error; it is raised before any backend call.
    """


class ConfigurationError(ScopeStoreError):
    """Raised when a configuration value cannot be interpreted.

    Examples: unknown default saving location, malformed YAML section.
    """
