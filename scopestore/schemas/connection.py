"""ConnectionRecord schema — one saved connection in a scoped collection.

Produced by: callers saving connections (UI/command layers, CLI)
Consumed by: ConnectionPersistence, which stores records by id

Persisted form:
- Stored under the scope's saved-connections variable as
  {connection_id: record}, using the camelCase field names
  (storageLocation, connectionOptions).
- connection_options is opaque to this package and stored as-is.
- Unknown fields are retained so a round trip never drops data.
"""

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from scopestore.schemas.enums import StorageScope


class ConnectionRecord(BaseModel):
    """A saved connection.

    Records may arrive partially filled (no name, no storage location);
    the policy layer normalizes them once with coerce() and stamped()
    before anything is written.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1, description="Unique id within its scope's collection")
    name: Optional[str] = Field(default=None, description="Optional display name")
    storage_location: Optional[StorageScope] = Field(
        default=None,
        alias="storageLocation",
        description="Scope of the collection this record is saved in",
    )
    connection_options: dict[str, Any] = Field(
        default_factory=dict,
        alias="connectionOptions",
        description="Opaque connection payload, e.g. a connection string",
    )

    @classmethod
    def coerce(cls, record: "ConnectionRecord | Mapping[str, Any]") -> "ConnectionRecord":
        """Accept a record or a (possibly partial) mapping of record fields."""
        if isinstance(record, ConnectionRecord):
            return record
        if isinstance(record, Mapping):
            return cls.model_validate(dict(record))
        raise TypeError(
            f"Expected ConnectionRecord or mapping, got {type(record).__name__}"
        )

    def stamped(self, scope: StorageScope) -> "ConnectionRecord":
        """Return a copy whose storage_location is *scope*."""
        if self.storage_location == scope:
            return self
        return self.model_copy(update={"storage_location": scope})

    def to_stored(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible mapping kept in a collection.

        Unset name and storageLocation are omitted. Every other field,
        extras included, is kept even when its value is None.
        """
        stored = self.model_dump(mode="json", by_alias=True)
        for key in ("name", "storageLocation"):
            if key in stored and stored[key] is None:
                del stored[key]
        return stored
