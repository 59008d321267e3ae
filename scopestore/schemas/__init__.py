"""scopestore schemas — typed records and the storage variable registry."""

from scopestore.schemas.connection import ConnectionRecord
from scopestore.schemas.enums import (
    DefaultSavingLocation,
    StorageScope,
    StorageVariable,
)

__all__ = [
    "ConnectionRecord",
    "DefaultSavingLocation",
    "StorageScope",
    "StorageVariable",
]
