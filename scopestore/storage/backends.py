"""Key/value backends — the per-scope blob stores behind StorageController.

A backend only knows string keys and JSON-compatible values. It never
merges: every write replaces the value for its key. Failures (OSError,
serialization errors, a corrupt state file) propagate to the caller;
StorageController turns them into BackendUnavailableError.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()


@runtime_checkable
class KeyValueStore(Protocol):
    """Contract for one scope's backing store."""

    def read(self, key: str) -> Any | None:
        ...

    def write(self, key: str, value: Any) -> None:
        ...


def _copy_json(value: Any) -> Any:
    """Deep-copy through a JSON round trip, failing on non-JSON values."""
    return json.loads(json.dumps(value))


class MemoryStore:
    """In-process store, one dict per instance.

    Values are copied on write and on read, so a caller mutating a
    returned value never changes what is stored.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._lock = threading.RLock()
        self._data: dict[str, Any] = _copy_json(initial) if initial else {}

    def read(self, key: str) -> Any | None:
        with self._lock:
            if key not in self._data:
                return None
            return _copy_json(self._data[key])

    def write(self, key: str, value: Any) -> None:
        copied = _copy_json(value)
        with self._lock:
            self._data[key] = copied

    def snapshot(self) -> dict[str, Any]:
        """Copy of every stored key."""
        with self._lock:
            return _copy_json(self._data)


class JsonFileStore:
    """Store persisted as a single JSON object file.

    The file is read lazily on first access and cached. Each write
    rewrites the whole file through a temporary file in the same
    directory followed by os.replace, so a crash never leaves a
    half-written state file behind.
    """

    def __init__(self, path: Path | str) -> None:
        self._lock = threading.RLock()
        self._path = Path(path).expanduser()
        self._data: dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # KeyValueStore
    # ------------------------------------------------------------------

    def read(self, key: str) -> Any | None:
        with self._lock:
            data = self._load()
            if key not in data:
                return None
            return _copy_json(data[key])

    def write(self, key: str, value: Any) -> None:
        with self._lock:
            data = dict(self._load())
            data[key] = _copy_json(value)
            self._flush(data)
            self._data = data

    def snapshot(self) -> dict[str, Any]:
        """Copy of every stored key."""
        with self._lock:
            return _copy_json(self._load())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        if not self._path.exists():
            self._data = {}
            return self._data

        with open(self._path, encoding="utf-8") as f:
            text = f.read()
        data = json.loads(text) if text.strip() else {}
        if not isinstance(data, dict):
            raise ValueError(
                f"State file {self._path} must contain a JSON object, "
                f"got {type(data).__name__}"
            )
        logger.debug("State file loaded", path=str(self._path), keys=len(data))
        self._data = data
        return self._data

    def _flush(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("State file written", path=str(self._path), keys=len(data))
