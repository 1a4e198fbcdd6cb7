"""Persisted activity state for maptrack.

Activities are kept as one JSON string under a fixed key in a string-keyed
blob store. Restored entries are plain field-bags (``ActivitySnapshot``).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from maptrack.errors import CorruptStateError
from maptrack.models.activity import ActivitySnapshot, activity_from_dict

if TYPE_CHECKING:
    from maptrack.models.store import StoredActivity

logger = logging.getLogger("maptrack.state")

DEFAULT_STORAGE_KEY = "workouts"


class BlobStore(Protocol):
    """Opaque string-keyed blob storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryBlobStore:
    """Blob store kept in a dictionary."""

    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FileBlobStore:
    """Blob store with one UTF-8 file per key.

    Writes go to a temporary file in the same directory which then replaces
    the previous blob, so a reader never sees a half-written value.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class PersistenceGateway:
    """Save and restore the activity collection under a fixed key."""

    def __init__(self, blobs: BlobStore, key: str = DEFAULT_STORAGE_KEY) -> None:
        self.blobs = blobs
        self.key = key

    def save(self, activities: Iterable[StoredActivity]) -> None:
        """Serialize all activities and overwrite the stored blob.

        Args:
            activities: Activities in creation order.

        Raises:
            ValueError: If a value has no JSON form (NaN or infinity), since
                such a blob could not be restored.
        """
        payload = [activity.to_dict() for activity in activities]
        self.blobs.set_item(self.key, json.dumps(payload, allow_nan=False))
        logger.debug("Saved %d activities under %r", len(payload), self.key)

    def restore(self) -> list[ActivitySnapshot]:
        """Load activities from the stored blob.

        Returns:
            Restored field-bags in creation order, or an empty list if
            nothing is stored.

        Raises:
            CorruptStateError: If the blob cannot be parsed into field-bags.
        """
        blob = self.blobs.get_item(self.key)
        if blob is None:
            return []

        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            raise CorruptStateError(f"Stored activities under {self.key!r} are not JSON: {e}") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise CorruptStateError(
                f"Stored activities under {self.key!r} must be a list, got {type(data).__name__}"
            )

        snapshots: list[ActivitySnapshot] = []
        seen: set[str] = set()
        for index, entry in enumerate(data):
            try:
                snapshot = activity_from_dict(entry)
            except ValueError as e:
                raise CorruptStateError(f"Entry {index} under {self.key!r}: {e}") from e
            if snapshot.id in seen:
                raise CorruptStateError(f"Entry {index} under {self.key!r} repeats id {snapshot.id}")
            seen.add(snapshot.id)
            snapshots.append(snapshot)

        logger.debug("Restored %d activities from %r", len(snapshots), self.key)
        return snapshots

    def clear(self) -> None:
        """Remove the stored blob."""
        self.blobs.remove_item(self.key)
        logger.info("Cleared stored activities under %r", self.key)
