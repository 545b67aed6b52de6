# src/solvyn/core/history/storage/key_value.py
"""Key-value storage adapter backed by JSON documents on disk.

Each key maps to one file, `<directory>/<key>.json`, holding the full
snapshot. Writes go to a temporary sibling first and are moved into place
with os.replace(), so a crash mid-write leaves the previous snapshot intact.
"""

import json
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from solvyn.contracts.errors import StorageError
from solvyn.contracts.history import HistoryItem
from solvyn.core.history.snapshot import render_snapshot


class KeyValueFileStorage:
    """Filesystem key-value store holding one snapshot per key.

    Structure: directory/solvyn_history.json
    """

    def __init__(self, directory: Path, key: str = "solvyn_history") -> None:
        """Initialize the store.

        Args:
            directory: Directory for snapshot documents (created on first save)
            key: Document key; becomes the file stem
        """
        self.directory = directory
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def save(self, items: Sequence[HistoryItem]) -> None:
        payload = render_snapshot(items)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.key}.", suffix=".tmp", dir=self.directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write history snapshot to {self.path}: {e}") from e

    def load(self) -> list[Any]:
        """Return the raw snapshot elements; the history manager validates them."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read history snapshot from {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"History snapshot at {self.path} is not a JSON array")
        return data

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove history snapshot {self.path}: {e}") from e
