# src/solvyn/core/history/__init__.py
"""History subsystem: bounded log, snapshot format, storage adapters."""

from solvyn.core.history.manager import DEFAULT_MAX_ITEMS, HistoryManager, StorageErrorCallback
from solvyn.core.history.snapshot import coerce_items, parse_snapshot, render_snapshot
from solvyn.core.history.storage import (
    DatabaseStorage,
    KeyValueFileStorage,
    MemoryStorage,
    RemoteStorage,
    create_storage_adapter,
)

__all__ = [
    "DEFAULT_MAX_ITEMS",
    "DatabaseStorage",
    "HistoryManager",
    "KeyValueFileStorage",
    "MemoryStorage",
    "RemoteStorage",
    "StorageErrorCallback",
    "coerce_items",
    "create_storage_adapter",
    "parse_snapshot",
    "render_snapshot",
]
