# src/solvyn/core/history/manager.py
"""Bounded, persisted log of completed resolutions.

The in-memory log is the source of truth for the session. The storage
adapter is a best-effort durability sink written after every mutation and
read once at startup. Adapter failures are logged, reported to the optional
diagnostic callback, and otherwise swallowed: they never corrupt the
in-memory log and never fail the caller.

Concurrency:
    Mutations (add, clear, import) run under one asyncio.Lock, so the FIFO
    bound and ordering hold under interleaved callers. The order in which
    add() calls acquire the lock defines log order. get() never awaits and
    always sees a fully applied mutation.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Sequence
from typing import Any

import structlog

from solvyn.contracts.errors import SnapshotFormatError
from solvyn.contracts.history import HistoryItem
from solvyn.contracts.protocols import StorageAdapter
from solvyn.core.history.snapshot import coerce_items, parse_snapshot, render_snapshot
from solvyn.core.history.storage.memory import MemoryStorage

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ITEMS = 100

# Called with (operation, exception) when an adapter call fails.
StorageErrorCallback = Callable[[str, Exception], None]


class HistoryManager:
    """FIFO-bounded history log backed by a pluggable storage adapter.

    Example:
        manager = HistoryManager(KeyValueFileStorage(Path(".solvyn")), max_items=50)
        await manager.wait_loaded()
        await manager.add(item)
        snapshot = manager.export()
    """

    def __init__(
        self,
        adapter: StorageAdapter | None = None,
        max_items: int = DEFAULT_MAX_ITEMS,
        *,
        on_storage_error: StorageErrorCallback | None = None,
    ) -> None:
        """Initialize the manager and schedule the initial load.

        When an event loop is running the load starts immediately as a task;
        otherwise it starts on the first wait_loaded()/add()/clear()/
        import_snapshot(). get() returns [] until the load completes.

        Args:
            adapter: Storage adapter (defaults to MemoryStorage)
            max_items: FIFO bound on the log
            on_storage_error: Diagnostic callback for adapter failures
        """
        if max_items <= 0:
            raise ValueError(f"max_items must be positive, got {max_items}")
        self._adapter: StorageAdapter = adapter if adapter is not None else MemoryStorage()
        self._max_items = max_items
        self._on_storage_error = on_storage_error
        self._items: list[HistoryItem] = []
        self._lock = asyncio.Lock()
        self._load_task: asyncio.Task[None] | None = None
        self._loaded = False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._load_task = loop.create_task(self._initial_load())

    @property
    def adapter(self) -> StorageAdapter:
        return self._adapter

    @property
    def max_items(self) -> int:
        return self._max_items

    @property
    def loaded(self) -> bool:
        """Whether the initial adapter load has completed."""
        return self._loaded

    def __len__(self) -> int:
        return len(self._items)

    # === Initialization ===

    async def wait_loaded(self) -> None:
        """Wait for the initial adapter load, starting it if needed."""
        if self._loaded:
            return
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._initial_load())
        await asyncio.shield(self._load_task)

    async def _initial_load(self) -> None:
        raw = await self._call_adapter("load")
        try:
            if raw:
                loaded = coerce_items(raw)
                # Mutations wait for this load, so nothing can precede loaded items
                self._items = self._bounded([*loaded, *self._items])
                logger.debug("history_loaded", count=len(self._items))
        except SnapshotFormatError as e:
            logger.warning("history_load_rejected", error=str(e))
            self._report("load", e)
        finally:
            self._loaded = True

    # === Public operations ===

    async def add(self, item: HistoryItem) -> None:
        """Append an item, apply the FIFO bound, persist the full log."""
        await self.wait_loaded()
        async with self._lock:
            self._items = self._bounded([*self._items, item])
            snapshot = list(self._items)
            await self._call_adapter("save", snapshot)

    def get(self) -> list[HistoryItem]:
        """Return a copy of the ordered log (oldest first).

        Items are frozen, and the list is new on every call, so callers cannot
        mutate the manager's state through the return value.
        """
        return list(self._items)

    async def clear(self) -> None:
        """Empty the log and instruct the adapter to clear persisted state."""
        await self.wait_loaded()
        async with self._lock:
            self._items = []
            await self._call_adapter("clear")

    def export(self) -> str:
        """Serialize the full log as indented JSON."""
        return render_snapshot(self._items)

    async def import_snapshot(self, snapshot: str | bytes | Sequence[Any]) -> int:
        """Replace the log with a snapshot's contents, bound it, and persist.

        Accepts exported text or an already-decoded list of items/dicts.
        Validation happens before any state changes.

        Returns:
            Number of items in the log after the bound is applied

        Raises:
            SnapshotFormatError: If the snapshot is malformed; the existing log
                is left unchanged
        """
        if isinstance(snapshot, str | bytes):
            items = parse_snapshot(snapshot)
        else:
            items = coerce_items(snapshot)

        await self.wait_loaded()
        async with self._lock:
            self._items = self._bounded(items)
            snapshot_items = list(self._items)
            await self._call_adapter("save", snapshot_items)
        logger.info("history_imported", count=len(snapshot_items))
        return len(snapshot_items)

    # === Internals ===

    def _bounded(self, items: list[HistoryItem]) -> list[HistoryItem]:
        """Keep the newest max_items items (FIFO eviction)."""
        if len(items) > self._max_items:
            return items[len(items) - self._max_items :]
        return items

    async def _call_adapter(self, operation: str, *args: Any) -> Any:
        """Invoke an adapter method, awaiting it if needed; swallow failures.

        Returns None when the call fails.
        """
        try:
            outcome = getattr(self._adapter, operation)(*args)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return outcome
        except Exception as e:
            logger.warning(
                "history_storage_failed",
                operation=operation,
                adapter=type(self._adapter).__name__,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._report(operation, e)
            return None

    def _report(self, operation: str, exc: Exception) -> None:
        if self._on_storage_error is None:
            return
        try:
            self._on_storage_error(operation, exc)
        except Exception as callback_exc:
            logger.warning("history_storage_callback_failed", operation=operation, error=str(callback_exc))
