# src/solvyn/core/history/storage/memory.py
"""In-process storage adapter."""

from collections.abc import Sequence

from solvyn.contracts.history import HistoryItem


class MemoryStorage:
    """Keeps the last saved snapshot in memory.

    Default adapter. Useful for tests and for sharing one history across
    several engines in the same process.
    """

    def __init__(self, items: Sequence[HistoryItem] = ()) -> None:
        self._items: list[HistoryItem] = list(items)

    def save(self, items: Sequence[HistoryItem]) -> None:
        self._items = list(items)

    def load(self) -> list[HistoryItem]:
        return list(self._items)

    def clear(self) -> None:
        self._items = []
