"""Capability protocols the engine consumes.

These are structural contracts: anything with the right attributes
satisfies them, no inheritance required. The engine awaits any return
value that is awaitable, so sync and async implementations are both valid
where noted.
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from solvyn.contracts.history import HistoryItem
    from solvyn.contracts.results import AIResponse, PluginOutput


@runtime_checkable
class Evaluator(Protocol):
    """Deterministic local computation.

    evaluate() returns a raw value on success. Raising, returning None, or
    returning a callable are all treated by the engine as a miss.
    May return an awaitable.
    """

    def evaluate(self, text: str) -> Any: ...


@runtime_checkable
class AIProvider(Protocol):
    """External reasoning provider. Called at most once per resolution."""

    name: str

    async def solve(self, text: str) -> AIResponse: ...


@runtime_checkable
class Plugin(Protocol):
    """Narrow, high-confidence domain solver.

    A match bypasses local evaluation and escalation entirely. solve() may
    return a PluginOutput or an awaitable of one.
    """

    name: str

    def match(self, text: str) -> bool: ...

    def solve(self, text: str) -> PluginOutput | Awaitable[PluginOutput]: ...


@runtime_checkable
class StorageAdapter(Protocol):
    """Durability sink for the history log.

    Every call receives or returns a full snapshot; adapters never see
    incremental diffs. Each method may be sync or return an awaitable.
    """

    def save(self, items: Sequence[HistoryItem]) -> None | Awaitable[None]: ...

    def load(self) -> Sequence[Any] | Awaitable[Sequence[Any]]: ...

    def clear(self) -> None | Awaitable[None]: ...
