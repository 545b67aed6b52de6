# tests/doubles.py
"""Test doubles for the capability protocols.

They implement the protocols structurally (no inheritance) and record every
call, so tests can assert which pipeline stages ran.
"""

from collections.abc import Sequence
from typing import Any

from solvyn.contracts import AIResponse, HistoryItem, PluginOutput, Result, ResultSource


class RecordingEvaluator:
    """Evaluator returning canned values per input; raises for unknown input."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self.values = values or {}
        self.calls: list[str] = []

    def evaluate(self, text: str) -> Any:
        self.calls.append(text)
        if text not in self.values:
            raise ValueError(f"cannot evaluate {text!r}")
        return self.values[text]


class FakeProvider:
    """AIProvider returning a fixed response, or raising a fixed error."""

    name = "fake"

    def __init__(self, response: AIResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or AIResponse(value="42", steps=("thought hard",), confidence=0.9)
        self.error = error
        self.calls: list[str] = []

    async def solve(self, text: str) -> AIResponse:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.response


class PrefixPlugin:
    """Plugin matching inputs with a prefix; echoes the remainder."""

    def __init__(self, name: str, prefix: str, *, is_async: bool = False) -> None:
        self.name = name
        self.prefix = prefix
        self.is_async = is_async
        self.solved: list[str] = []

    def match(self, text: str) -> bool:
        return text.startswith(self.prefix)

    def solve(self, text: str) -> Any:
        self.solved.append(text)
        output = PluginOutput(value=text[len(self.prefix) :].strip(), steps=(f"handled by {self.name}",))
        if self.is_async:

            async def _solve() -> PluginOutput:
                return output

            return _solve()
        return output


class FailingStorage:
    """Storage adapter whose every call raises."""

    def __init__(self, message: str = "disk on fire") -> None:
        self.message = message
        self.calls: list[str] = []

    def save(self, items: Sequence[HistoryItem]) -> None:
        self.calls.append("save")
        raise OSError(self.message)

    def load(self) -> list[Any]:
        self.calls.append("load")
        raise OSError(self.message)

    def clear(self) -> None:
        self.calls.append("clear")
        raise OSError(self.message)


class AsyncMemoryStorage:
    """Async storage adapter holding snapshots in memory."""

    def __init__(self, initial: list[Any] | None = None) -> None:
        self.saved: list[Any] = list(initial or [])
        self.save_count = 0

    async def save(self, items: Sequence[HistoryItem]) -> None:
        self.save_count += 1
        self.saved = list(items)

    async def load(self) -> list[Any]:
        return list(self.saved)

    async def clear(self) -> None:
        self.saved = []


def make_item(item_id: str, value: str = "1", *, input_text: str | None = None, timestamp: int = 1_700_000_000_000) -> HistoryItem:
    """Build a successful local HistoryItem."""
    return HistoryItem(
        id=item_id,
        input=input_text if input_text is not None else f"input {item_id}",
        result=Result.success(value, ResultSource.LOCAL, execution_time_ms=1.5),
        timestamp=timestamp,
    )


