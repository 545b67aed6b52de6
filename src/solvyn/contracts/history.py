"""History item contract shared by the engine, history manager, and adapters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from solvyn.contracts.results import Result


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """One completed resolution.

    Created exactly once per terminal result and never mutated.

    Attributes:
        id: Unique identifier (uuid4 hex string when created by the engine)
        input: Raw caller input, before sanitization
        result: The terminal Result
        timestamp: Milliseconds since the Unix epoch
    """

    id: str
    input: str
    result: Result
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "input": self.input,
            "result": self.result.to_dict(),
            "timestamp": self.timestamp,
        }
