"""Result types produced by the resolution pipeline and its capabilities.

Result is the sole output of a resolution attempt. Frozen after
construction; one Result per solve() call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from solvyn.contracts.enums import ResultSource, ResultStatus
from solvyn.contracts.errors import ErrorInfo


@dataclass(frozen=True, slots=True)
class PluginOutput:
    """What a plugin's solve() returns."""

    value: str
    steps: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AIResponse:
    """What an AI provider's solve() returns."""

    value: str
    steps: tuple[str, ...] = ()
    confidence: float | None = None


@dataclass(frozen=True, slots=True)
class Result:
    """Outcome of one resolution attempt.

    Use the factory methods rather than the constructor so that each status
    carries the fields it needs:

        Result.success("30", ResultSource.LOCAL, execution_time_ms=0.4)
        Result.failure(ErrorInfo(...), execution_time_ms=0.1)
        Result.fallback(execution_time_ms=0.2)

    Attributes:
        status: Terminal or transient status
        value: Formatted value (success only)
        steps: Optional step trace from a plugin or provider
        source: Stage that produced the value
        confidence: Provider-reported confidence, if any
        execution_time_ms: Wall-clock duration from pipeline entry to construction
        error: Error details (error status only)
    """

    status: ResultStatus
    execution_time_ms: float = 0.0
    value: str | None = None
    steps: tuple[str, ...] = field(default_factory=tuple)
    source: ResultSource | None = None
    confidence: float | None = None
    error: ErrorInfo | None = None

    @classmethod
    def success(
        cls,
        value: str,
        source: ResultSource,
        *,
        execution_time_ms: float,
        steps: tuple[str, ...] = (),
        confidence: float | None = None,
    ) -> Result:
        return cls(
            status=ResultStatus.SUCCESS,
            value=value,
            source=source,
            steps=tuple(steps),
            confidence=confidence,
            execution_time_ms=execution_time_ms,
        )

    @classmethod
    def failure(cls, error: ErrorInfo, *, execution_time_ms: float) -> Result:
        return cls(status=ResultStatus.ERROR, error=error, execution_time_ms=execution_time_ms)

    @classmethod
    def fallback(cls, *, execution_time_ms: float) -> Result:
        return cls(status=ResultStatus.FALLBACK, execution_time_ms=execution_time_ms)

    @property
    def is_success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the snapshot shape (camelCase executionTime)."""
        data: dict[str, Any] = {"status": self.status.value}
        if self.value is not None:
            data["value"] = self.value
        if self.steps:
            data["steps"] = list(self.steps)
        if self.source is not None:
            data["source"] = self.source.value
        if self.confidence is not None:
            data["confidence"] = self.confidence
        data["executionTime"] = self.execution_time_ms
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data
