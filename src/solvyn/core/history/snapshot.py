# src/solvyn/core/history/snapshot.py
"""Snapshot serialization for the history log.

The snapshot is a JSON array of history items. It is shared by export/import
and by the adapters that persist text (key-value files, remote endpoints).

Validation happens at this boundary: anything that does not deserialize to
an ordered list of well-formed, terminal, uniquely-identified items is
rejected with SnapshotFormatError. Callers rely on that to leave existing
state untouched on bad input.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from solvyn.contracts.enums import ResultSource, ResultStatus
from solvyn.contracts.errors import ErrorInfo, SnapshotFormatError
from solvyn.contracts.history import HistoryItem
from solvyn.contracts.results import Result


class _ErrorRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    code: str
    message: str
    suggestion: str | None = None


class _ResultRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    status: ResultStatus
    value: str | None = None
    steps: list[str] = Field(default_factory=list)
    source: ResultSource | None = None
    confidence: float | None = None
    execution_time_ms: float = Field(
        default=0.0,
        ge=0.0,
        validation_alias=AliasChoices("executionTime", "execution_time_ms"),
    )
    error: _ErrorRecord | None = None

    @field_validator("status")
    @classmethod
    def reject_transient_status(cls, v: ResultStatus) -> ResultStatus:
        if not v.is_terminal:
            raise ValueError(f"transient status '{v.value}' cannot appear in history")
        return v

    @field_validator("value", mode="before")
    @classmethod
    def coerce_numeric_value(cls, v: Any) -> Any:
        # Older exports may carry bare numbers; bools are not values
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v


class _HistoryItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    input: str
    result: _ResultRecord
    timestamp: int = Field(ge=0)

    def to_item(self) -> HistoryItem:
        r = self.result
        error = ErrorInfo(code=r.error.code, message=r.error.message, suggestion=r.error.suggestion) if r.error else None
        return HistoryItem(
            id=self.id,
            input=self.input,
            timestamp=self.timestamp,
            result=Result(
                status=r.status,
                value=r.value,
                steps=tuple(r.steps),
                source=r.source,
                confidence=r.confidence,
                execution_time_ms=r.execution_time_ms,
                error=error,
            ),
        )


_SNAPSHOT_ADAPTER = TypeAdapter(list[_HistoryItemRecord])


def coerce_items(raw: Iterable[Any]) -> list[HistoryItem]:
    """Validate a sequence of HistoryItems and/or snapshot dicts.

    HistoryItem instances pass through; dicts are validated. The result must
    have unique ids.

    Raises:
        SnapshotFormatError: If any element is malformed or ids repeat
    """
    if isinstance(raw, str | bytes | dict) or not isinstance(raw, Iterable):
        raise SnapshotFormatError(f"Snapshot must be a list of history items, got {type(raw).__name__}")

    elements = list(raw)
    if all(isinstance(el, HistoryItem) for el in elements):
        items: list[HistoryItem] = elements
    else:
        as_dicts = [el.to_dict() if isinstance(el, HistoryItem) else el for el in elements]
        try:
            records = _SNAPSHOT_ADAPTER.validate_python(as_dicts)
        except ValidationError as e:
            raise SnapshotFormatError(f"Malformed history snapshot: {e.error_count()} validation error(s)") from e
        items = [record.to_item() for record in records]

    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise SnapshotFormatError(f"Duplicate history item id in snapshot: {item.id!r}")
        seen.add(item.id)
    return items


def parse_snapshot(text: str | bytes) -> list[HistoryItem]:
    """Parse exported snapshot text into history items.

    Raises:
        SnapshotFormatError: If the text is not JSON or not a valid item list
    """
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(parsed, list):
        raise SnapshotFormatError(f"Snapshot must be a JSON array, got {type(parsed).__name__}")
    return coerce_items(parsed)


def items_to_jsonable(items: Sequence[HistoryItem]) -> list[dict[str, Any]]:
    return [item.to_dict() for item in items]


def render_snapshot(items: Sequence[HistoryItem]) -> str:
    """Render items as indented, human-readable JSON."""
    return json.dumps(items_to_jsonable(items), indent=2, ensure_ascii=False)
