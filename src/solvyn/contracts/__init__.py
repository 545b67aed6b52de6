"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings classes are NOT re-exported here - import them from
solvyn.core.config.
"""

from solvyn.contracts.enums import (
    EngineEvent,
    ErrorCode,
    EscalationPolicy,
    ProviderKind,
    ResolutionMode,
    ResultSource,
    ResultStatus,
    StorageKind,
)
from solvyn.contracts.errors import (
    ErrorInfo,
    InputTooLongError,
    SnapshotFormatError,
    SolvynError,
    StorageError,
    UnsupportedInputError,
)
from solvyn.contracts.events import FallbackNeeded, ResolutionFinished, ResolutionStarted
from solvyn.contracts.history import HistoryItem
from solvyn.contracts.protocols import AIProvider, Evaluator, Plugin, StorageAdapter
from solvyn.contracts.results import AIResponse, PluginOutput, Result

__all__ = [
    "AIProvider",
    "AIResponse",
    "EngineEvent",
    "ErrorCode",
    "ErrorInfo",
    "EscalationPolicy",
    "Evaluator",
    "FallbackNeeded",
    "HistoryItem",
    "InputTooLongError",
    "Plugin",
    "PluginOutput",
    "ProviderKind",
    "ResolutionFinished",
    "ResolutionMode",
    "ResolutionStarted",
    "Result",
    "ResultSource",
    "ResultStatus",
    "SnapshotFormatError",
    "SolvynError",
    "StorageAdapter",
    "StorageError",
    "StorageKind",
    "UnsupportedInputError",
]
