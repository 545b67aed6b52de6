"""Lifecycle event payloads emitted by the resolution engine.

Listeners receive one of these objects. SUCCESS and ERROR listeners receive
ResolutionFinished; START receives ResolutionStarted; FALLBACK receives
FallbackNeeded.
"""

from dataclasses import dataclass

from solvyn.contracts.enums import EngineEvent
from solvyn.contracts.results import Result


@dataclass(frozen=True, slots=True)
class ResolutionStarted:
    """Emitted before sanitization."""

    input: str
    event: EngineEvent = EngineEvent.START


@dataclass(frozen=True, slots=True)
class ResolutionFinished:
    """Emitted once a success or error result is constructed."""

    input: str
    result: Result
    event: EngineEvent


@dataclass(frozen=True, slots=True)
class FallbackNeeded:
    """Emitted on the manual escalation branch.

    The caller decides whether to continue with SolvynEngine.escalate().
    """

    input: str
    sanitized_input: str
    result: Result
    event: EngineEvent = EngineEvent.FALLBACK
