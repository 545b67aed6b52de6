"""All status codes, modes, and kinds used across subsystem boundaries."""

from enum import StrEnum


class ResolutionMode(StrEnum):
    """How far the engine may go to resolve an input.

    Values:
        AUTO: Plugins, local evaluation, then escalation per policy
        STRICT_LOCAL: Never leave the process; unresolved input is unsupported
    """

    AUTO = "auto"
    STRICT_LOCAL = "strict-local"


class EscalationPolicy(StrEnum):
    """What to do when neither a plugin nor the local evaluator resolved input.

    Values:
        MANUAL: Return a fallback result; the caller decides whether to escalate
        AUTO: Call the configured AI provider once
        NEVER: Treat the input as unsupported
    """

    MANUAL = "manual"
    AUTO = "auto"
    NEVER = "never"


class ResultStatus(StrEnum):
    """Status of a resolution result.

    IDLE and EVALUATING are UI-facing states. They never reach history.
    """

    SUCCESS = "success"
    ERROR = "error"
    FALLBACK = "fallback"
    IDLE = "idle"
    EVALUATING = "evaluating"

    @property
    def is_terminal(self) -> bool:
        """Terminal statuses are the only ones recorded in history."""
        return self not in (ResultStatus.IDLE, ResultStatus.EVALUATING)


class ResultSource(StrEnum):
    """Which stage produced a result's value."""

    LOCAL = "local"
    AI = "ai"
    PLUGIN = "plugin"
    DEMO = "demo"


class ErrorCode(StrEnum):
    """Error taxonomy for error results.

    Values:
        INPUT_TOO_LONG: Sanitizer rejected the input
        UNSUPPORTED_INPUT: No evaluation path is permitted under current policy
        INVALID_EXPRESSION: Default for any unclassified failure, including
            provider transport failures (message preserved)
    """

    INPUT_TOO_LONG = "INPUT_TOO_LONG"
    UNSUPPORTED_INPUT = "UNSUPPORTED_INPUT"
    INVALID_EXPRESSION = "INVALID_EXPRESSION"


class StorageKind(StrEnum):
    """Tag selecting a history storage adapter.

    Values:
        MEMORY: In-process list, lost on exit
        KEY_VALUE: One JSON document per key on the local filesystem
        DATABASE: SQL table via SQLAlchemy (SQLite by default)
        REMOTE: HTTP endpoint receiving full snapshots
        CUSTOM: Caller-supplied adapter instance
    """

    MEMORY = "memory"
    KEY_VALUE = "key_value"
    DATABASE = "database"
    REMOTE = "remote"
    CUSTOM = "custom"


class EngineEvent(StrEnum):
    """Lifecycle event names emitted by the resolution engine."""

    START = "solve:start"
    SUCCESS = "solve:success"
    ERROR = "solve:error"
    FALLBACK = "ai:fallback"


class ProviderKind(StrEnum):
    """Built-in AI provider adapters."""

    OPENAI = "openai"
    GEMINI = "gemini"
    CUSTOM = "custom"
