# src/solvyn/core/config.py
"""
Configuration schema and loading for Solvyn engines.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction; a new engine is built
for new settings.
"""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from solvyn.contracts.enums import EscalationPolicy, ProviderKind, ResolutionMode, StorageKind
from solvyn.core.sanitizer import DEFAULT_MAX_INPUT_LENGTH

DEFAULT_PROMPT_TEMPLATE = "Input: {{ input }}"
DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a math and logic solver. Solve the expression or answer the question. "
    "Provide a concise final answer and optionally a step-by-step breakdown."
)


class HistorySettings(BaseModel):
    """History log and storage adapter selection.

    The `storage` tag selects an adapter; the remaining fields are options
    for the adapter that tag selects. `custom` requires an adapter instance
    to be passed to the engine factory.

    Example YAML:
        history:
          enabled: true
          storage: database
          max_items: 250
          database_url: "sqlite:///./.solvyn/history.db"
    """

    model_config = {"frozen": True}

    enabled: bool = Field(default=True, description="Record completed resolutions")
    storage: StorageKind = Field(default=StorageKind.MEMORY, description="Storage adapter tag")
    max_items: int = Field(default=100, gt=0, description="FIFO bound on the history log")
    key: str = Field(default="solvyn_history", min_length=1, description="Key for the key-value adapter")
    key_value_dir: Path = Field(
        default=Path(".solvyn/history"),
        description="Directory holding key-value documents",
    )
    # NOTE: str rather than Path - Path mangles DSNs like "postgresql://user@host/db"
    database_url: str = Field(
        default="sqlite:///./.solvyn/history.db",
        description="SQLAlchemy URL for the database adapter",
    )
    remote_url: str | None = Field(default=None, description="Save/clear endpoint for the remote adapter")
    remote_load_url: str | None = Field(default=None, description="Load endpoint (defaults to remote_url)")
    remote_headers: dict[str, str] = Field(default_factory=dict, description="Extra headers for remote calls")

    @field_validator("key")
    @classmethod
    def validate_key_is_filename_safe(cls, v: str) -> str:
        if not re.fullmatch(r"[A-Za-z0-9_.-]+", v) or v in (".", ".."):
            raise ValueError(f"history key must contain only letters, digits, '_', '-', '.'; got {v!r}")
        return v

    @model_validator(mode="after")
    def validate_remote_url(self) -> "HistorySettings":
        if self.storage == StorageKind.REMOTE and not self.remote_url:
            raise ValueError("history.remote_url is required when history.storage is 'remote'")
        return self


class AIProviderSettings(BaseModel):
    """AI provider adapter configuration.

    Example YAML:
        ai:
          provider: openai
          api_key: "${OPENAI_API_KEY}"
          model: gpt-4o-mini
    """

    model_config = {"frozen": True}

    provider: ProviderKind = Field(description="Provider adapter to build")
    api_key: str | None = Field(default=None, description="Provider API key")
    model: str | None = Field(default=None, description="Model name (adapter default when unset)")
    endpoint: str | None = Field(default=None, description="Endpoint URL (required for custom)")
    method: str = Field(default="POST", description="HTTP method for the custom adapter")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    system_instruction: str | None = Field(default=None, description="System prompt override")
    prompt_template: str = Field(default=DEFAULT_PROMPT_TEMPLATE, description="Jinja2 template rendered with `input`")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    top_k: int = Field(default=40, gt=0)
    max_output_tokens: int = Field(default=150, gt=0)

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        method = v.upper()
        if method not in ("POST", "PUT", "GET"):
            raise ValueError(f"ai.method must be POST, PUT or GET; got {v!r}")
        return method

    @model_validator(mode="after")
    def validate_provider_requirements(self) -> "AIProviderSettings":
        if self.provider in (ProviderKind.OPENAI, ProviderKind.GEMINI) and not self.api_key:
            raise ValueError(f"ai.api_key is required for provider '{self.provider.value}'")
        if self.provider == ProviderKind.CUSTOM and not self.endpoint:
            raise ValueError("ai.endpoint is required for provider 'custom'")
        return self


class SolvynSettings(BaseModel):
    """Top-level engine configuration.

    This is the single source of truth for an engine instance. Validated and
    frozen after construction.
    """

    model_config = {"frozen": True}

    mode: ResolutionMode = Field(default=ResolutionMode.AUTO, description="auto or strict-local")
    escalation: EscalationPolicy = Field(default=EscalationPolicy.AUTO, description="manual, auto or never")
    offline_only: bool = Field(default=False, description="Never contact a provider")
    max_input_length: int = Field(default=DEFAULT_MAX_INPUT_LENGTH, gt=0, description="Sanitizer length limit")
    precision: int = Field(default=14, ge=1, le=64, description="Significant digits for local results")
    timeout_seconds: float = Field(default=5.0, gt=0, description="Transport timeout for provider and remote calls")
    plugins: list[str] = Field(default_factory=list, description="Plugin names, in match priority order")
    ai: AIProviderSettings | None = Field(default=None, description="Provider configuration")
    history: HistorySettings = Field(default_factory=HistorySettings, description="History configuration")

    @field_validator("plugins")
    @classmethod
    def validate_unique_plugins(cls, v: list[str]) -> list[str]:
        duplicates = sorted({name for name in v if v.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate plugin name(s): {duplicates}")
        return v

    @property
    def escalation_denied_reason(self) -> str | None:
        """Why policy forbids provider contact, or None when it is permitted.

        Provider presence is not considered here.
        """
        if self.offline_only:
            return "Unsupported query for offline mode."
        if self.mode == ResolutionMode.STRICT_LOCAL:
            return "Input cannot be resolved locally in strict-local mode."
        if self.escalation == EscalationPolicy.NEVER:
            return "Input cannot be resolved locally and escalation is disabled."
        return None

    @property
    def allows_escalation(self) -> bool:
        """Whether policy permits any provider contact (ignoring provider presence)."""
        return self.escalation_denied_reason is None


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    Args:
        config: Configuration dict (may contain nested structures)

    Returns:
        New dict with environment variables expanded
    """

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            default = match.group(2)
            if default is not None:
                return default
            # No env var and no default - keep original so validation reports it
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    """Dynaconf upper-cases keys from environment variables; Pydantic wants lowercase."""
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def load_settings(config_path: Path) -> SolvynSettings:
    """Load settings from a YAML/TOML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (SOLVYN_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic schema - lowest priority

    Environment variable format: SOLVYN_HISTORY__MAX_ITEMS for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="SOLVYN",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _expand_env_vars(raw_config)

    return SolvynSettings(**raw_config)


_SECRET_FIELD_NAMES = frozenset({"api_key", "token", "password", "secret", "authorization"})


def resolve_config(settings: SolvynSettings) -> dict[str, Any]:
    """Convert validated settings to a display-safe dict.

    Secret-looking values (api keys, auth headers) are masked. Use the
    settings object itself, not this dict, for runtime operations.
    """

    def _mask(value: Any) -> Any:
        if isinstance(value, dict):
            return {
                k: ("***" if k.lower() in _SECRET_FIELD_NAMES and v is not None else _mask(v)) for k, v in value.items()
            }
        if isinstance(value, list):
            return [_mask(item) for item in value]
        return value

    masked: dict[str, Any] = _mask(settings.model_dump(mode="json"))
    return masked
