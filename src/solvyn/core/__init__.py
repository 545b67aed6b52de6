# src/solvyn/core/__init__.py
"""Core infrastructure: configuration, logging, sanitizer, history."""

from solvyn.core.config import (
    AIProviderSettings,
    HistorySettings,
    SolvynSettings,
    load_settings,
    resolve_config,
)
from solvyn.core.logging import configure_logging, get_logger
from solvyn.core.sanitizer import DEFAULT_MAX_INPUT_LENGTH, sanitize_input

__all__ = [
    "DEFAULT_MAX_INPUT_LENGTH",
    "AIProviderSettings",
    "HistorySettings",
    "SolvynSettings",
    "configure_logging",
    "get_logger",
    "load_settings",
    "resolve_config",
    "sanitize_input",
]
