# src/solvyn/engine/factory.py
"""Build ready-to-use engines from settings."""

from __future__ import annotations

from typing import Any

import structlog

from solvyn.contracts.enums import StorageKind
from solvyn.contracts.protocols import AIProvider, Evaluator, StorageAdapter
from solvyn.core.config import SolvynSettings
from solvyn.core.history.manager import StorageErrorCallback
from solvyn.core.history.storage import create_storage_adapter
from solvyn.engine.clock import Clock
from solvyn.engine.resolver import SolvynEngine
from solvyn.plugins.base import BasePlugin
from solvyn.plugins.manager import PluginManager
from solvyn.plugins.providers import create_provider

logger = structlog.get_logger(__name__)


def build_engine(
    settings: SolvynSettings,
    *,
    storage: StorageAdapter | None = None,
    ai: AIProvider | None = None,
    evaluator: Evaluator | None = None,
    plugin_manager: PluginManager | None = None,
    on_storage_error: StorageErrorCallback | None = None,
    clock: Clock | None = None,
) -> SolvynEngine:
    """Instantiate plugins, provider, and storage adapter for settings.

    Args:
        settings: Validated settings
        storage: Adapter instance for `history.storage: custom`. Passing one
            while the tag is left at its `memory` default selects it.
        ai: Provider instance; overrides the `ai` settings block
        evaluator: Local evaluator override
        plugin_manager: Manager to resolve plugin names (defaults to one
            with built-in and entry-point plugins registered)
        on_storage_error: Diagnostic callback for storage failures
        clock: Clock override, for tests

    Raises:
        ValueError: If a plugin name is unknown or storage selection is inconsistent
    """
    if storage is not None and settings.history.storage == StorageKind.MEMORY:
        history_settings = settings.history.model_copy(update={"storage": StorageKind.CUSTOM})
        settings = settings.model_copy(update={"history": history_settings})

    plugins: list[BasePlugin] = []
    if settings.plugins:
        if plugin_manager is None:
            plugin_manager = PluginManager()
            plugin_manager.register_builtin_plugins()
            plugin_manager.load_entrypoint_plugins()
        plugins = plugin_manager.create_plugins(settings.plugins)

    if ai is None and settings.ai is not None and not settings.offline_only:
        ai = create_provider(settings.ai, timeout=settings.timeout_seconds)

    adapter = None
    if settings.history.enabled:
        adapter = create_storage_adapter(settings.history, custom=storage, timeout=settings.timeout_seconds)

    logger.debug(
        "engine_built",
        mode=settings.mode.value,
        escalation=settings.escalation.value,
        plugins=[plugin.name for plugin in plugins],
        provider=ai.name if ai is not None else None,
        storage=settings.history.storage.value if settings.history.enabled else None,
    )

    return SolvynEngine(
        settings,
        evaluator=evaluator,
        ai=ai,
        plugins=plugins,
        storage=adapter,
        on_storage_error=on_storage_error,
        clock=clock,
    )


def create_solvyn(settings: SolvynSettings | None = None, **overrides: Any) -> SolvynEngine:
    """Convenience constructor.

    Keyword overrides that name SolvynSettings fields are applied to the
    settings (and re-validated); the rest are passed to build_engine().
    `ai` goes to settings when it is a mapping or AIProviderSettings, and
    to build_engine() when it is a provider instance.

    Example:
        engine = create_solvyn(escalation="never", plugins=["percentage"])
        result = await engine.solve("15% of 200")
    """
    engine_kwargs: dict[str, Any] = {}
    if isinstance(overrides.get("ai"), AIProvider):
        engine_kwargs["ai"] = overrides.pop("ai")

    field_overrides = {k: v for k, v in overrides.items() if k in SolvynSettings.model_fields}
    engine_kwargs.update({k: v for k, v in overrides.items() if k not in SolvynSettings.model_fields})

    if settings is None:
        settings = SolvynSettings(**field_overrides)
    elif field_overrides:
        settings = SolvynSettings(**{**settings.model_dump(), **field_overrides})

    return build_engine(settings, **engine_kwargs)
