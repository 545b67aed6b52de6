# src/solvyn/plugins/manager.py
"""Plugin manager for discovery, registration, and lookup.

Uses pluggy for hook-based plugin registration.
"""

from typing import Any

import pluggy
import structlog

from solvyn.plugins.base import BasePlugin
from solvyn.plugins.hookspecs import PROJECT_NAME, SolvynPluginSpec

logger = structlog.get_logger(__name__)


class PluginManager:
    """Manages plugin discovery, registration, and lookup.

    Usage:
        manager = PluginManager()
        manager.register_builtin_plugins()
        manager.load_entrypoint_plugins()

        plugins = manager.create_plugins(["percentage", "base_conversion"])
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(SolvynPluginSpec)

        # Cache - maps name to plugin class for duplicate detection
        self._plugins: dict[str, type[BasePlugin]] = {}

    def register_builtin_plugins(self) -> None:
        """Register the plugins shipped with Solvyn."""
        from solvyn.plugins import builtin

        if not self._pm.is_registered(builtin):
            self.register(builtin)

    def load_entrypoint_plugins(self) -> int:
        """Load third-party plugins from the "solvyn" entry-point group.

        Returns:
            Number of entry points loaded
        """
        count = self._pm.load_setuptools_entrypoints(PROJECT_NAME)
        self._refresh_caches()
        if count:
            logger.debug("entrypoint_plugins_loaded", count=count)
        return count

    def register(self, plugin: Any) -> None:
        """Register a hook implementation (object or module).

        Args:
            plugin: Object implementing solvyn_get_plugins

        Raises:
            ValueError: If the registration introduces a duplicate plugin name;
                the registration is rolled back
        """
        self._pm.register(plugin)
        try:
            self._refresh_caches()
        except ValueError:
            self._pm.unregister(plugin)
            raise

    def _refresh_caches(self) -> None:
        """Refresh the plugin cache from hooks.

        Raises:
            ValueError: If two plugin classes share a name
        """
        new_plugins: dict[str, type[BasePlugin]] = {}

        # pluggy calls hookimpls in LIFO registration order; reverse for FIFO
        for plugin_classes in reversed(self._pm.hook.solvyn_get_plugins()):
            for cls in plugin_classes:
                name = cls.name
                if name in new_plugins:
                    raise ValueError(f"Duplicate plugin name: '{name}'. Already registered by {new_plugins[name].__name__}")
                new_plugins[name] = cls

        # All validated, update cache
        self._plugins = new_plugins

    # === Getters ===

    def get_plugins(self) -> list[type[BasePlugin]]:
        """Get all registered plugin classes."""
        return list(self._plugins.values())

    def get_plugin_by_name(self, name: str) -> type[BasePlugin] | None:
        """Get plugin class by name."""
        return self._plugins.get(name)

    def create_plugins(self, names: list[str]) -> list[BasePlugin]:
        """Instantiate plugins by name, preserving the given order.

        Raises:
            ValueError: If a name is not registered
        """
        instances: list[BasePlugin] = []
        for name in names:
            cls = self.get_plugin_by_name(name)
            if cls is None:
                available = sorted(self._plugins)
                raise ValueError(f"Unknown plugin: '{name}'. Available: {available}")
            instances.append(cls())
        return instances
