# src/solvyn/plugins/builtin/__init__.py
"""Plugins shipped with Solvyn.

This module is itself the hook implementation registered by
PluginManager.register_builtin_plugins().
"""

from solvyn.plugins.base import BasePlugin
from solvyn.plugins.builtin.base_conversion import BaseConversionPlugin
from solvyn.plugins.builtin.percentage import PercentagePlugin
from solvyn.plugins.hookspecs import hookimpl

BUILTIN_PLUGINS: tuple[type[BasePlugin], ...] = (PercentagePlugin, BaseConversionPlugin)


@hookimpl
def solvyn_get_plugins() -> list[type[BasePlugin]]:
    return list(BUILTIN_PLUGINS)


__all__ = ["BUILTIN_PLUGINS", "BaseConversionPlugin", "PercentagePlugin", "solvyn_get_plugins"]
