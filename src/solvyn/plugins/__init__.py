# src/solvyn/plugins/__init__.py
"""Plugin system and AI provider adapters.

Plugins are discovered through pluggy hooks (see hookspecs.py); providers
are built from settings with providers.create_provider().
"""

from solvyn.plugins.base import BasePlugin
from solvyn.plugins.hookspecs import hookimpl
from solvyn.plugins.manager import PluginManager

__all__ = ["BasePlugin", "PluginManager", "hookimpl"]
