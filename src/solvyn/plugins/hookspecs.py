# src/solvyn/plugins/hookspecs.py
"""pluggy hook specifications for Solvyn plugins.

Plugin packages implement these hooks to make their plugin classes
discoverable by name.

Usage (implementing a plugin package):
    from solvyn.plugins.hookspecs import hookimpl

    class MyPlugins:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def solvyn_get_plugins(self):
            return [UnitConversionPlugin]

Third-party packages expose such an object under the "solvyn" entry-point
group; PluginManager.load_entrypoint_plugins() picks them up.
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from solvyn.plugins.base import BasePlugin

# Project name for pluggy, also the entry-point group
PROJECT_NAME = "solvyn"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class SolvynPluginSpec:
    """Hook specifications for resolution plugins."""

    @hookspec
    def solvyn_get_plugins(self) -> list[type["BasePlugin"]]:  # type: ignore[empty-body]
        """Return plugin classes.

        Returns:
            List of plugin classes (not instances). Each must be
            constructible without arguments.
        """
