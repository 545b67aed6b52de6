# src/solvyn/plugins/base.py
"""Base class for resolution plugins.

Subclassing is optional: the engine accepts any object satisfying the
Plugin protocol. The base class gives discovered plugins a name and a
description for `solvyn plugins list`.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable

from solvyn.contracts.results import PluginOutput


class BasePlugin(ABC):
    """Narrow, high-confidence solver.

    A plugin whose match() returns True owns the input: its solve() result
    is final and neither the evaluator nor a provider runs.

    Example:
        class DoublePlugin(BasePlugin):
            name = "double"

            def match(self, text: str) -> bool:
                return text.startswith("double ")

            def solve(self, text: str) -> PluginOutput:
                return PluginOutput(value=str(2 * int(text.split()[1])))
    """

    name: str
    description: str = ""

    @abstractmethod
    def match(self, text: str) -> bool:
        """Return True if this plugin should handle text."""
        ...

    @abstractmethod
    def solve(self, text: str) -> PluginOutput | Awaitable[PluginOutput]:
        """Resolve text. Only called after match() returned True."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
