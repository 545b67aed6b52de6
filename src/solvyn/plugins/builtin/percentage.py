# src/solvyn/plugins/builtin/percentage.py
"""Percentage plugin: "15% of 200" -> "30"."""

import re
from decimal import Decimal

from solvyn.contracts.results import PluginOutput
from solvyn.plugins.base import BasePlugin

_NUMBER = r"[-+]?\d+(?:\.\d+)?"
_PATTERN = re.compile(rf"^\s*({_NUMBER})\s*%\s*of\s+({_NUMBER})\s*$", re.IGNORECASE)


def _format_decimal(value: Decimal) -> str:
    text = format(value.normalize(), "f")
    return "0" if text in ("-0", "+0") else text


class PercentagePlugin(BasePlugin):
    """Computes "P% of N" exactly using decimal arithmetic."""

    name = "percentage"
    description = 'Percentages of a number, e.g. "15% of 200"'

    def match(self, text: str) -> bool:
        return _PATTERN.match(text) is not None

    def solve(self, text: str) -> PluginOutput:
        match = _PATTERN.match(text)
        if match is None:
            raise ValueError(f"Not a percentage expression: {text!r}")
        percent = Decimal(match.group(1))
        base = Decimal(match.group(2))
        value = _format_decimal(percent * base / Decimal(100))
        step = f"{_format_decimal(percent)} / 100 * {_format_decimal(base)} = {value}"
        return PluginOutput(value=value, steps=(step,))
