# src/solvyn/plugins/builtin/base_conversion.py
"""Integer base conversion plugin: "255 to hex", "0b1010 to dec"."""

import re

from solvyn.contracts.results import PluginOutput
from solvyn.plugins.base import BasePlugin

_PATTERN = re.compile(
    r"^\s*(?P<number>-?(?:0b[01]+|0o[0-7]+|0x[0-9a-f]+|\d+))\s+(?:to|in)\s+(?P<target>\w+)\s*$",
    re.IGNORECASE,
)

# target alias -> (canonical name, format spec)
_TARGETS: dict[str, tuple[str, str]] = {
    "bin": ("binary", "#b"),
    "binary": ("binary", "#b"),
    "oct": ("octal", "#o"),
    "octal": ("octal", "#o"),
    "dec": ("decimal", "d"),
    "decimal": ("decimal", "d"),
    "hex": ("hexadecimal", "#x"),
    "hexadecimal": ("hexadecimal", "#x"),
}

_SOURCE_NAMES = {"0b": "binary", "0o": "octal", "0x": "hexadecimal"}


def _parse_integer(literal: str) -> tuple[int, str]:
    """Parse a literal, returning (value, base name)."""
    digits = literal.lstrip("-").lower()
    prefix = digits[:2]
    if prefix in _SOURCE_NAMES:
        return int(literal, 0), _SOURCE_NAMES[prefix]
    # int(x, 0) rejects leading zeros in decimals, so parse base 10 explicitly
    return int(literal, 10), "decimal"


class BaseConversionPlugin(BasePlugin):
    """Converts integers between binary, octal, decimal, and hexadecimal."""

    name = "base_conversion"
    description = 'Integer base conversion, e.g. "255 to hex" or "0b1010 to dec"'

    def match(self, text: str) -> bool:
        match = _PATTERN.match(text)
        return match is not None and match.group("target").lower() in _TARGETS

    def solve(self, text: str) -> PluginOutput:
        match = _PATTERN.match(text)
        if match is None or match.group("target").lower() not in _TARGETS:
            raise ValueError(f"Not a base conversion: {text!r}")
        number, source_name = _parse_integer(match.group("number"))
        target_name, spec = _TARGETS[match.group("target").lower()]
        value = format(number, spec)
        return PluginOutput(value=value, steps=(f"{match.group('number')} ({source_name}) = {value} ({target_name})",))
