# src/solvyn/plugins/providers/templates.py
"""Jinja2-based prompt templating for AI providers."""

from __future__ import annotations

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.exceptions import SecurityError
from jinja2.sandbox import SandboxedEnvironment

from solvyn.core.config import DEFAULT_PROMPT_TEMPLATE


class TemplateError(Exception):
    """Error in template rendering (including sandbox violations)."""


class PromptTemplate:
    """Jinja2 prompt template rendered with the sanitized input.

    Uses a sandboxed environment to prevent dangerous operations. Templates
    access the input as `input`:

    Example:
        template = PromptTemplate("Solve step by step: {{ input }}")
        template.render("integrate x^2")  # "Solve step by step: integrate x^2"
    """

    def __init__(self, template_string: str = DEFAULT_PROMPT_TEMPLATE) -> None:
        """Initialize template.

        Raises:
            TemplateError: If template syntax is invalid
        """
        self._template_string = template_string

        self._env = SandboxedEnvironment(
            undefined=StrictUndefined,  # Raise on undefined variables
            autoescape=False,  # No HTML escaping for prompts
        )

        try:
            self._template = self._env.from_string(template_string)
        except TemplateSyntaxError as e:
            raise TemplateError(f"Invalid template syntax: {e}") from e

    @property
    def source(self) -> str:
        return self._template_string

    def render(self, text: str) -> str:
        """Render the template for one input.

        Raises:
            TemplateError: If rendering fails (undefined variable, sandbox violation, etc.)
        """
        try:
            return self._template.render(input=text)
        except UndefinedError as e:
            raise TemplateError(f"Undefined variable: {e}") from e
        except SecurityError as e:
            raise TemplateError(f"Sandbox violation: {e}") from e
        except Exception as e:
            raise TemplateError(f"Template rendering failed: {e}") from e
