# src/solvyn/plugins/providers/__init__.py
"""AI provider adapters and the settings-driven factory."""

from solvyn.contracts.enums import ProviderKind
from solvyn.contracts.protocols import AIProvider
from solvyn.core.config import AIProviderSettings
from solvyn.plugins.providers.base import (
    ContentPolicyError,
    HTTPProviderBase,
    NetworkError,
    ProviderError,
    RateLimitError,
    ResponseFormatError,
    ServerError,
    classify_provider_error,
)
from solvyn.plugins.providers.custom import CustomHTTPProvider
from solvyn.plugins.providers.gemini import GeminiProvider
from solvyn.plugins.providers.openai import OpenAIProvider
from solvyn.plugins.providers.templates import PromptTemplate, TemplateError


def create_provider(settings: AIProviderSettings, *, timeout: float = 5.0) -> AIProvider:
    """Build the provider selected by settings.provider.

    Settings validation already guarantees the fields each provider needs.
    """
    match settings.provider:
        case ProviderKind.OPENAI:
            assert settings.api_key is not None
            return OpenAIProvider(
                api_key=settings.api_key,
                model=settings.model,
                endpoint=settings.endpoint,
                system_instruction=settings.system_instruction,
                temperature=settings.temperature,
                max_tokens=settings.max_output_tokens,
                timeout=timeout,
                headers=settings.headers,
                prompt_template=settings.prompt_template,
            )
        case ProviderKind.GEMINI:
            assert settings.api_key is not None
            return GeminiProvider(
                api_key=settings.api_key,
                model=settings.model,
                endpoint=settings.endpoint,
                system_instruction=settings.system_instruction,
                temperature=settings.temperature,
                top_p=settings.top_p,
                top_k=settings.top_k,
                max_output_tokens=settings.max_output_tokens,
                timeout=timeout,
                headers=settings.headers,
                prompt_template=settings.prompt_template,
            )
        case ProviderKind.CUSTOM:
            assert settings.endpoint is not None
            return CustomHTTPProvider(
                endpoint=settings.endpoint,
                method=settings.method,
                headers=settings.headers,
                timeout=timeout,
                prompt_template=settings.prompt_template,
            )
    raise ValueError(f"Unknown provider: {settings.provider!r}")


__all__ = [
    "ContentPolicyError",
    "CustomHTTPProvider",
    "GeminiProvider",
    "HTTPProviderBase",
    "NetworkError",
    "OpenAIProvider",
    "PromptTemplate",
    "ProviderError",
    "RateLimitError",
    "ResponseFormatError",
    "ServerError",
    "TemplateError",
    "classify_provider_error",
    "create_provider",
]
