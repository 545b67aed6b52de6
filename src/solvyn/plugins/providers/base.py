# src/solvyn/plugins/providers/base.py
"""Shared HTTP plumbing and error taxonomy for AI provider adapters.

Providers make exactly one HTTP call per solve() and never retry. Failures
surface as ProviderError subclasses; the engine turns them into
INVALID_EXPRESSION error results with the message preserved. The
`retryable` flag is informational for callers that want their own policy.
"""

from __future__ import annotations

import json
import re
from typing import Any

import httpx
import structlog

from solvyn.plugins.providers.templates import PromptTemplate

logger = structlog.get_logger(__name__)


class ProviderError(Exception):
    """Error from an AI provider adapter.

    Attributes:
        retryable: Whether the error is likely transient
        status_code: HTTP status, when the provider answered
    """

    def __init__(self, message: str, *, retryable: bool = False, status_code: int | None = None) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Rate limit exceeded (HTTP 429)."""

    def __init__(self, message: str, *, status_code: int | None = 429) -> None:
        super().__init__(message, retryable=True, status_code=status_code)


class NetworkError(ProviderError):
    """Timeout, connection refused, DNS failure, and similar transport errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class ServerError(ProviderError):
    """Server error (5xx)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, retryable=True, status_code=status_code)


class ContentPolicyError(ProviderError):
    """Request rejected by the provider's content policy. Not retryable."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, retryable=False, status_code=status_code)


class ResponseFormatError(ProviderError):
    """Provider answered, but not in the expected shape. Not retryable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


_RATE_LIMIT_PATTERNS = (
    re.compile(r"\brate[\s_-]*limit(?:ed|ing)?\b"),
    re.compile(r"\btoo many requests\b"),
    re.compile(r"\bquota\b"),
)
_CONTENT_POLICY_PATTERNS = (
    "content_policy_violation",
    "content policy",
    "safety",
)


def classify_provider_error(status_code: int, body: str) -> str:
    """Classify a failed provider response into a canonical category.

    Returns:
        One of "rate_limit", "server", "content_policy", "client"
    """
    error_str = body.lower()
    if status_code == 429 or any(pattern.search(error_str) for pattern in _RATE_LIMIT_PATTERNS):
        return "rate_limit"
    if status_code >= 500:
        return "server"
    if any(pattern in error_str for pattern in _CONTENT_POLICY_PATTERNS):
        return "content_policy"
    return "client"


class HTTPProviderBase:
    """Base for httpx-backed providers.

    Subclasses set `name` and implement solve() using _request_json().
    A fresh AsyncClient is opened per call; `timeout` is the transport
    timeout, the only cancellation mechanism a resolution has.
    """

    name: str = "http"

    def __init__(
        self,
        *,
        timeout: float = 5.0,
        headers: dict[str, str] | None = None,
        prompt_template: str | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._template = PromptTemplate(prompt_template) if prompt_template is not None else PromptTemplate()

    @property
    def timeout(self) -> float:
        return self._timeout

    def render_prompt(self, text: str) -> str:
        return self._template.render(text)

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and decode the JSON response.

        Raises:
            RateLimitError, ServerError, ContentPolicyError, ProviderError:
                Provider answered with an error status
            NetworkError: Transport failure or timeout
            ResponseFormatError: Response body is not JSON
        """
        merged_headers = {"Content-Type": "application/json", **self._headers, **(headers or {})}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, headers=merged_headers, json=json_body, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._status_error(e.response) from e
        except httpx.TimeoutException as e:
            raise NetworkError(f"{self.name} request timed out after {self._timeout}s") from e
        except httpx.RequestError as e:
            raise NetworkError(f"{self.name} network error: {e}") from e

        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise ResponseFormatError(f"{self.name} returned a non-JSON response") from e

    def _status_error(self, response: httpx.Response) -> ProviderError:
        status = response.status_code
        body = response.text
        detail = body[:200].strip() or response.reason_phrase
        message = f"{self.name} request failed ({status}): {detail}"
        category = classify_provider_error(status, body)
        logger.debug("provider_http_error", provider=self.name, status_code=status, category=category)
        if category == "rate_limit":
            return RateLimitError(message, status_code=status)
        if category == "server":
            return ServerError(message, status_code=status)
        if category == "content_policy":
            return ContentPolicyError(message, status_code=status)
        return ProviderError(message, status_code=status)
