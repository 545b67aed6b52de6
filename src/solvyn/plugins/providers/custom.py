# src/solvyn/plugins/providers/custom.py
"""Generic HTTP provider for self-hosted or third-party endpoints."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from solvyn.contracts.results import AIResponse
from solvyn.plugins.providers.base import HTTPProviderBase, ResponseFormatError

# Response fields checked in order for the value
_VALUE_FIELDS = ("value", "result", "text")

BodyBuilder = Callable[[str], Any]
ResponseParser = Callable[[Any], AIResponse]


def default_response_parser(data: Any) -> AIResponse:
    """Read value/result/text, plus optional steps and confidence."""
    if not isinstance(data, dict):
        raise ResponseFormatError(f"custom provider returned {type(data).__name__}, expected an object")
    for field_name in _VALUE_FIELDS:
        value = data.get(field_name)
        if value not in (None, ""):
            break
    else:
        raise ResponseFormatError(f"custom provider response has none of {list(_VALUE_FIELDS)}")

    steps = data.get("steps") or []
    confidence = data.get("confidence")
    return AIResponse(
        value=str(value),
        steps=tuple(str(step) for step in steps) if isinstance(steps, list) else (),
        confidence=float(confidence) if isinstance(confidence, int | float) and not isinstance(confidence, bool) else None,
    )


class CustomHTTPProvider(HTTPProviderBase):
    """Sends the rendered prompt to a configurable endpoint.

    By default the request body is {"prompt": <rendered prompt>} (sent as
    query parameters for GET) and the response is read by
    default_response_parser. Both are overridable in code.

    Example:
        provider = CustomHTTPProvider(
            endpoint="https://solver.internal/v1/solve",
            headers={"X-Api-Key": key},
        )
    """

    name = "custom"

    def __init__(
        self,
        *,
        endpoint: str,
        method: str = "POST",
        headers: dict[str, str] | None = None,
        timeout: float = 5.0,
        prompt_template: str | None = None,
        body_builder: BodyBuilder | None = None,
        response_parser: ResponseParser | None = None,
    ) -> None:
        super().__init__(timeout=timeout, headers=headers, prompt_template=prompt_template)
        self._endpoint = endpoint
        self._method = method.upper()
        self._body_builder = body_builder
        self._response_parser = response_parser or default_response_parser

    def build_request(self, text: str) -> Any:
        if self._body_builder is not None:
            return self._body_builder(text)
        return {"prompt": self.render_prompt(text)}

    async def solve(self, text: str) -> AIResponse:
        body = self.build_request(text)
        if self._method == "GET":
            params = {str(k): str(v) for k, v in body.items()} if isinstance(body, dict) else None
            data = await self._request_json("GET", self._endpoint, params=params)
        else:
            data = await self._request_json(self._method, self._endpoint, json_body=body)
        return self._response_parser(data)
