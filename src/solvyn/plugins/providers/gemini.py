# src/solvyn/plugins/providers/gemini.py
"""Google Gemini provider using the generateContent REST endpoint.

Gemini is asked for structured JSON, {"result": str, "steps": [str]}, so
the step trace survives into the Result.
"""

from __future__ import annotations

import json
from typing import Any

from solvyn.contracts.results import AIResponse
from solvyn.core.config import DEFAULT_SYSTEM_INSTRUCTION
from solvyn.plugins.providers.base import HTTPProviderBase, ResponseFormatError

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"

_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "result": {"type": "STRING"},
        "steps": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["result"],
}


class GeminiProvider(HTTPProviderBase):
    """Resolves input with one generateContent call."""

    name = "gemini"

    def __init__(
        self,
        *,
        api_key: str,
        model: str | None = None,
        endpoint: str | None = None,
        system_instruction: str | None = None,
        temperature: float = 0.7,
        top_p: float = 0.9,
        top_k: int = 40,
        max_output_tokens: int = 150,
        timeout: float = 5.0,
        headers: dict[str, str] | None = None,
        prompt_template: str | None = None,
    ) -> None:
        super().__init__(timeout=timeout, headers=headers, prompt_template=prompt_template)
        self._api_key = api_key
        self._model = model or DEFAULT_GEMINI_MODEL
        self._api_base = (endpoint or GEMINI_API_BASE).rstrip("/")
        self._system_instruction = system_instruction or DEFAULT_SYSTEM_INSTRUCTION
        self._generation_config: dict[str, Any] = {
            "temperature": temperature,
            "topP": top_p,
            "topK": top_k,
            "maxOutputTokens": max_output_tokens,
            "responseMimeType": "application/json",
            "responseSchema": _RESPONSE_SCHEMA,
        }

    @property
    def url(self) -> str:
        return f"{self._api_base}/models/{self._model}:generateContent"

    def build_request(self, text: str) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": self._system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": self.render_prompt(text)}]}],
            "generationConfig": self._generation_config,
        }

    async def solve(self, text: str) -> AIResponse:
        data = await self._request_json(
            "POST",
            self.url,
            headers={"x-goog-api-key": self._api_key},
            json_body=self.build_request(text),
        )
        return _parse_response(data)


def _parse_response(data: Any) -> AIResponse:
    try:
        parts = data["candidates"][0]["content"]["parts"]
        text = "".join(part.get("text", "") for part in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        raise ResponseFormatError(f"gemini response missing candidates[0].content.parts: {e}") from e
    if not text:
        raise ResponseFormatError("Empty response from Gemini")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"gemini returned non-JSON content: {text[:200]!r}") from e
    if not isinstance(parsed, dict) or "result" not in parsed:
        raise ResponseFormatError("gemini JSON content has no 'result' field")

    steps = parsed.get("steps") or []
    if not isinstance(steps, list):
        raise ResponseFormatError("gemini 'steps' must be a list")
    return AIResponse(value=str(parsed["result"]), steps=tuple(str(step) for step in steps))
