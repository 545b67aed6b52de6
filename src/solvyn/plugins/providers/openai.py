# src/solvyn/plugins/providers/openai.py
"""OpenAI chat-completions provider."""

from __future__ import annotations

from typing import Any

from solvyn.contracts.results import AIResponse
from solvyn.plugins.providers.base import HTTPProviderBase, ResponseFormatError

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class OpenAIProvider(HTTPProviderBase):
    """Resolves input with one chat completion.

    The completion text, trimmed, is the value. No steps or confidence are
    reported.

    Example:
        provider = OpenAIProvider(api_key=os.environ["OPENAI_API_KEY"])
        response = await provider.solve("integrate x^2")
    """

    name = "openai"

    def __init__(
        self,
        *,
        api_key: str,
        model: str | None = None,
        endpoint: str | None = None,
        system_instruction: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 150,
        timeout: float = 5.0,
        headers: dict[str, str] | None = None,
        prompt_template: str | None = None,
    ) -> None:
        super().__init__(timeout=timeout, headers=headers, prompt_template=prompt_template)
        self._api_key = api_key
        self._model = model or DEFAULT_OPENAI_MODEL
        self._endpoint = endpoint or OPENAI_CHAT_URL
        self._system_instruction = system_instruction
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._model

    def build_request(self, text: str) -> dict[str, Any]:
        messages: list[dict[str, str]] = []
        if self._system_instruction:
            messages.append({"role": "system", "content": self._system_instruction})
        messages.append({"role": "user", "content": self.render_prompt(text)})
        return {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }

    async def solve(self, text: str) -> AIResponse:
        data = await self._request_json(
            "POST",
            self._endpoint,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json_body=self.build_request(text),
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ResponseFormatError(f"openai response missing choices[0].message.content: {e}") from e
        if not isinstance(content, str) or not content.strip():
            raise ResponseFormatError("openai returned an empty completion")
        return AIResponse(value=content.strip())
