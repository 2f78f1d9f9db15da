"""OpenAI-compatible LLM provider (OpenRouter, OpenAI, local servers)."""

from __future__ import annotations

import logging
from typing import Any

from lampsreview.exceptions import ProviderError
from lampsreview.llm.base import LLMProvider, LLMResponse, Message

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

OPENROUTER_HEADERS = {
    "HTTP-Referer": "https://github.com/lamps-code-review",
    "X-Title": "LampsCodeReview",
}


class OpenAIProvider(LLMProvider):
    """Provider for OpenAI and OpenAI-compatible APIs (OpenRouter, Ollama, vLLM, etc.)."""

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: str | None = None,
        base_url: str | None = None,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(model, api_key, base_url)
        self.default_headers = default_headers or {}
        self._async_client = None

    def _get_client(self):
        if self._async_client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                from lampsreview.exceptions import ProviderNotAvailableError
                raise ProviderNotAvailableError("openai", "openai")

            kwargs: dict[str, Any] = {}
            if self.api_key:
                kwargs["api_key"] = self.api_key
            if self.base_url:
                kwargs["base_url"] = self.base_url
            if self.default_headers:
                kwargs["default_headers"] = self.default_headers
            self._async_client = AsyncOpenAI(**kwargs)
        return self._async_client

    def _format_messages(self, messages: list[Message]) -> list[dict]:
        return [{"role": msg.role, "content": msg.content} for msg in messages]

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.3,
        max_tokens: int = 16384,
    ) -> LLMResponse:
        client = self._get_client()
        import openai

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=self._format_messages(messages),
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIStatusError as e:
            raise ProviderError(_error_message(e), code=_error_code(e), status=e.status_code) from e
        except openai.APIError as e:
            raise ProviderError(e.message, code=_error_code(e)) from e

        # OpenRouter can answer 200 with an error object in the body
        error = getattr(response, "error", None)
        if error:
            if isinstance(error, dict):
                raise ProviderError(str(error.get("message", error)), code=_as_code(error.get("code")))
            raise ProviderError(str(error))

        if not response.choices:
            raise ProviderError("No response from AI model")

        choice = response.choices[0]
        return LLMResponse(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "",
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            },
        )


def _error_message(error: Any) -> str:
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        nested = body.get("error", body)
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
    return error.message or f"API error: {getattr(error, 'status_code', 'unknown')}"


def _error_code(error: Any) -> str | None:
    return _as_code(getattr(error, "code", None))


def _as_code(code: Any) -> str | None:
    return str(code) if code is not None else None
