# Path: core/llm/providers.py
# Purpose: Send a single user message to a configured chat model and return its reply text.
# Layer: core/llm.
# Details: OpenAI, Anthropic and custom endpoints are reached with httpx; configuration errors surface as LLMError.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from config.settings import LLMSettings

NO_RESPONSE = "No response generated"


class LLMError(RuntimeError):
    """Chat request could not be configured or the upstream call failed."""


class ChatProvider(ABC):
    """Interface for chat completion backends."""

    name: str = "base"

    @abstractmethod
    async def complete(self, message: str) -> str:
        """Return the model's reply to a single user message."""


class HttpChatProvider(ChatProvider):
    label: str = "LLM"
    default_base_url: str = ""

    def __init__(self, settings: LLMSettings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self.settings.base_url or self.default_base_url

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {self.settings.api_key}"}

    async def _post(self, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.settings.timeout_seconds) as client:
                response = await client.post(url, json=body, headers=self._headers())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise LLMError(f"{self.label} API request failed: {exc}") from exc
        if response.is_error:
            raise LLMError(f"{self.label} API error: {response.status_code} - {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            raise LLMError(f"{self.label} API returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise LLMError(f"{self.label} API returned an unexpected response")
        return data


def _text(value: Any) -> str:
    return value if isinstance(value, str) and value else NO_RESPONSE


def _first(value: Any) -> Dict[str, Any]:
    first = value[0] if isinstance(value, list) and value else None
    return first if isinstance(first, dict) else {}


class OpenAIChatProvider(HttpChatProvider):
    name = "openai"
    label = "OpenAI"
    default_base_url = "https://api.openai.com/v1"

    async def complete(self, message: str) -> str:
        body = {
            "model": self.settings.model or "gpt-3.5-turbo",
            "messages": [{"role": "user", "content": message}],
            "temperature": 0.7,
        }
        data = await self._post(f"{self.base_url}/chat/completions", body)
        reply = _first(data.get("choices")).get("message")
        return _text(reply.get("content") if isinstance(reply, dict) else None)


class AnthropicChatProvider(HttpChatProvider):
    name = "anthropic"
    label = "Anthropic"
    default_base_url = "https://api.anthropic.com/v1"

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.settings.api_key or "",
            "anthropic-version": "2023-06-01",
        }

    async def complete(self, message: str) -> str:
        body = {
            "model": self.settings.model or "claude-3-5-sonnet-20241022",
            "max_tokens": 1024,
            "messages": [{"role": "user", "content": message}],
        }
        data = await self._post(f"{self.base_url}/messages", body)
        return _text(_first(data.get("content")).get("text"))


class CustomChatProvider(HttpChatProvider):
    """Generic endpoint accepting ``{prompt, model}`` and answering with one of a few text fields."""

    name = "custom"
    label = "Custom LLM"

    async def complete(self, message: str) -> str:
        data = await self._post(self.base_url, {"prompt": message, "model": self.settings.model})
        for key in ("response", "text", "content"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
        return NO_RESPONSE


def create_chat_provider(
    settings: LLMSettings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> ChatProvider:
    """Build the chat provider named in settings.

    Raises:
        LLMError: when the API key is missing or the provider is unknown or incomplete.
    """

    if not settings.api_key:
        raise LLMError("LLM_API_KEY environment variable is required")
    provider = settings.provider.lower()
    if provider == "openai":
        return OpenAIChatProvider(settings, transport)
    if provider == "anthropic":
        return AnthropicChatProvider(settings, transport)
    if provider == "custom":
        if not settings.base_url:
            raise LLMError("LLM_BASE_URL is required for custom LLM provider")
        return CustomChatProvider(settings, transport)
    raise LLMError(f"Unsupported LLM provider: {settings.provider}")


__all__ = [
    "AnthropicChatProvider",
    "ChatProvider",
    "CustomChatProvider",
    "HttpChatProvider",
    "LLMError",
    "OpenAIChatProvider",
    "create_chat_provider",
]
