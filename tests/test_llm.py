import asyncio
import json

import httpx
import pytest

from config.settings import AppSettings, LLMSettings
from core.llm import (
    AnthropicChatProvider,
    CustomChatProvider,
    LLMError,
    OpenAIChatProvider,
    create_chat_provider,
)


def _provider(cls, handler, **settings):
    return cls(LLMSettings(api_key="sk-test", **settings), transport=httpx.MockTransport(handler))


class TestChatProviders:
    def test_openai_request_and_reply(self):
        def handler(request):
            assert str(request.url) == "https://api.openai.com/v1/chat/completions"
            assert request.headers["authorization"] == "Bearer sk-test"
            assert json.loads(request.content) == {
                "model": "gpt-3.5-turbo",
                "messages": [{"role": "user", "content": "hello"}],
                "temperature": 0.7,
            }
            return httpx.Response(200, json={"choices": [{"message": {"content": "Hi there"}}]})

        reply = asyncio.run(_provider(OpenAIChatProvider, handler).complete("hello"))
        assert reply == "Hi there"

    def test_openai_base_url_and_model_override(self):
        def handler(request):
            assert str(request.url) == "http://llm.local/v1/chat/completions"
            assert json.loads(request.content)["model"] == "gpt-4o-mini"
            return httpx.Response(200, json={"choices": []})

        provider = _provider(OpenAIChatProvider, handler, base_url="http://llm.local/v1", model="gpt-4o-mini")
        assert asyncio.run(provider.complete("hello")) == "No response generated"

    def test_openai_error_status(self):
        def handler(request):
            return httpx.Response(401, text="invalid key")

        with pytest.raises(LLMError, match="OpenAI API error: 401 - invalid key"):
            asyncio.run(_provider(OpenAIChatProvider, handler).complete("hello"))

    def test_anthropic_request_and_reply(self):
        def handler(request):
            assert str(request.url) == "https://api.anthropic.com/v1/messages"
            assert request.headers["x-api-key"] == "sk-test"
            assert request.headers["anthropic-version"] == "2023-06-01"
            assert "authorization" not in request.headers
            body = json.loads(request.content)
            assert body["model"] == "claude-3-5-sonnet-20241022"
            assert body["max_tokens"] == 1024
            return httpx.Response(200, json={"content": [{"type": "text", "text": "Bonjour"}]})

        reply = asyncio.run(_provider(AnthropicChatProvider, handler).complete("hello"))
        assert reply == "Bonjour"

    def test_custom_reply_field_fallbacks(self):
        payloads = iter([{"response": "one"}, {"text": "two"}, {"content": "three"}, {"other": 1}])

        def handler(request):
            assert str(request.url) == "http://llm.local/chat"
            assert json.loads(request.content) == {"prompt": "hello", "model": None}
            return httpx.Response(200, json=next(payloads))

        provider = _provider(CustomChatProvider, handler, provider="custom", base_url="http://llm.local/chat")
        replies = [asyncio.run(provider.complete("hello")) for _ in range(4)]
        assert replies == ["one", "two", "three", "No response generated"]

    def test_network_and_malformed_failures(self):
        def offline(request):
            raise httpx.ConnectError("connection refused", request=request)

        def not_an_object(request):
            return httpx.Response(200, json=["Hi"])

        with pytest.raises(LLMError, match="Custom LLM API request failed"):
            asyncio.run(_provider(CustomChatProvider, offline, base_url="http://llm.local").complete("x"))
        with pytest.raises(LLMError, match="OpenAI API returned an unexpected response"):
            asyncio.run(_provider(OpenAIChatProvider, not_an_object).complete("x"))


class TestChatProviderSelection:
    def test_missing_key(self):
        with pytest.raises(LLMError, match="LLM_API_KEY environment variable is required"):
            create_chat_provider(LLMSettings())

    def test_unsupported_provider(self):
        with pytest.raises(LLMError, match="Unsupported LLM provider: cohere"):
            create_chat_provider(LLMSettings(provider="cohere", api_key="k"))

    def test_custom_needs_base_url(self):
        with pytest.raises(LLMError, match="LLM_BASE_URL is required"):
            create_chat_provider(LLMSettings(provider="custom", api_key="k"))

    @pytest.mark.parametrize(
        "name, cls",
        [("openai", OpenAIChatProvider), ("Anthropic", AnthropicChatProvider), ("custom", CustomChatProvider)],
    )
    def test_provider_by_name(self, name, cls):
        settings = LLMSettings(provider=name, api_key="k", base_url="http://llm.local")
        assert isinstance(create_chat_provider(settings), cls)

    def test_settings_read_from_environment(self):
        settings = AppSettings.from_env(
            {"LLM_PROVIDER": "anthropic", "LLM_API_KEY": "ak", "LLM_MODEL": "claude-x", "LLM_BASE_URL": ""}
        )
        assert settings.llm == LLMSettings(provider="anthropic", api_key="ak", model="claude-x")
