# Path: core/llm/__init__.py
# Purpose: Package initializer for the chat completion backends.
# Layer: core/llm.
# Details: Exposes the provider interface, the HTTP providers, and the configuration-driven factory.

from .providers import (
    AnthropicChatProvider,
    ChatProvider,
    CustomChatProvider,
    LLMError,
    OpenAIChatProvider,
    create_chat_provider,
)

__all__ = [
    "AnthropicChatProvider",
    "ChatProvider",
    "CustomChatProvider",
    "LLMError",
    "OpenAIChatProvider",
    "create_chat_provider",
]
