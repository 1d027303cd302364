"""
Completion providers for the chat orchestrator.
"""

from mortgage_chat.config import Settings
from mortgage_chat.errors import ProviderConfigurationError

from .base import CompletionProvider
from .anthropic_client import AnthropicMessagesProvider, AnthropicTextCompletionProvider
from .openai_client import OpenAIChatProvider


def build_completion_provider(settings: Settings) -> CompletionProvider:
    """Instantiate the provider named by settings.completion_provider."""
    common = {
        "max_tokens": settings.max_tokens,
        "timeout_s": settings.request_timeout_s,
    }
    if settings.completion_provider == "anthropic-text":
        return AnthropicTextCompletionProvider(
            settings.anthropic_api_key,
            settings.anthropic_model,
            settings.anthropic_base_url,
            **common,
        )
    if settings.completion_provider == "anthropic-messages":
        return AnthropicMessagesProvider(
            settings.anthropic_api_key,
            settings.anthropic_model,
            settings.anthropic_base_url,
            **common,
        )
    if settings.completion_provider == "openai":
        return OpenAIChatProvider(
            settings.openai_api_key,
            settings.openai_model,
            settings.openai_base_url,
            organization_id=settings.openai_organization_id,
            **common,
        )
    raise ProviderConfigurationError(f"Unknown completion provider: {settings.completion_provider}")


__all__ = [
    "CompletionProvider",
    "AnthropicTextCompletionProvider",
    "AnthropicMessagesProvider",
    "OpenAIChatProvider",
    "build_completion_provider",
]
