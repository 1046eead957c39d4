"""
Tests for the AI model providers
"""

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from nexus_flows.core.exceptions import IntegrationError
from nexus_flows.core.providers import (
    AnthropicProvider,
    OpenAIProvider,
    STATIC_RESPONSE,
    StaticProvider,
    get_provider,
)


# ============================================================================
# FACTORY
# ============================================================================

@pytest.mark.unit
def test_default_provider_is_static(monkeypatch):
    monkeypatch.delenv("AI_PROVIDER", raising=False)
    assert isinstance(get_provider(), StaticProvider)


@pytest.mark.unit
def test_unknown_provider(monkeypatch):
    with pytest.raises(ValueError, match="Unknown AI provider"):
        get_provider("llama")


@pytest.mark.unit
def test_openai_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        get_provider("openai")


@pytest.mark.unit
def test_anthropic_from_environment(monkeypatch):
    monkeypatch.setenv("AI_PROVIDER", "anthropic")
    monkeypatch.setenv("AI_DEFAULT_MODEL", "sonnet")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")

    provider = get_provider()

    assert isinstance(provider, AnthropicProvider)
    assert provider.get_model_name() == "claude-sonnet-4-5"


# ============================================================================
# STATIC
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_static_provider_answers_placeholder():
    provider = StaticProvider()
    assert await provider.complete("Hi {{name}}", None, {"name": "Ana"}) == STATIC_RESPONSE
    assert provider.resolve_model(None) == "static"


# ============================================================================
# OPENAI
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_openai_renders_prompt():
    provider = OpenAIProvider(api_key="test-key")
    provider.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock())))
    provider.client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Restock soon"))]
    )

    answer = await provider.complete("Stock of {{name}}: {{stock}}", None, {"name": "Widget", "stock": 3})

    assert answer == "Restock soon"
    kwargs = provider.client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == OpenAIProvider.DEFAULT_MODEL
    assert kwargs["messages"][-1] == {"role": "user", "content": "Stock of Widget: 3"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_openai_error_becomes_integration_error():
    import openai

    provider = OpenAIProvider(api_key="test-key")
    provider.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(
        create=AsyncMock(side_effect=openai.OpenAIError("quota exceeded"))
    )))

    with pytest.raises(IntegrationError) as exc_info:
        await provider.complete("Hi", "gpt-4o", {})

    assert exc_info.value.service == "openai"


# ============================================================================
# ANTHROPIC
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_anthropic_resolves_alias_and_joins_text():
    provider = AnthropicProvider(api_key="test-key")
    provider.client = SimpleNamespace(messages=SimpleNamespace(create=AsyncMock()))
    provider.client.messages.create.return_value = SimpleNamespace(content=[
        SimpleNamespace(type="text", text="Restock "),
        SimpleNamespace(type="text", text="soon"),
    ])

    answer = await provider.complete("Hi {{name}}", "opus", {"name": "Ana"})

    assert answer == "Restock soon"
    kwargs = provider.client.messages.create.await_args.kwargs
    assert kwargs["model"] == "claude-opus-4-5"
    assert kwargs["messages"] == [{"role": "user", "content": "Hi Ana"}]
    assert kwargs["max_tokens"] == AnthropicProvider.MAX_TOKENS
