"""
Model Providers for Nexus Flows

AI nodes ask a ModelProvider for an answer. The backend is chosen with
AI_PROVIDER (static, openai, anthropic) and AI_DEFAULT_MODEL.
"""

import os
import logging
from typing import Optional

from .model_provider import ModelProvider
from .openai_provider import OpenAIProvider
from .anthropic_provider import AnthropicProvider
from .static_provider import StaticProvider, STATIC_RESPONSE

logger = logging.getLogger(__name__)

PROVIDERS = {
    "static": StaticProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


def get_provider(name: Optional[str] = None, model_name: Optional[str] = None) -> ModelProvider:
    """
    Create the configured provider.

    Args:
        name: Provider name (defaults to AI_PROVIDER, then "static")
        model_name: Default model (defaults to AI_DEFAULT_MODEL)

    Raises:
        ValueError: Unknown provider name or missing API key
    """
    name = (name or os.getenv("AI_PROVIDER") or "static").lower()
    model_name = model_name or os.getenv("AI_DEFAULT_MODEL")

    if name not in PROVIDERS:
        raise ValueError(f"Unknown AI provider: '{name}'. Supported: {list(PROVIDERS.keys())}")

    if name == "static":
        return StaticProvider()

    logger.info(f"Using AI provider: {name}")
    return PROVIDERS[name](model_name)


__all__ = [
    "ModelProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "StaticProvider",
    "STATIC_RESPONSE",
    "get_provider",
]
