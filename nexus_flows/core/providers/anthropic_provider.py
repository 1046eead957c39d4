"""
Anthropic Model Provider

Implements ModelProvider with the Anthropic messages API.
"""

import os
import time
import logging
from typing import Any, Dict, Optional

import anthropic

from .model_provider import ModelProvider
from .openai_provider import SYSTEM_PROMPT
from ..context import ContextManager
from ..exceptions import IntegrationError

logger = logging.getLogger(__name__)


class AnthropicProvider(ModelProvider):
    """Anthropic provider implementation."""

    DEFAULT_MODEL = "claude-haiku-4-5"

    # Aliases for convenience
    ALIASES = {
        "haiku": "claude-haiku-4-5",
        "sonnet": "claude-sonnet-4-5",
        "opus": "claude-opus-4-5",
    }

    MAX_TOKENS = 1024

    def __init__(self, model_name: Optional[str] = None, api_key: Optional[str] = None):
        self.model_name = self.ALIASES.get(model_name, model_name) or self.DEFAULT_MODEL

        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY environment variable is required. "
                "Get API key at: https://console.anthropic.com/"
            )

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        logger.info(f"AnthropicProvider initialized with model: {self.model_name}")

    def get_model_name(self) -> str:
        return self.model_name

    def resolve_model(self, model: Optional[str]) -> str:
        return self.ALIASES.get(model, model) or self.model_name

    async def complete(
        self,
        prompt_template: str,
        model: Optional[str],
        context: Dict[str, Any],
    ) -> str:
        model_name = self.resolve_model(model)
        prompt = ContextManager(context).render(prompt_template)

        try:
            start_time = time.time()
            response = await self.client.messages.create(
                model=model_name,
                max_tokens=self.MAX_TOKENS,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as e:
            raise IntegrationError(f"Anthropic request failed: {e}", service="anthropic") from e

        answer = "".join(block.text for block in response.content if block.type == "text")
        logger.info(f"Anthropic {model_name} answered in {time.time() - start_time:.2f}s")
        return answer
