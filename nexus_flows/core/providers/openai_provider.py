"""
OpenAI Model Provider

Implements ModelProvider with the OpenAI chat completions API.
"""

import os
import time
import logging
from typing import Any, Dict, Optional

import openai

from .model_provider import ModelProvider
from ..context import ContextManager
from ..exceptions import IntegrationError

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are the automation assistant of a business management platform. "
    "Answer concisely; your answer is stored in the flow context as aiOutput."
)


class OpenAIProvider(ModelProvider):
    """OpenAI provider implementation."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(self, model_name: Optional[str] = None, api_key: Optional[str] = None):
        """
        Initialize OpenAI provider.

        Args:
            model_name: Default model (e.g., "gpt-4o-mini")
            api_key: Optional OpenAI API key (or use OPENAI_API_KEY env var)

        Raises:
            ValueError: If no API key is configured
        """
        self.model_name = model_name or self.DEFAULT_MODEL

        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError(
                "OPENAI_API_KEY environment variable is required. "
                "Get API key at: https://platform.openai.com/api-keys"
            )

        self.client = openai.AsyncOpenAI(api_key=api_key)
        logger.info(f"OpenAIProvider initialized with model: {self.model_name}")

    def get_model_name(self) -> str:
        return self.model_name

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
            response = await self.client.chat.completions.create(
                model=model_name,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.OpenAIError as e:
            raise IntegrationError(f"OpenAI request failed: {e}", service="openai") from e

        answer = response.choices[0].message.content or ""
        logger.info(f"OpenAI {model_name} answered in {time.time() - start_time:.2f}s")
        return answer
