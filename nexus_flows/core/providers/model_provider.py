"""
Model Provider Abstract Interface

Defines the contract for the LLM providers used by AI nodes
(OpenAI, Anthropic, or the static placeholder).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class ModelProvider(ABC):
    """
    Abstract interface for LLM providers.

    All providers must implement:
    1. complete() - Answer a prompt template rendered with the flow context
    2. get_model_name() - Return the default model identifier
    """

    @abstractmethod
    async def complete(
        self,
        prompt_template: str,
        model: Optional[str],
        context: Dict[str, Any],
    ) -> str:
        """
        Answer the prompt.

        Args:
            prompt_template: Prompt with {{key}} placeholders
            model: Model requested by the node, or None for the provider default
            context: Current flow context (values for the placeholders)

        Returns:
            The model's text answer

        Raises:
            IntegrationError: If the provider call fails
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """
        Get the default model identifier.

        Example:
            >>> provider = OpenAIProvider("gpt-4o-mini")
            >>> provider.get_model_name()
            "gpt-4o-mini"
        """
        pass

    def resolve_model(self, model: Optional[str]) -> str:
        return model or self.get_model_name()
