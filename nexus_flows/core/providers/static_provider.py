"""
Static Model Provider

Placeholder provider used when no AI backend is configured: it never
leaves the process and answers with a fixed text.
"""

from typing import Any, Dict, Optional

from .model_provider import ModelProvider

STATIC_RESPONSE = "AI Response Placeholder"


class StaticProvider(ModelProvider):

    def __init__(self, response: str = STATIC_RESPONSE, model_name: str = "static"):
        self.response = response
        self.model_name = model_name

    def get_model_name(self) -> str:
        return self.model_name

    async def complete(
        self,
        prompt_template: str,
        model: Optional[str],
        context: Dict[str, Any],
    ) -> str:
        return self.response
