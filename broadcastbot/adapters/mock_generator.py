"""
Mock Text Generator Adapter

A scripted implementation of TextGenerationProvider for tests and dry-run mode.
Replays the configured responses in order, then repeats the last one.
"""

import logging
from typing import List, Optional
from broadcastbot.core.interfaces import TextGenerationProvider
from broadcastbot.core.models import ModelClass

logger = logging.getLogger(__name__)


class MockTextGenerator(TextGenerationProvider):
    """Mock generator that answers from a fixed script."""

    def __init__(self, responses: Optional[List[str]] = None, max_output_tokens: int = 8192):
        """
        Initialize mock generator.

        Args:
            responses: Texts returned by successive calls. Defaults to a single canned summary.
        """
        self.responses = list(responses) if responses else ["Mock summary - no model was called."]
        self.max_output_tokens = max_output_tokens
        self.prompts: List[str] = []
        logger.info(f"🤖 MockTextGenerator initialized ({len(self.responses)} scripted responses)")

    async def generate_text(self, context: str, model_class: ModelClass = ModelClass.SMALL) -> str:
        self.prompts.append(context)
        index = min(len(self.prompts) - 1, len(self.responses) - 1)
        logger.info(f"🤖 [MOCK] Generating text ({model_class.value}), call #{len(self.prompts)}")
        return self.responses[index]
