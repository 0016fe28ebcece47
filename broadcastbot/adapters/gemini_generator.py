"""
Text Generator Adapter - Gemini Implementation

Implements TextGenerationProvider using Google's Gemini API.
"""

import asyncio
import logging
import httpx
from typing import Optional
from broadcastbot.core.interfaces import TextGenerationProvider
from broadcastbot.core.models import ModelClass
from broadcastbot.core.errors import TransportError, MalformedResponseError

logger = logging.getLogger(__name__)

# Sampling per model class; SMALL drives the summarisation calls
GENERATION_CONFIG = {
    ModelClass.SMALL: {"temperature": 0.3, "topP": 0.8},
    ModelClass.MEDIUM: {"temperature": 0.5, "topP": 0.9},
    ModelClass.LARGE: {"temperature": 0.7, "topP": 0.95},
}


class GeminiTextGenerator(TextGenerationProvider):
    """Gemini-based implementation of text generation."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.0-flash",
        max_output_tokens: int = 8192,
        http_client: Optional[httpx.AsyncClient] = None,
        max_retries: int = 3,
        base_delay: float = 1.0
    ):
        if not api_key:
            logger.warning("GEMINI_API_KEY not set - text generation will fail")
        self.api_key = api_key
        self.model = model
        self.model_name = model
        self.max_output_tokens = max_output_tokens
        self.base_url = "https://generativelanguage.googleapis.com/v1beta"
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._http_client = http_client

    async def _post(self, body: dict) -> httpx.Response:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        if self._http_client is not None:
            return await self._http_client.post(url, params={"key": self.api_key}, json=body)
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await client.post(url, params={"key": self.api_key}, json=body)

    async def generate_text(self, context: str, model_class: ModelClass = ModelClass.SMALL) -> str:
        """
        Generate text for a rendered prompt.

        Retries with exponential backoff on rate limiting and timeouts.
        """
        if not self.api_key:
            raise TransportError("Gemini API key is not configured")

        body = {
            "contents": [{"parts": [{"text": context}]}],
            "generationConfig": {
                **GENERATION_CONFIG[model_class],
                "maxOutputTokens": self.max_output_tokens,
            },
        }

        for attempt in range(self.max_retries):
            try:
                response = await self._post(body)
            except httpx.TimeoutException:
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(f"Gemini API timeout, retrying in {delay}s (attempt {attempt + 1}/{self.max_retries})")
                    await asyncio.sleep(delay)
                    continue
                raise TransportError("Gemini API timeout after max retries")
            except httpx.HTTPError as e:
                raise TransportError(f"Gemini API error: {e}") from e

            if response.status_code == 429:
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(f"🚦 Rate limited by Gemini API, retrying in {delay}s (attempt {attempt + 1}/{self.max_retries})")
                    await asyncio.sleep(delay)
                    continue
                raise TransportError("Gemini rate limit persists after max retries")

            if response.status_code != 200:
                logger.error(f"Gemini API error: {response.status_code} - {response.text}")
                raise TransportError(f"Gemini API error: HTTP {response.status_code}")

            return self._extract_text(response.json())

        raise TransportError("Gemini API request was not attempted")

    def _extract_text(self, data: dict) -> str:
        candidates = data.get("candidates", [])
        if not candidates:
            raise MalformedResponseError("No candidates in Gemini response")
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)
