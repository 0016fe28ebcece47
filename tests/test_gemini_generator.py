"""Tests for the Gemini text generator."""
import httpx
import pytest

from broadcastbot.adapters.gemini_generator import GeminiTextGenerator
from broadcastbot.core.errors import TransportError, MalformedResponseError
from broadcastbot.core.models import ModelClass

from conftest import mock_http_client, request_json


def gemini_reply(*texts):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


class TestGeminiTextGenerator:
    @pytest.mark.asyncio
    async def test_sends_prompt_and_joins_parts(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=gemini_reply("Hello ", "world"))

        generator = GeminiTextGenerator("key-123", model="gemini-test", max_output_tokens=512, http_client=mock_http_client(handler))

        text = await generator.generate_text("Summarize this", ModelClass.SMALL)

        assert text == "Hello world"
        request = requests[0]
        assert request.url.path.endswith("/models/gemini-test:generateContent")
        assert request.url.params["key"] == "key-123"
        body = request_json(request)
        assert body["contents"][0]["parts"][0]["text"] == "Summarize this"
        assert body["generationConfig"]["maxOutputTokens"] == 512

    @pytest.mark.asyncio
    async def test_retries_rate_limit(self):
        responses = [httpx.Response(429), httpx.Response(200, json=gemini_reply("ok"))]
        calls = []

        def handler(request):
            calls.append(request)
            return responses[len(calls) - 1]

        generator = GeminiTextGenerator("key", http_client=mock_http_client(handler), base_delay=0)

        assert await generator.generate_text("prompt") == "ok"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        generator = GeminiTextGenerator("key", http_client=mock_http_client(lambda r: httpx.Response(500, text="oops")))

        with pytest.raises(TransportError, match="HTTP 500"):
            await generator.generate_text("prompt")

    @pytest.mark.asyncio
    async def test_no_candidates_is_malformed(self):
        generator = GeminiTextGenerator("key", http_client=mock_http_client(lambda r: httpx.Response(200, json={"candidates": []})))

        with pytest.raises(MalformedResponseError):
            await generator.generate_text("prompt")

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        generator = GeminiTextGenerator(None)

        with pytest.raises(TransportError, match="not configured"):
            await generator.generate_text("prompt")
