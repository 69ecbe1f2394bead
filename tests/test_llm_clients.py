"""
Tests for the Gemini and Ollama clients and the provider factory.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from meeting_intel.core.config import Settings
from meeting_intel.core.exceptions import ConfigurationError, ProviderError
from meeting_intel.llm.factory import create_llm_provider
from meeting_intel.llm.gemini import GeminiClient
from meeting_intel.llm.ollama import OllamaClient


# ============== Fixtures ==============

@pytest.fixture
def gemini_client():
    return GeminiClient(api_key="test-key", model="gemini-test", embedding_model="embed-test")


@pytest.fixture
def ollama_client():
    return OllamaClient(base_url="http://ollama.test:11434", model="llama-test", embedding_model="embed-test")


def make_response(body) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.raise_for_status = MagicMock()
    response.json.return_value = body
    return response


def make_status_error(status_code: int, text: str) -> httpx.HTTPStatusError:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return httpx.HTTPStatusError("error", request=MagicMock(), response=response)


# ============== Gemini ==============

class TestGeminiClient:
    """Tests for GeminiClient."""

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            GeminiClient(api_key="")

    @pytest.mark.asyncio
    async def test_generate_joins_parts(self, gemini_client):
        body = {"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "world"}]}}]}

        with patch.object(gemini_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response(body)

            text = await gemini_client.generate("Say hello")

        assert text == "Hello world"
        args, kwargs = mock_post.call_args
        assert args[0].endswith("/models/gemini-test:generateContent")
        assert kwargs["headers"] == {"x-goog-api-key": "test-key"}
        assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "Say hello"

    @pytest.mark.asyncio
    async def test_generate_blocked_prompt(self, gemini_client):
        body = {"candidates": [], "promptFeedback": {"blockReason": "SAFETY"}}

        with patch.object(gemini_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response(body)

            with pytest.raises(ProviderError, match="SAFETY"):
                await gemini_client.generate("prompt")

    @pytest.mark.asyncio
    async def test_generate_http_error(self, gemini_client):
        response = make_response({})
        response.raise_for_status.side_effect = make_status_error(429, "quota exceeded")

        with patch.object(gemini_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = response

            with pytest.raises(ProviderError) as exc_info:
                await gemini_client.generate("prompt")

        assert exc_info.value.details["status_code"] == 429
        assert exc_info.value.service == "gemini"
        # HTTP error statuses are not retried
        mock_post.assert_called_once()

    @pytest.mark.asyncio
    async def test_embed(self, gemini_client):
        with patch.object(gemini_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response({"embedding": {"values": [0.1, 0.2, 0.3]}})

            vector = await gemini_client.embed("pricing review")

        assert vector == [0.1, 0.2, 0.3]
        assert mock_post.call_args.args[0].endswith("/models/embed-test:embedContent")

    @pytest.mark.asyncio
    async def test_embed_without_vector(self, gemini_client):
        with patch.object(gemini_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response({})

            with pytest.raises(ProviderError, match="no vector"):
                await gemini_client.embed("text")


# ============== Ollama ==============

class TestOllamaClient:
    """Tests for OllamaClient."""

    def test_timeout_config(self, ollama_client):
        assert ollama_client.timeout.connect == 5.0
        assert ollama_client.timeout.read == 600.0  # 10 minutes for generation

    def test_headers_without_key(self, ollama_client):
        assert ollama_client._get_headers() == {}

    def test_headers_with_key(self):
        client = OllamaClient(api_key="cloud-key")

        assert client._get_headers() == {"Authorization": "Bearer cloud-key"}

    @pytest.mark.asyncio
    async def test_generate_success(self, ollama_client):
        with patch.object(ollama_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response({"response": "  Generated text response  "})

            result = await ollama_client.generate("Test prompt")

        assert result == "Generated text response"
        args, kwargs = mock_post.call_args
        assert args[0] == "http://ollama.test:11434/api/generate"
        assert kwargs["json"]["model"] == "llama-test"
        assert kwargs["json"]["stream"] is False

    @pytest.mark.asyncio
    async def test_generate_empty_response(self, ollama_client):
        with patch.object(ollama_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response({"response": ""})

            with pytest.raises(ProviderError, match="empty response"):
                await ollama_client.generate("Test prompt")

    @pytest.mark.asyncio
    async def test_generate_model_not_found(self, ollama_client):
        response = make_response({})
        response.raise_for_status.side_effect = make_status_error(404, "model not found")

        with patch.object(ollama_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = response

            with pytest.raises(ProviderError, match="404"):
                await ollama_client.generate("Test prompt")

    @pytest.mark.asyncio
    async def test_embed(self, ollama_client):
        with patch.object(ollama_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response({"embedding": [1, 2, 3]})

            vector = await ollama_client.embed("budget\x00 review")

        assert vector == [1.0, 2.0, 3.0]
        assert mock_post.call_args.kwargs["json"] == {"model": "embed-test", "prompt": "budget review"}


# ============== Factory ==============

class TestCreateLLMProvider:
    """Tests for create_llm_provider."""

    @pytest.mark.asyncio
    async def test_gemini(self):
        provider = create_llm_provider(Settings(_env_file=None, LLM_PROVIDER="gemini", GEMINI_API_KEY="k"))

        assert isinstance(provider, GeminiClient)
        await provider.close()

    @pytest.mark.asyncio
    async def test_ollama(self):
        provider = create_llm_provider(Settings(_env_file=None, LLM_PROVIDER="ollama", LLM_NUM_CTX=4096))

        assert isinstance(provider, OllamaClient)
        assert provider.num_ctx == 4096
        await provider.close()

    def test_gemini_without_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(ConfigurationError):
            create_llm_provider(Settings(_env_file=None, LLM_PROVIDER="gemini"))
