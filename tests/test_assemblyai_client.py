"""
Tests for the AssemblyAI REST client.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from meeting_intel.core.exceptions import ConfigurationError, ProviderError
from meeting_intel.transcription.assemblyai import AssemblyAIClient


# ============== Fixtures ==============

@pytest.fixture
def assemblyai_client():
    """Create AssemblyAI client for testing."""
    return AssemblyAIClient(api_key="test-key", base_url="https://api.assemblyai.test/v2/")


def make_response(status_code: int, body) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    response.text = str(body)
    return response


# ============== Tests ==============

class TestAssemblyAIClient:
    """Tests for AssemblyAIClient."""

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError, match="ASSEMBLYAI_API_KEY"):
            AssemblyAIClient(api_key=None)

    def test_base_url_is_normalized(self, assemblyai_client):
        assert assemblyai_client.base_url == "https://api.assemblyai.test/v2"

    @pytest.mark.asyncio
    async def test_submit(self, assemblyai_client):
        with patch.object(assemblyai_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response(200, {"id": "tx-123", "status": "queued"})

            job_id = await assemblyai_client.submit("https://audio.example.com/call.mp3")

        assert job_id == "tx-123"
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.assemblyai.test/v2/transcript"
        assert kwargs["json"] == {
            "audio_url": "https://audio.example.com/call.mp3",
            "language_detection": True,
        }
        assert kwargs["headers"]["Authorization"] == "test-key"

    @pytest.mark.asyncio
    async def test_submit_http_error(self, assemblyai_client):
        with patch.object(assemblyai_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response(401, {"error": "Invalid API key"})

            with pytest.raises(ProviderError) as exc_info:
                await assemblyai_client.submit("https://audio.example.com/call.mp3")

        assert "Invalid API key" in exc_info.value.message
        assert exc_info.value.details["status_code"] == 401

    @pytest.mark.asyncio
    async def test_submit_without_job_id(self, assemblyai_client):
        with patch.object(assemblyai_client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = make_response(200, {"status": "queued"})

            with pytest.raises(ProviderError, match="job id"):
                await assemblyai_client.submit("https://audio.example.com/call.mp3")

    @pytest.mark.asyncio
    async def test_poll_completed(self, assemblyai_client):
        with patch.object(assemblyai_client.client, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(
                200, {"id": "tx-123", "status": "completed", "text": "Hello everyone"}
            )

            job = await assemblyai_client.poll("tx-123")

        assert job.is_completed
        assert job.text == "Hello everyone"
        assert mock_get.call_args.args[0] == "https://api.assemblyai.test/v2/transcript/tx-123"

    @pytest.mark.asyncio
    async def test_poll_error_status(self, assemblyai_client):
        with patch.object(assemblyai_client.client, "get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(
                200, {"id": "tx-123", "status": "error", "error": "Unsupported audio format"}
            )

            job = await assemblyai_client.poll("tx-123")

        assert job.is_error
        assert job.error == "Unsupported audio format"

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self):
        async with AssemblyAIClient(api_key="test-key") as client:
            assert client.client is not None
        assert client.client.is_closed
