from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from meeting_intel.core.exceptions import ConfigurationError, ProviderError
from meeting_intel.transcription.base import TranscriptionProvider, TranscriptJob

logger = logging.getLogger(__name__)

SERVICE_NAME = "assemblyai"

# Transient network failures only; HTTP error statuses are not retried
assemblyai_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout, ConnectionError)),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class AssemblyAIClient(TranscriptionProvider):
    """
    AssemblyAI REST client.

    POST {base_url}/transcript submits a job, GET {base_url}/transcript/{id}
    reads its state. The API key goes in the Authorization header as-is.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.assemblyai.com/v2",
        timeout: Optional[httpx.Timeout] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("ASSEMBLYAI_API_KEY")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or httpx.Timeout(connect=5.0, read=30.0, write=10.0, pool=10.0)
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            limits=httpx.Limits(max_connections=5, max_keepalive_connections=2),
        )

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.api_key,
            "Content-Type": "application/json",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self.client.aclose()

    async def __aenter__(self) -> "AssemblyAIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return response.text or f"HTTP {response.status_code}"

    def _check(self, response: httpx.Response, action: str) -> Dict[str, Any]:
        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(f"AssemblyAI {action} failed: HTTP {response.status_code} - {message}")
            raise ProviderError(
                SERVICE_NAME,
                f"{action} failed: {message}",
                details={"status_code": response.status_code},
            )
        return response.json()

    @assemblyai_retry
    async def submit(self, audio_url: str) -> str:
        logger.info("Submitting audio to AssemblyAI")
        response = await self.client.post(
            f"{self.base_url}/transcript",
            json={"audio_url": audio_url, "language_detection": True},
            headers=self._get_headers(),
        )
        data = self._check(response, "submit")

        job_id = data.get("id")
        if not job_id:
            raise ProviderError(SERVICE_NAME, "submit response did not include a job id")

        logger.info(f"Transcription job {job_id} submitted")
        return job_id

    @assemblyai_retry
    async def poll(self, job_id: str) -> TranscriptJob:
        response = await self.client.get(
            f"{self.base_url}/transcript/{job_id}",
            headers=self._get_headers(),
        )
        data = self._check(response, "poll")

        return TranscriptJob(
            id=data.get("id", job_id),
            status=data.get("status", "unknown"),
            text=data.get("text"),
            error=data.get("error"),
        )
