"""
Submit-and-poll transcription.

Transcription jobs run on the provider side for minutes. The client
submits once, then polls on a fixed interval until the job completes,
reports an error, or the attempt budget runs out.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from meeting_intel.core.exceptions import (
    ProviderError,
    TranscriptionTimeoutError,
    ValidationError,
)
from meeting_intel.transcription.base import TranscriptionProvider

logger = logging.getLogger(__name__)


class TranscriptionClient:
    def __init__(
        self,
        provider: TranscriptionProvider,
        poll_interval_seconds: float = 5.0,
        max_poll_attempts: int = 60,
    ) -> None:
        self.provider = provider
        self.poll_interval_seconds = poll_interval_seconds
        self.max_poll_attempts = max_poll_attempts

    async def transcribe(self, audio_ref: str) -> str:
        """
        Transcribe an audio reference to text.

        Raises:
            ValidationError: empty audio reference
            ProviderError: provider reported an error or the request failed
            TranscriptionTimeoutError: job not completed within the poll budget
        """
        if not audio_ref or not audio_ref.strip():
            raise ValidationError("Audio reference is required", field="audio_ref")

        try:
            job_id = await self.provider.submit(audio_ref.strip())
        except httpx.HTTPError as e:
            raise ProviderError("transcription", f"submit failed: {e}") from e

        for attempt in range(1, self.max_poll_attempts + 1):
            if attempt > 1:
                await asyncio.sleep(self.poll_interval_seconds)

            try:
                job = await self.provider.poll(job_id)
            except httpx.HTTPError as e:
                raise ProviderError("transcription", f"poll failed: {e}") from e

            if job.is_completed:
                logger.info(f"Transcription job {job_id} completed after {attempt} polls")
                return job.text or ""

            if job.is_error:
                logger.error(f"Transcription job {job_id} failed: {job.error}")
                raise ProviderError("transcription", job.error or "Transcription failed")

            logger.debug(
                f"Transcription job {job_id} is {job.status} "
                f"(poll {attempt}/{self.max_poll_attempts})"
            )

        raise TranscriptionTimeoutError(job_id, self.max_poll_attempts, self.poll_interval_seconds)
