from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class TranscriptJob(BaseModel):
    """Provider-side state of one transcription job."""
    id: str
    status: str
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_error(self) -> bool:
        return self.status == "error"


class TranscriptionProvider(ABC):
    """Asynchronous speech-to-text service with submit/poll jobs."""

    @abstractmethod
    async def submit(self, audio_url: str) -> str:
        """Submit an audio reference and return the provider job id."""

    @abstractmethod
    async def poll(self, job_id: str) -> TranscriptJob:
        """Fetch the current state of a job."""

    async def close(self) -> None:
        return None
