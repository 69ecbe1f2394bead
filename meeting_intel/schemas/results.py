from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from meeting_intel.core.run_state import MeetingStatus


class MeetingProcessingResult(BaseModel):
    """Outcome of one process_new / reprocess call. Never raised, always returned."""
    meeting_id: str
    success: bool
    status: Optional[MeetingStatus] = None
    error: Optional[str] = None
    action_items_count: int = 0
    decisions_count: int = 0
    topics_count: int = 0
    chunks_indexed: int = 0
    chunks_failed: int = 0
    duration_ms: float = 0.0


class IndexingResult(BaseModel):
    chunks_total: int = 0
    chunks_indexed: int = 0
    chunks_failed: int = 0


class SearchResult(BaseModel):
    meeting_id: str
    snippet: str
    relevance: float


class SearchResultWithMetadata(SearchResult):
    title: str = "Unknown"
    meeting_date: str = ""


class AnswerSource(BaseModel):
    meeting_id: str
    snippet: str


class QAResult(BaseModel):
    answer: str
    sources: List[AnswerSource] = Field(default_factory=list)


class BatchItem(BaseModel):
    """One entry of a batch_process call."""
    meeting_id: str
    audio_url: str


class HealthStatus(BaseModel):
    healthy: bool
    services: Dict[str, bool]
    timestamp: str
