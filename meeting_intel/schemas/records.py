"""
Record types exchanged between the pipeline and the store interfaces.

Stores convert their own rows (ORM objects, dicts, Qdrant payloads) into
these models; services never see storage-specific objects.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from meeting_intel.core.run_state import MeetingStatus


class ActionItemPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionItemStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class MeetingRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: Optional[str] = None
    status: Optional[MeetingStatus] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    audio_url: Optional[str] = None
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ActionItemRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    meeting_id: str
    description: str
    priority: ActionItemPriority = ActionItemPriority.MEDIUM
    due_date: Optional[date] = None
    status: ActionItemStatus = ActionItemStatus.PENDING
    created_at: Optional[datetime] = None


class DecisionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    meeting_id: str
    decision_text: str
    context: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    decided_at: Optional[datetime] = None


class TopicRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    meeting_count: int = 0
    last_discussed: Optional[datetime] = None


class EmbeddingChunkRecord(BaseModel):
    """One chunk of a meeting's current embedding generation."""
    model_config = ConfigDict(from_attributes=True)

    meeting_id: str
    chunk_index: int
    chunk_text: str
    embedding: List[float]


class ScoredChunk(BaseModel):
    """A stored chunk with its similarity to a query vector."""
    meeting_id: str
    chunk_index: int
    chunk_text: str
    score: float
