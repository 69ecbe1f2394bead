"""
Persistence interfaces consumed by the pipeline and retrieval services.

MeetingStore holds meetings, insights and topics. EmbeddingStore holds
chunk generations and ranks them against a query vector. Keeping them
apart lets the vectors live in an indexed store (Qdrant) while the rest
stays relational.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence

from meeting_intel.core.run_state import MeetingStatus
from meeting_intel.schemas.insights import ExtractedActionItem, ExtractedDecision
from meeting_intel.schemas.records import (
    ActionItemRecord,
    DecisionRecord,
    EmbeddingChunkRecord,
    MeetingRecord,
    ScoredChunk,
    TopicRecord,
)
from meeting_intel.utils.similarity import cosine_scores

# Columns update_meeting accepts
MEETING_FIELDS = frozenset({"title", "status", "transcript", "summary", "audio_url", "last_error"})


class MeetingStore(ABC):
    # --- Meetings ---

    @abstractmethod
    async def get_meeting(self, meeting_id: str) -> Optional[MeetingRecord]:
        ...

    @abstractmethod
    async def create_meeting(
        self,
        meeting_id: str,
        title: Optional[str] = None,
        audio_url: Optional[str] = None,
    ) -> MeetingRecord:
        ...

    @abstractmethod
    async def update_meeting(self, meeting_id: str, **fields: Any) -> MeetingRecord:
        """
        Write the given columns; None clears a column.

        Raises:
            NotFoundError: no such meeting
        """

    @abstractmethod
    async def list_meetings_by_status(self, status: MeetingStatus) -> List[MeetingRecord]:
        ...

    @abstractmethod
    async def list_recent_summaries(self, limit: int = 3) -> List[str]:
        """Summaries of the most recent meetings that have one, newest first."""

    @abstractmethod
    async def get_meetings(self, meeting_ids: Sequence[str]) -> Dict[str, MeetingRecord]:
        ...

    # --- Action items ---

    @abstractmethod
    async def add_action_item(self, meeting_id: str, item: ExtractedActionItem) -> ActionItemRecord:
        ...

    @abstractmethod
    async def list_action_items(self, meeting_id: str) -> List[ActionItemRecord]:
        ...

    @abstractmethod
    async def delete_action_items(self, meeting_id: str) -> int:
        ...

    # --- Decisions ---

    @abstractmethod
    async def add_decision(self, meeting_id: str, decision: ExtractedDecision) -> DecisionRecord:
        ...

    @abstractmethod
    async def list_decisions(self, meeting_id: str) -> List[DecisionRecord]:
        ...

    @abstractmethod
    async def delete_decisions(self, meeting_id: str) -> int:
        ...

    # --- Topics ---

    @abstractmethod
    async def get_topic_by_name(self, name: str) -> Optional[TopicRecord]:
        ...

    @abstractmethod
    async def create_topic(self, name: str) -> Optional[TopicRecord]:
        """
        Create a topic with meeting_count = 1.

        Returns None if a topic with this name already exists.
        """

    @abstractmethod
    async def increment_topic(self, topic_id: str) -> TopicRecord:
        """Atomically add one to meeting_count and set last_discussed to now."""

    @abstractmethod
    async def link_topic(self, meeting_id: str, topic_id: str) -> bool:
        """Link a topic to a meeting; False if the link already existed."""

    @abstractmethod
    async def list_meeting_topics(self, meeting_id: str) -> List[TopicRecord]:
        ...

    @abstractmethod
    async def delete_topic_links(self, meeting_id: str) -> int:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        return None


class EmbeddingStore(ABC):
    @abstractmethod
    async def replace_chunks(self, meeting_id: str, chunks: Sequence[EmbeddingChunkRecord]) -> int:
        """
        Replace the meeting's chunk generation in one transaction.

        Readers see either the old generation or the new one, never a mix.
        """

    @abstractmethod
    async def delete_chunks(self, meeting_id: str) -> int:
        ...

    @abstractmethod
    async def list_chunks(self, meeting_id: str) -> List[EmbeddingChunkRecord]:
        ...

    @abstractmethod
    async def top_chunks(
        self,
        query_vector: Sequence[float],
        limit: int,
        one_per_meeting: bool = False,
    ) -> List[ScoredChunk]:
        """
        Best-scoring chunks by cosine similarity, highest first.

        With one_per_meeting, only each meeting's best chunk is kept.
        """

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


def rank_chunks(
    query_vector: Sequence[float],
    chunks: Iterable[EmbeddingChunkRecord],
    limit: int,
    one_per_meeting: bool = False,
) -> List[ScoredChunk]:
    """
    Full-scan ranking shared by the scan-based stores.

    Sorting is stable, so equal scores keep their stored order.
    """
    candidates = list(chunks)
    if limit < 1 or not candidates:
        return []
    scores = cosine_scores(query_vector, [c.embedding for c in candidates])

    ranked = sorted(zip(candidates, scores), key=lambda pair: pair[1], reverse=True)

    results: List[ScoredChunk] = []
    seen = set()
    for chunk, score in ranked:
        if one_per_meeting:
            if chunk.meeting_id in seen:
                continue
            seen.add(chunk.meeting_id)
        results.append(
            ScoredChunk(
                meeting_id=chunk.meeting_id,
                chunk_index=chunk.chunk_index,
                chunk_text=chunk.chunk_text,
                score=score,
            )
        )
        if len(results) >= limit:
            break
    return results
