"""
In-memory stores for tests and local runs.

Both stores keep pydantic records in dicts and return copies, so callers
cannot mutate stored state by accident.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Set

from meeting_intel.core.exceptions import NotFoundError, ValidationError
from meeting_intel.core.run_state import MeetingStatus
from meeting_intel.database.models.base import generate_uuid, utc_now
from meeting_intel.schemas.insights import ExtractedActionItem, ExtractedDecision
from meeting_intel.schemas.records import (
    ActionItemRecord,
    DecisionRecord,
    EmbeddingChunkRecord,
    MeetingRecord,
    ScoredChunk,
    TopicRecord,
)
from meeting_intel.store.base import MEETING_FIELDS, EmbeddingStore, MeetingStore, rank_chunks

logger = logging.getLogger(__name__)


class InMemoryMeetingStore(MeetingStore):
    """MeetingStore held in process memory."""

    def __init__(self) -> None:
        self.meetings: Dict[str, MeetingRecord] = {}
        self.action_items: Dict[str, List[ActionItemRecord]] = defaultdict(list)
        self.decisions: Dict[str, List[DecisionRecord]] = defaultdict(list)
        self.topics: Dict[str, TopicRecord] = {}
        self.links: Set[tuple] = set()

    # --- Meetings ---

    async def get_meeting(self, meeting_id: str) -> Optional[MeetingRecord]:
        meeting = self.meetings.get(meeting_id)
        return meeting.model_copy() if meeting else None

    async def create_meeting(
        self,
        meeting_id: str,
        title: Optional[str] = None,
        audio_url: Optional[str] = None,
    ) -> MeetingRecord:
        if meeting_id in self.meetings:
            return self.meetings[meeting_id].model_copy()

        now = utc_now()
        meeting = MeetingRecord(
            id=meeting_id,
            title=title,
            audio_url=audio_url,
            created_at=now,
            updated_at=now,
        )
        self.meetings[meeting_id] = meeting
        return meeting.model_copy()

    async def update_meeting(self, meeting_id: str, **fields: Any) -> MeetingRecord:
        unknown = set(fields) - MEETING_FIELDS
        if unknown:
            raise ValidationError(f"Unknown meeting fields: {sorted(unknown)}")

        meeting = self.meetings.get(meeting_id)
        if meeting is None:
            raise NotFoundError("Meeting", meeting_id)

        updated = meeting.model_copy(update={**fields, "updated_at": utc_now()})
        # model_copy skips validation; keep status typed
        if updated.status is not None and not isinstance(updated.status, MeetingStatus):
            updated.status = MeetingStatus(updated.status)
        self.meetings[meeting_id] = updated
        return updated.model_copy()

    async def list_meetings_by_status(self, status: MeetingStatus) -> List[MeetingRecord]:
        matches = [m for m in self.meetings.values() if m.status == status]
        return [m.model_copy() for m in sorted(matches, key=lambda m: m.updated_at)]

    async def list_recent_summaries(self, limit: int = 3) -> List[str]:
        with_summary = [m for m in self.meetings.values() if m.summary]
        with_summary.sort(key=lambda m: m.created_at, reverse=True)
        return [m.summary for m in with_summary[:limit]]

    async def get_meetings(self, meeting_ids: Sequence[str]) -> Dict[str, MeetingRecord]:
        return {
            mid: self.meetings[mid].model_copy()
            for mid in meeting_ids
            if mid in self.meetings
        }

    # --- Action items ---

    async def add_action_item(self, meeting_id: str, item: ExtractedActionItem) -> ActionItemRecord:
        record = ActionItemRecord(
            id=generate_uuid(),
            meeting_id=meeting_id,
            description=item.description,
            priority=item.priority,
            due_date=item.due_date,
            created_at=utc_now(),
        )
        self.action_items[meeting_id].append(record)
        return record.model_copy()

    async def list_action_items(self, meeting_id: str) -> List[ActionItemRecord]:
        return [r.model_copy() for r in self.action_items.get(meeting_id, [])]

    async def delete_action_items(self, meeting_id: str) -> int:
        return len(self.action_items.pop(meeting_id, []))

    # --- Decisions ---

    async def add_decision(self, meeting_id: str, decision: ExtractedDecision) -> DecisionRecord:
        record = DecisionRecord(
            id=generate_uuid(),
            meeting_id=meeting_id,
            decision_text=decision.decision_text,
            context=decision.context,
            tags=list(decision.tags),
            decided_at=utc_now(),
        )
        self.decisions[meeting_id].append(record)
        return record.model_copy()

    async def list_decisions(self, meeting_id: str) -> List[DecisionRecord]:
        return [r.model_copy() for r in self.decisions.get(meeting_id, [])]

    async def delete_decisions(self, meeting_id: str) -> int:
        return len(self.decisions.pop(meeting_id, []))

    # --- Topics ---

    async def get_topic_by_name(self, name: str) -> Optional[TopicRecord]:
        for topic in self.topics.values():
            if topic.name == name:
                return topic.model_copy()
        return None

    async def create_topic(self, name: str) -> Optional[TopicRecord]:
        if any(t.name == name for t in self.topics.values()):
            return None
        topic = TopicRecord(id=generate_uuid(), name=name, meeting_count=1, last_discussed=utc_now())
        self.topics[topic.id] = topic
        return topic.model_copy()

    async def increment_topic(self, topic_id: str) -> TopicRecord:
        topic = self.topics.get(topic_id)
        if topic is None:
            raise NotFoundError("Topic", topic_id)
        topic.meeting_count += 1
        topic.last_discussed = utc_now()
        return topic.model_copy()

    async def link_topic(self, meeting_id: str, topic_id: str) -> bool:
        key = (meeting_id, topic_id)
        if key in self.links:
            return False
        self.links.add(key)
        return True

    async def list_meeting_topics(self, meeting_id: str) -> List[TopicRecord]:
        topics = [self.topics[tid] for mid, tid in self.links if mid == meeting_id and tid in self.topics]
        return [t.model_copy() for t in sorted(topics, key=lambda t: t.name)]

    async def delete_topic_links(self, meeting_id: str) -> int:
        doomed = {link for link in self.links if link[0] == meeting_id}
        self.links -= doomed
        return len(doomed)

    async def ping(self) -> bool:
        return True


class InMemoryEmbeddingStore(EmbeddingStore):
    """EmbeddingStore with a linear scan over process memory."""

    def __init__(self) -> None:
        self.chunks: Dict[str, List[EmbeddingChunkRecord]] = {}

    async def replace_chunks(self, meeting_id: str, chunks: Sequence[EmbeddingChunkRecord]) -> int:
        # A single assignment swaps the whole generation
        new_generation = [c.model_copy(update={"meeting_id": meeting_id}) for c in chunks]
        if new_generation:
            self.chunks[meeting_id] = new_generation
        else:
            self.chunks.pop(meeting_id, None)
        return len(new_generation)

    async def delete_chunks(self, meeting_id: str) -> int:
        return len(self.chunks.pop(meeting_id, []))

    async def list_chunks(self, meeting_id: str) -> List[EmbeddingChunkRecord]:
        return [c.model_copy() for c in self.chunks.get(meeting_id, [])]

    async def top_chunks(
        self,
        query_vector: Sequence[float],
        limit: int,
        one_per_meeting: bool = False,
    ) -> List[ScoredChunk]:
        everything = [chunk for generation in self.chunks.values() for chunk in generation]
        return rank_chunks(query_vector, everything, limit, one_per_meeting)
