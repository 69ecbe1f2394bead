"""
SQLAlchemy-backed stores.

Every method runs in its own short transaction via session_scope, so a
failure in one insight or link never rolls back another. Ranking is a
linear scan with numpy over all stored chunks.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from meeting_intel.core.exceptions import NotFoundError, StoreError, ValidationError
from meeting_intel.core.run_state import MeetingStatus
from meeting_intel.database.connection import create_session_factory, ping, session_scope
from meeting_intel.database.models import Meeting
from meeting_intel.repositories import (
    ActionItemRepository,
    DecisionRepository,
    EmbeddingRepository,
    MeetingRepository,
    TopicRepository,
)
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


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _meeting_record(row: Meeting) -> MeetingRecord:
    record = MeetingRecord.model_validate(row)
    record.created_at = _as_utc(record.created_at)
    record.updated_at = _as_utc(record.updated_at)
    return record


class _SQLStoreBase:
    def __init__(self, engine: AsyncEngine, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self.engine = engine
        self.session_factory = session_factory or create_session_factory(engine)

    def _session(self):
        return session_scope(self.session_factory)

    async def ping(self) -> bool:
        return await ping(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()


class SQLMeetingStore(_SQLStoreBase, MeetingStore):
    """MeetingStore over the meetings / action_items / decisions / topics tables."""

    # --- Meetings ---

    async def get_meeting(self, meeting_id: str) -> Optional[MeetingRecord]:
        async with self._session() as session:
            row = await MeetingRepository(session).get_by_id(meeting_id)
            return _meeting_record(row) if row else None

    async def create_meeting(
        self,
        meeting_id: str,
        title: Optional[str] = None,
        audio_url: Optional[str] = None,
    ) -> MeetingRecord:
        try:
            async with self._session() as session:
                repo = MeetingRepository(session)
                existing = await repo.get_by_id(meeting_id)
                if existing is not None:
                    return _meeting_record(existing)
                row = await repo.create(id=meeting_id, title=title, audio_url=audio_url)
                return _meeting_record(row)
        except IntegrityError:
            # Created concurrently; the existing row wins
            existing = await self.get_meeting(meeting_id)
            if existing is None:
                raise StoreError(f"Could not create meeting {meeting_id}", operation="create_meeting")
            return existing

    async def update_meeting(self, meeting_id: str, **fields: Any) -> MeetingRecord:
        unknown = set(fields) - MEETING_FIELDS
        if unknown:
            raise ValidationError(f"Unknown meeting fields: {sorted(unknown)}")

        async with self._session() as session:
            row = await MeetingRepository(session).update(meeting_id, **fields)
            if row is None:
                raise NotFoundError("Meeting", meeting_id)
            return _meeting_record(row)

    async def list_meetings_by_status(self, status: MeetingStatus) -> List[MeetingRecord]:
        async with self._session() as session:
            rows = await MeetingRepository(session).list_by_status(status)
            return [_meeting_record(r) for r in rows]

    async def list_recent_summaries(self, limit: int = 3) -> List[str]:
        async with self._session() as session:
            rows = await MeetingRepository(session).list_recent_with_summary(limit)
            return [r.summary for r in rows if r.summary]

    async def get_meetings(self, meeting_ids: Sequence[str]) -> Dict[str, MeetingRecord]:
        async with self._session() as session:
            rows = await MeetingRepository(session).get_many(meeting_ids)
            return {r.id: _meeting_record(r) for r in rows}

    # --- Action items ---

    async def add_action_item(self, meeting_id: str, item: ExtractedActionItem) -> ActionItemRecord:
        async with self._session() as session:
            row = await ActionItemRepository(session).create(
                meeting_id=meeting_id,
                description=item.description,
                priority=item.priority,
                due_date=item.due_date,
            )
            return ActionItemRecord.model_validate(row)

    async def list_action_items(self, meeting_id: str) -> List[ActionItemRecord]:
        async with self._session() as session:
            rows = await ActionItemRepository(session).list_for_meeting(meeting_id)
            return [ActionItemRecord.model_validate(r) for r in rows]

    async def delete_action_items(self, meeting_id: str) -> int:
        async with self._session() as session:
            return await ActionItemRepository(session).delete_for_meeting(meeting_id)

    # --- Decisions ---

    async def add_decision(self, meeting_id: str, decision: ExtractedDecision) -> DecisionRecord:
        async with self._session() as session:
            row = await DecisionRepository(session).create(
                meeting_id=meeting_id,
                decision_text=decision.decision_text,
                context=decision.context,
                tags=list(decision.tags),
            )
            return DecisionRecord.model_validate(row)

    async def list_decisions(self, meeting_id: str) -> List[DecisionRecord]:
        async with self._session() as session:
            rows = await DecisionRepository(session).list_for_meeting(meeting_id)
            return [DecisionRecord.model_validate(r) for r in rows]

    async def delete_decisions(self, meeting_id: str) -> int:
        async with self._session() as session:
            return await DecisionRepository(session).delete_for_meeting(meeting_id)

    # --- Topics ---

    async def get_topic_by_name(self, name: str) -> Optional[TopicRecord]:
        async with self._session() as session:
            row = await TopicRepository(session).get_by_name(name)
            return TopicRecord.model_validate(row) if row else None

    async def create_topic(self, name: str) -> Optional[TopicRecord]:
        try:
            async with self._session() as session:
                row = await TopicRepository(session).create(name=name, meeting_count=1)
                return TopicRecord.model_validate(row)
        except IntegrityError:
            logger.debug(f"Topic '{name}' already exists")
            return None

    async def increment_topic(self, topic_id: str) -> TopicRecord:
        async with self._session() as session:
            row = await TopicRepository(session).increment(topic_id)
            if row is None:
                raise NotFoundError("Topic", topic_id)
            return TopicRecord.model_validate(row)

    async def link_topic(self, meeting_id: str, topic_id: str) -> bool:
        try:
            async with self._session() as session:
                return await TopicRepository(session).link(meeting_id, topic_id)
        except IntegrityError:
            # Linked concurrently by another run
            return False

    async def list_meeting_topics(self, meeting_id: str) -> List[TopicRecord]:
        async with self._session() as session:
            rows = await TopicRepository(session).list_for_meeting(meeting_id)
            return [TopicRecord.model_validate(r) for r in rows]

    async def delete_topic_links(self, meeting_id: str) -> int:
        async with self._session() as session:
            return await TopicRepository(session).delete_links_for_meeting(meeting_id)


class SQLEmbeddingStore(_SQLStoreBase, EmbeddingStore):
    """EmbeddingStore over meeting_embeddings with a full-scan ranking."""

    async def replace_chunks(self, meeting_id: str, chunks: Sequence[EmbeddingChunkRecord]) -> int:
        rows = [
            {
                "chunk_index": c.chunk_index,
                "chunk_text": c.chunk_text,
                "embedding": list(c.embedding),
            }
            for c in chunks
        ]
        try:
            async with self._session() as session:
                return await EmbeddingRepository(session).replace_for_meeting(meeting_id, rows)
        except SQLAlchemyError as e:
            logger.error(f"Replacing embeddings for meeting {meeting_id} failed: {e}")
            raise StoreError(f"Could not replace embeddings: {e}", operation="replace_chunks") from e

    async def delete_chunks(self, meeting_id: str) -> int:
        async with self._session() as session:
            return await EmbeddingRepository(session).delete_for_meeting(meeting_id)

    async def list_chunks(self, meeting_id: str) -> List[EmbeddingChunkRecord]:
        async with self._session() as session:
            rows = await EmbeddingRepository(session).list_for_meeting(meeting_id)
            return [EmbeddingChunkRecord.model_validate(r) for r in rows]

    async def top_chunks(
        self,
        query_vector: Sequence[float],
        limit: int,
        one_per_meeting: bool = False,
    ) -> List[ScoredChunk]:
        async with self._session() as session:
            rows = await EmbeddingRepository(session).list_all()
            chunks = [EmbeddingChunkRecord.model_validate(r) for r in rows]
        return rank_chunks(query_vector, chunks, limit, one_per_meeting)
