"""
Topic registry: global, normalized topics with lifetime mention counters.

meeting_count counts the runs that linked a topic. It only ever goes up;
removing a meeting's links on reprocess does not decrement it.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from meeting_intel.schemas.insights import normalize_topic_name
from meeting_intel.schemas.records import TopicRecord
from meeting_intel.store.base import MeetingStore

logger = logging.getLogger(__name__)


class TopicRegistry:
    def __init__(self, store: MeetingStore) -> None:
        self.store = store

    async def upsert_and_link(self, meeting_id: str, topic_name: str) -> Optional[TopicRecord]:
        """
        Count one mention of the topic and link it to the meeting.

        Returns None when the name normalizes to nothing.
        """
        name = normalize_topic_name(topic_name or "")
        if not name:
            return None

        topic = await self.store.get_topic_by_name(name)
        if topic is not None:
            topic = await self.store.increment_topic(topic.id)
        else:
            topic = await self.store.create_topic(name)
            if topic is None:
                # Lost a create race; the winner's row now exists
                existing = await self.store.get_topic_by_name(name)
                if existing is None:
                    raise RuntimeError(f"Topic '{name}' vanished after a create conflict")
                topic = await self.store.increment_topic(existing.id)

        linked = await self.store.link_topic(meeting_id, topic.id)
        if not linked:
            logger.debug(f"Topic '{name}' was already linked to meeting {meeting_id}")
        return topic

    async def link_topics(self, meeting_id: str, names: Iterable[str]) -> List[TopicRecord]:
        """Upsert and link each distinct topic; one failure does not block the rest."""
        distinct: List[str] = []
        for raw in names:
            name = normalize_topic_name(raw or "")
            if name and name not in distinct:
                distinct.append(name)

        topics: List[TopicRecord] = []
        for name in distinct:
            try:
                topic = await self.upsert_and_link(meeting_id, name)
            except Exception as e:
                logger.error(f"Failed to process topic '{name}' for meeting {meeting_id}: {e}")
                continue
            if topic is not None:
                topics.append(topic)

        logger.info(f"Linked {len(topics)}/{len(distinct)} topics to meeting {meeting_id}")
        return topics
