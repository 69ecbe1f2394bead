"""
Topic repository: global topics and their meeting links.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_intel.database.models import Topic, MeetingTopic
from meeting_intel.database.models.base import utc_now
from meeting_intel.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class TopicRepository(BaseRepository[Topic]):
    """Repository for Topic and MeetingTopic operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Topic, session)

    async def get_by_name(self, name: str) -> Optional[Topic]:
        result = await self.session.execute(select(Topic).where(Topic.name == name))
        return result.scalar_one_or_none()

    async def increment(self, topic_id: str, discussed_at: Optional[datetime] = None) -> Optional[Topic]:
        """Atomically add one to meeting_count and refresh last_discussed."""
        await self.session.execute(
            update(Topic)
            .where(Topic.id == topic_id)
            .values(
                meeting_count=Topic.meeting_count + 1,
                last_discussed=discussed_at or utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        topic = await self.get_by_id(topic_id)
        if topic is not None:
            await self.session.refresh(topic)
        return topic

    async def link(self, meeting_id: str, topic_id: str) -> bool:
        """
        Link a topic to a meeting.

        Returns False when the link already exists. A link inserted
        concurrently by another session surfaces as IntegrityError on flush.
        """
        existing = await self.session.get(MeetingTopic, (meeting_id, topic_id))
        if existing is not None:
            logger.debug(f"Topic {topic_id} already linked to meeting {meeting_id}")
            return False

        self.session.add(MeetingTopic(meeting_id=meeting_id, topic_id=topic_id))
        await self.session.flush()
        return True

    async def list_for_meeting(self, meeting_id: str) -> List[Topic]:
        query = (
            select(Topic)
            .join(MeetingTopic, MeetingTopic.topic_id == Topic.id)
            .where(MeetingTopic.meeting_id == meeting_id)
            .order_by(Topic.name)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete_links_for_meeting(self, meeting_id: str) -> int:
        return await self._links().delete_where(meeting_id=meeting_id)

    def _links(self) -> BaseRepository[MeetingTopic]:
        return BaseRepository(MeetingTopic, self.session)
