"""
Meeting repository for run state and transcript persistence.
"""

from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_intel.core.run_state import MeetingStatus
from meeting_intel.database.models import Meeting
from meeting_intel.repositories.base import BaseRepository


class MeetingRepository(BaseRepository[Meeting]):
    """Repository for Meeting operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Meeting, session)

    async def list_by_status(self, status: MeetingStatus) -> List[Meeting]:
        return await self.list_by(order_by="updated_at", status=status)

    async def list_recent_with_summary(self, limit: int = 3) -> List[Meeting]:
        """Most recently created meetings that have a summary."""
        query = (
            select(Meeting)
            .where(Meeting.summary.is_not(None))
            .order_by(Meeting.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_many(self, ids: Sequence[str]) -> List[Meeting]:
        if not ids:
            return []
        result = await self.session.execute(select(Meeting).where(Meeting.id.in_(list(ids))))
        return list(result.scalars().all())
