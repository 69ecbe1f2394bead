"""
Repositories for per-meeting insights: action items and decisions.
"""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from meeting_intel.database.models import ActionItem, Decision
from meeting_intel.repositories.base import BaseRepository


class ActionItemRepository(BaseRepository[ActionItem]):
    def __init__(self, session: AsyncSession):
        super().__init__(ActionItem, session)

    async def list_for_meeting(self, meeting_id: str) -> List[ActionItem]:
        return await self.list_by(order_by="created_at", meeting_id=meeting_id)

    async def delete_for_meeting(self, meeting_id: str) -> int:
        return await self.delete_where(meeting_id=meeting_id)


class DecisionRepository(BaseRepository[Decision]):
    def __init__(self, session: AsyncSession):
        super().__init__(Decision, session)

    async def list_for_meeting(self, meeting_id: str) -> List[Decision]:
        return await self.list_by(order_by="decided_at", meeting_id=meeting_id)

    async def delete_for_meeting(self, meeting_id: str) -> int:
        return await self.delete_where(meeting_id=meeting_id)
