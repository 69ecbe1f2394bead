"""
Embedding repository: chunk generations per meeting.
"""

from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_intel.database.models import MeetingEmbedding
from meeting_intel.repositories.base import BaseRepository


class EmbeddingRepository(BaseRepository[MeetingEmbedding]):
    def __init__(self, session: AsyncSession):
        super().__init__(MeetingEmbedding, session)

    async def list_for_meeting(self, meeting_id: str) -> List[MeetingEmbedding]:
        return await self.list_by(order_by="chunk_index", meeting_id=meeting_id)

    async def list_all(self) -> List[MeetingEmbedding]:
        """Every stored chunk, in a stable order for ranking ties."""
        result = await self.session.execute(
            select(MeetingEmbedding).order_by(MeetingEmbedding.meeting_id, MeetingEmbedding.chunk_index)
        )
        return list(result.scalars().all())

    async def delete_for_meeting(self, meeting_id: str) -> int:
        return await self.delete_where(meeting_id=meeting_id)

    async def replace_for_meeting(self, meeting_id: str, rows: Sequence[dict]) -> int:
        """Delete the meeting's chunks and insert `rows`; caller commits once."""
        await self.delete_for_meeting(meeting_id)
        if rows:
            await self.bulk_create([{**row, "meeting_id": meeting_id} for row in rows])
        return len(rows)
