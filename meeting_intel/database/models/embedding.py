from __future__ import annotations

from datetime import datetime
from typing import List, TYPE_CHECKING

from sqlalchemy import JSON, String, Text, Integer, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from meeting_intel.database.models.base import Base, generate_uuid, utc_now

if TYPE_CHECKING:
    from meeting_intel.database.models.meeting import Meeting


class MeetingEmbedding(Base):
    """
    One transcript chunk and its embedding vector.

    All rows of a meeting form one generation and are replaced together.
    """

    __tablename__ = "meeting_embeddings"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    meeting_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("meetings.id", ondelete="CASCADE"),
        nullable=False,
    )
    chunk_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    chunk_text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    embedding: Mapped[List[float]] = mapped_column(
        JSON,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    meeting: Mapped["Meeting"] = relationship(back_populates="embeddings")

    __table_args__ = (
        Index("ix_meeting_embeddings_meeting_chunk", "meeting_id", "chunk_index"),
    )

    def __repr__(self) -> str:
        return f"<MeetingEmbedding(meeting_id={self.meeting_id}, chunk_index={self.chunk_index})>"
