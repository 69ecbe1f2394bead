"""
Topic models.

Topics are global and outlive the meetings that mention them; only the
meeting_topics link rows belong to a meeting.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from meeting_intel.database.models.base import Base, generate_uuid, utc_now


class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Normalized name: lower-case, trimmed, single spaces",
    )
    meeting_count: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
        comment="Lifetime count of runs that linked this topic",
    )
    last_discussed: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Topic(name={self.name}, meeting_count={self.meeting_count})>"


class MeetingTopic(Base):
    """Link between a meeting and a topic; the pair is the primary key."""

    __tablename__ = "meeting_topics"

    meeting_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("meetings.id", ondelete="CASCADE"),
        primary_key=True,
    )
    topic_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("topics.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
