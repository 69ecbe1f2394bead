"""
Meeting model: one row per meeting, carrying the current run state.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import String, Text, DateTime, Index, func, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from meeting_intel.core.run_state import MeetingStatus
from meeting_intel.database.models.base import Base, generate_uuid, utc_now

if TYPE_CHECKING:
    from meeting_intel.database.models.action_item import ActionItem
    from meeting_intel.database.models.decision import Decision
    from meeting_intel.database.models.embedding import MeetingEmbedding


def enum_values(enum_cls) -> List[str]:
    """Persist enum values ("ready") rather than member names ("READY")."""
    return [member.value for member in enum_cls]


class Meeting(Base):
    """
    Meeting with its transcript, summary and processing status.

    status is NULL until the first run starts.
    """

    __tablename__ = "meetings"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    status: Mapped[Optional[MeetingStatus]] = mapped_column(
        SQLEnum(MeetingStatus, name="meeting_status", values_callable=enum_values),
        nullable=True,
        index=True,
        comment="processing | ready | failed, NULL when never run",
    )
    transcript: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    summary: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    audio_url: Mapped[Optional[str]] = mapped_column(
        String(2000),
        nullable=True,
        comment="Audio source of the latest run",
    )
    last_error: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Error message of the latest failed run",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )

    action_items: Mapped[List["ActionItem"]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    decisions: Mapped[List["Decision"]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    embeddings: Mapped[List["MeetingEmbedding"]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_meetings_status_updated", "status", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<Meeting(id={self.id}, status={self.status})>"
