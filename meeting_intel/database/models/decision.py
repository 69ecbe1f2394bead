from __future__ import annotations

from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import JSON, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from meeting_intel.database.models.base import Base, generate_uuid, utc_now

if TYPE_CHECKING:
    from meeting_intel.database.models.meeting import Meeting


class Decision(Base):
    """Decision recorded in a meeting transcript."""

    __tablename__ = "decisions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    meeting_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("meetings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    decision_text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    context: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    tags: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    decided_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    meeting: Mapped["Meeting"] = relationship(back_populates="decisions")

    def __repr__(self) -> str:
        return f"<Decision(id={self.id}, meeting_id={self.meeting_id})>"
