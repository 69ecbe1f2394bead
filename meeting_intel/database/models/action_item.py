from __future__ import annotations

from datetime import date, datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Date, DateTime, ForeignKey, func, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from meeting_intel.database.models.base import Base, generate_uuid, utc_now
from meeting_intel.database.models.meeting import enum_values
from meeting_intel.schemas.records import ActionItemPriority, ActionItemStatus

if TYPE_CHECKING:
    from meeting_intel.database.models.meeting import Meeting


class ActionItem(Base):
    """Task extracted from a meeting transcript."""

    __tablename__ = "action_items"

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
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    priority: Mapped[ActionItemPriority] = mapped_column(
        SQLEnum(ActionItemPriority, name="action_item_priority", values_callable=enum_values),
        default=ActionItemPriority.MEDIUM,
        nullable=False,
    )
    due_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    status: Mapped[ActionItemStatus] = mapped_column(
        SQLEnum(ActionItemStatus, name="action_item_status", values_callable=enum_values),
        default=ActionItemStatus.PENDING,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    meeting: Mapped["Meeting"] = relationship(back_populates="action_items")

    def __repr__(self) -> str:
        return f"<ActionItem(id={self.id}, meeting_id={self.meeting_id}, priority={self.priority})>"
