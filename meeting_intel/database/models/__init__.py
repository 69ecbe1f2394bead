"""
SQLAlchemy ORM models for the meeting intelligence engine.

All models are exported from this module for convenient imports.
"""

from meeting_intel.database.models.base import Base
from meeting_intel.database.models.meeting import Meeting
from meeting_intel.database.models.action_item import ActionItem
from meeting_intel.database.models.decision import Decision
from meeting_intel.database.models.topic import Topic, MeetingTopic
from meeting_intel.database.models.embedding import MeetingEmbedding

__all__ = [
    "Base",
    "Meeting",
    "ActionItem",
    "Decision",
    "Topic",
    "MeetingTopic",
    "MeetingEmbedding",
]
