"""
Repository layer for database operations.
"""

from meeting_intel.repositories.base import BaseRepository
from meeting_intel.repositories.meeting_repository import MeetingRepository
from meeting_intel.repositories.insight_repository import ActionItemRepository, DecisionRepository
from meeting_intel.repositories.topic_repository import TopicRepository
from meeting_intel.repositories.embedding_repository import EmbeddingRepository

__all__ = [
    "BaseRepository",
    "MeetingRepository",
    "ActionItemRepository",
    "DecisionRepository",
    "TopicRepository",
    "EmbeddingRepository",
]
