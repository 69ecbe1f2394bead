"""
Persistence interfaces and their implementations.
"""

from meeting_intel.store.base import MeetingStore, EmbeddingStore, rank_chunks
from meeting_intel.store.memory import InMemoryMeetingStore, InMemoryEmbeddingStore
from meeting_intel.store.sql import SQLMeetingStore, SQLEmbeddingStore

__all__ = [
    "MeetingStore",
    "EmbeddingStore",
    "rank_chunks",
    "InMemoryMeetingStore",
    "InMemoryEmbeddingStore",
    "SQLMeetingStore",
    "SQLEmbeddingStore",
]
