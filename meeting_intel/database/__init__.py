"""
Database module for the meeting intelligence engine.

Provides async engine construction, session handling and ORM models.
"""

from meeting_intel.database.connection import (
    create_engine_from_url,
    create_engine_from_settings,
    create_session_factory,
    session_scope,
    create_tables,
    drop_tables,
    ping,
)
from meeting_intel.database.models import Base, Meeting, ActionItem, Decision, Topic, MeetingTopic, MeetingEmbedding

__all__ = [
    "create_engine_from_url",
    "create_engine_from_settings",
    "create_session_factory",
    "session_scope",
    "create_tables",
    "drop_tables",
    "ping",
    "Base",
    "Meeting",
    "ActionItem",
    "Decision",
    "Topic",
    "MeetingTopic",
    "MeetingEmbedding",
]
