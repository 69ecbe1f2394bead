"""
Pydantic models for store records, model output and operation results.
"""

from meeting_intel.schemas.records import (
    ActionItemPriority,
    ActionItemStatus,
    MeetingRecord,
    ActionItemRecord,
    DecisionRecord,
    TopicRecord,
    EmbeddingChunkRecord,
    ScoredChunk,
)
from meeting_intel.schemas.insights import (
    MeetingInsights,
    ExtractedActionItem,
    ExtractedDecision,
)
from meeting_intel.schemas.results import (
    MeetingProcessingResult,
    IndexingResult,
    SearchResult,
    SearchResultWithMetadata,
    AnswerSource,
    QAResult,
    BatchItem,
    HealthStatus,
)

__all__ = [
    "ActionItemPriority",
    "ActionItemStatus",
    "MeetingRecord",
    "ActionItemRecord",
    "DecisionRecord",
    "TopicRecord",
    "EmbeddingChunkRecord",
    "ScoredChunk",
    "MeetingInsights",
    "ExtractedActionItem",
    "ExtractedDecision",
    "MeetingProcessingResult",
    "IndexingResult",
    "SearchResult",
    "SearchResultWithMetadata",
    "AnswerSource",
    "QAResult",
    "BatchItem",
    "HealthStatus",
]
