from __future__ import annotations

import logging
import time
from typing import List

from meeting_intel.core.exceptions import ValidationError
from meeting_intel.core.metrics import metrics
from meeting_intel.llm.base import LLMProvider
from meeting_intel.schemas.results import SearchResult, SearchResultWithMetadata
from meeting_intel.store.base import EmbeddingStore, MeetingStore
from meeting_intel.utils.text import truncate_snippet

logger = logging.getLogger(__name__)


def validate_top_k(top_k: int) -> None:
    if top_k < 1:
        raise ValidationError("top_k must be at least 1", field="top_k")


class SimilaritySearchEngine:
    """
    Semantic search over meeting transcripts.

    Returns each meeting at most once, represented by its best chunk.
    """

    def __init__(
        self,
        llm: LLMProvider,
        embeddings: EmbeddingStore,
        meetings: MeetingStore,
        snippet_chars: int = 300,
    ) -> None:
        self.llm = llm
        self.embeddings = embeddings
        self.meetings = meetings
        self.snippet_chars = snippet_chars

    async def search(self, query: str, top_k: int = 5) -> List[SearchResult]:
        """
        Raises:
            ValidationError: empty query or top_k < 1
            ProviderError: the query could not be embedded
        """
        if not query or not query.strip():
            raise ValidationError("Search query is required", field="query")
        validate_top_k(top_k)

        start = time.perf_counter()
        query_vector = await self.llm.embed(query.strip())
        chunks = await self.embeddings.top_chunks(query_vector, limit=top_k, one_per_meeting=True)

        results = [
            SearchResult(
                meeting_id=chunk.meeting_id,
                snippet=truncate_snippet(chunk.chunk_text, self.snippet_chars),
                relevance=chunk.score,
            )
            for chunk in chunks
        ]

        latency_ms = (time.perf_counter() - start) * 1000
        metrics.record_search(latency_ms)
        logger.info(f"Search returned {len(results)} meetings in {latency_ms:.0f}ms")
        return results

    async def search_with_metadata(self, query: str, top_k: int = 5) -> List[SearchResultWithMetadata]:
        """search(), plus each meeting's title and creation date."""
        results = await self.search(query, top_k)
        if not results:
            return []

        meetings = await self.meetings.get_meetings([r.meeting_id for r in results])

        enriched = []
        for result in results:
            meeting = meetings.get(result.meeting_id)
            enriched.append(
                SearchResultWithMetadata(
                    **result.model_dump(),
                    title=(meeting.title if meeting and meeting.title else "Unknown"),
                    meeting_date=(
                        meeting.created_at.isoformat() if meeting and meeting.created_at else ""
                    ),
                )
            )
        return enriched
