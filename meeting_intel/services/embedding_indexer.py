from __future__ import annotations

import logging
from typing import List

from meeting_intel.core.metrics import metrics
from meeting_intel.llm.base import LLMProvider
from meeting_intel.schemas.records import EmbeddingChunkRecord
from meeting_intel.schemas.results import IndexingResult
from meeting_intel.store.base import EmbeddingStore
from meeting_intel.utils.chunking import chunk_words

logger = logging.getLogger(__name__)


class EmbeddingIndexer:
    """
    Chunks a transcript, embeds every chunk and swaps in the new generation.

    A chunk whose embedding fails is skipped and counted in the result; the
    meeting is then only partially searchable until it is reprocessed.
    """

    def __init__(self, llm: LLMProvider, store: EmbeddingStore, chunk_size_words: int = 500) -> None:
        self.llm = llm
        self.store = store
        self.chunk_size_words = chunk_size_words

    async def reindex(self, meeting_id: str, transcript: str) -> IndexingResult:
        chunks = chunk_words(transcript or "", self.chunk_size_words)

        records: List[EmbeddingChunkRecord] = []
        for index, chunk in enumerate(chunks):
            try:
                vector = await self.llm.embed(chunk)
            except Exception as e:
                logger.error(f"Embedding chunk {index} of meeting {meeting_id} failed: {e}")
                continue
            records.append(
                EmbeddingChunkRecord(
                    meeting_id=meeting_id,
                    chunk_index=index,
                    chunk_text=chunk,
                    embedding=vector,
                )
            )

        # Runs even with no chunks so the previous generation is cleared
        await self.store.replace_chunks(meeting_id, records)

        result = IndexingResult(
            chunks_total=len(chunks),
            chunks_indexed=len(records),
            chunks_failed=len(chunks) - len(records),
        )
        metrics.record_indexing(result.chunks_indexed, result.chunks_failed)

        if result.chunks_failed:
            logger.warning(
                f"Meeting {meeting_id} indexed {result.chunks_indexed}/{result.chunks_total} chunks "
                f"({result.chunks_failed} failed)"
            )
        else:
            logger.info(f"Meeting {meeting_id} indexed {result.chunks_indexed} chunks")
        return result
