from __future__ import annotations

import asyncio
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from qdrant_client import QdrantClient
from qdrant_client.http import models as qm
from qdrant_client.http.exceptions import UnexpectedResponse
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

from meeting_intel.schemas.records import EmbeddingChunkRecord, ScoredChunk
from meeting_intel.store.base import EmbeddingStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Thread pool for running sync Qdrant operations without blocking event loop
_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="qdrant")


def _is_transient(error: BaseException) -> bool:
    # A missing collection will still be missing on the next attempt
    if isinstance(error, UnexpectedResponse):
        return error.status_code != 404
    return isinstance(error, (ConnectionError, TimeoutError))


# Retry decorator for Qdrant operations
qdrant_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)


def _meeting_filter(meeting_id: str) -> qm.Filter:
    return qm.Filter(
        must=[qm.FieldCondition(key="meeting_id", match=qm.MatchValue(value=meeting_id))]
    )


def _is_missing_collection(error: Exception) -> bool:
    text = str(error)
    return "404" in text or "Not found" in text or "doesn't exist" in text.lower()


class QdrantEmbeddingStore(EmbeddingStore):
    """
    EmbeddingStore backed by a Qdrant collection (cosine distance).

    Each point carries meeting_id, chunk_index and chunk_text in its payload.
    Qdrant has no multi-operation transactions: replace_chunks upserts the
    new generation first and then deletes every older point of the meeting,
    tagged by a per-generation id.
    """

    def __init__(
        self,
        url: str = "http://localhost:6333",
        collection: str = "meeting_chunks",
        client: Optional[QdrantClient] = None,
    ) -> None:
        self.url = url
        self.collection = collection
        logger.info(f"Initializing Qdrant client at {self.url}")
        self.client = client or QdrantClient(url=self.url, timeout=30)
        self._collection_ready = False

    async def _run(self, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, fn)

    @qdrant_retry
    def ensure_collection(self, vector_size: int) -> None:
        """Ensure collection exists, create if not."""
        if self._collection_ready:
            return

        existing = self.client.get_collections().collections
        if not any(c.name == self.collection for c in existing):
            logger.info(f"Creating collection '{self.collection}' with vector size {vector_size}")
            self.client.create_collection(
                collection_name=self.collection,
                vectors_config=qm.VectorParams(size=vector_size, distance=qm.Distance.COSINE),
            )
            # group_by and per-meeting deletes filter on meeting_id
            self.client.create_payload_index(
                collection_name=self.collection,
                field_name="meeting_id",
                field_schema=qm.PayloadSchemaType.KEYWORD,
            )
            self.client.create_payload_index(
                collection_name=self.collection,
                field_name="generation",
                field_schema=qm.PayloadSchemaType.KEYWORD,
            )
        self._collection_ready = True

    @qdrant_retry
    def _upsert(self, points: List[qm.PointStruct]) -> None:
        self.client.upsert(collection_name=self.collection, points=points, wait=True)

    @qdrant_retry
    def _delete(self, points_filter: qm.Filter) -> None:
        self.client.delete(
            collection_name=self.collection,
            points_selector=qm.FilterSelector(filter=points_filter),
            wait=True,
        )

    @qdrant_retry
    def _count(self, points_filter: qm.Filter) -> int:
        return self.client.count(
            collection_name=self.collection,
            count_filter=points_filter,
            exact=True,
        ).count

    async def replace_chunks(self, meeting_id: str, chunks: Sequence[EmbeddingChunkRecord]) -> int:
        generation = uuid.uuid4().hex

        if chunks:
            await self._run(lambda: self.ensure_collection(len(chunks[0].embedding)))
            points = [
                qm.PointStruct(
                    id=str(uuid.uuid4()),
                    vector=list(c.embedding),
                    payload={
                        "meeting_id": meeting_id,
                        "chunk_index": c.chunk_index,
                        "chunk_text": c.chunk_text,
                        "generation": generation,
                    },
                )
                for c in chunks
            ]
            await self._run(lambda: self._upsert(points))

        # Drop everything of this meeting that is not the new generation
        stale = qm.Filter(
            must=[qm.FieldCondition(key="meeting_id", match=qm.MatchValue(value=meeting_id))],
            must_not=[qm.FieldCondition(key="generation", match=qm.MatchValue(value=generation))],
        )
        try:
            await self._run(lambda: self._delete(stale))
        except UnexpectedResponse as e:
            if not _is_missing_collection(e):
                raise
        logger.info(f"Replaced embeddings for meeting {meeting_id}: {len(chunks)} chunks")
        return len(chunks)

    async def delete_chunks(self, meeting_id: str) -> int:
        try:
            count = await self._run(lambda: self._count(_meeting_filter(meeting_id)))
            await self._run(lambda: self._delete(_meeting_filter(meeting_id)))
        except UnexpectedResponse as e:
            if _is_missing_collection(e):
                return 0
            raise
        return count

    async def list_chunks(self, meeting_id: str) -> List[EmbeddingChunkRecord]:
        def _scroll():
            points, _ = self.client.scroll(
                collection_name=self.collection,
                scroll_filter=_meeting_filter(meeting_id),
                limit=10_000,
                with_payload=True,
                with_vectors=True,
            )
            return points

        try:
            points = await self._run(_scroll)
        except UnexpectedResponse as e:
            if _is_missing_collection(e):
                return []
            raise

        records = [
            EmbeddingChunkRecord(
                meeting_id=p.payload["meeting_id"],
                chunk_index=p.payload["chunk_index"],
                chunk_text=p.payload["chunk_text"],
                embedding=list(p.vector or []),
            )
            for p in points
        ]
        return sorted(records, key=lambda r: r.chunk_index)

    async def top_chunks(
        self,
        query_vector: Sequence[float],
        limit: int,
        one_per_meeting: bool = False,
    ) -> List[ScoredChunk]:
        if limit < 1:
            return []
        vector = list(query_vector)

        def _grouped():
            groups = self.client.query_points_groups(
                collection_name=self.collection,
                query=vector,
                group_by="meeting_id",
                group_size=1,
                limit=limit,
                with_payload=True,
            ).groups
            return [group.hits[0] for group in groups if group.hits]

        def _flat():
            return self.client.query_points(
                collection_name=self.collection,
                query=vector,
                limit=limit,
                with_payload=True,
            ).points

        try:
            hits = await self._run(_grouped if one_per_meeting else _flat)
        except UnexpectedResponse as e:
            # Nothing indexed yet
            if _is_missing_collection(e):
                logger.debug(f"Collection '{self.collection}' not found, returning empty results")
                return []
            raise

        results = [
            ScoredChunk(
                meeting_id=hit.payload["meeting_id"],
                chunk_index=hit.payload["chunk_index"],
                chunk_text=hit.payload["chunk_text"],
                score=float(hit.score),
            )
            for hit in hits
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        return results

    async def ping(self) -> bool:
        try:
            await self._run(self.client.get_collections)
            return True
        except Exception as e:
            logger.error(f"Qdrant health check failed: {e}")
            return False

    async def close(self) -> None:
        self.client.close()
