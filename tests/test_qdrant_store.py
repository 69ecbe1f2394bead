"""
Tests for the Qdrant embedding store.
"""

import httpx
import pytest
from unittest.mock import MagicMock

from qdrant_client.http import models as qm
from qdrant_client.http.exceptions import UnexpectedResponse

from meeting_intel.schemas.records import EmbeddingChunkRecord
from meeting_intel.vectorstore.qdrant import QdrantEmbeddingStore, _is_transient


# ============== Fixtures ==============

@pytest.fixture
def mock_qdrant_client():
    """Create mock Qdrant client."""
    client = MagicMock()
    client.get_collections.return_value.collections = []
    return client


@pytest.fixture
def store(mock_qdrant_client):
    return QdrantEmbeddingStore(url="http://qdrant.test:6333", collection="chunks", client=mock_qdrant_client)


def make_chunks(meeting_id: str, count: int):
    return [
        EmbeddingChunkRecord(
            meeting_id=meeting_id,
            chunk_index=i,
            chunk_text=f"chunk {i}",
            embedding=[float(i), 1.0, 0.5],
        )
        for i in range(count)
    ]


def make_hit(meeting_id: str, chunk_index: int, score: float) -> MagicMock:
    hit = MagicMock()
    hit.payload = {"meeting_id": meeting_id, "chunk_index": chunk_index, "chunk_text": f"{meeting_id}-{chunk_index}"}
    hit.score = score
    return hit


def not_found() -> UnexpectedResponse:
    return UnexpectedResponse(
        status_code=404,
        reason_phrase="Not Found",
        content=b"Collection `chunks` doesn't exist!",
        headers=httpx.Headers(),
    )


# ============== Tests ==============

class TestEnsureCollection:
    """Tests for ensure_collection."""

    def test_creates_collection_and_indexes(self, store, mock_qdrant_client):
        store.ensure_collection(vector_size=768)

        kwargs = mock_qdrant_client.create_collection.call_args.kwargs
        assert kwargs["collection_name"] == "chunks"
        assert kwargs["vectors_config"].size == 768
        assert kwargs["vectors_config"].distance == qm.Distance.COSINE
        indexed = {c.kwargs["field_name"] for c in mock_qdrant_client.create_payload_index.call_args_list}
        assert indexed == {"meeting_id", "generation"}

    def test_existing_collection_is_reused(self, store, mock_qdrant_client):
        existing = MagicMock()
        existing.name = "chunks"
        mock_qdrant_client.get_collections.return_value.collections = [existing]

        store.ensure_collection(vector_size=768)

        mock_qdrant_client.create_collection.assert_not_called()

    def test_checks_only_once(self, store, mock_qdrant_client):
        store.ensure_collection(vector_size=3)
        store.ensure_collection(vector_size=3)

        assert mock_qdrant_client.get_collections.call_count == 1


class TestReplaceChunks:
    """Tests for replace_chunks."""

    @pytest.mark.asyncio
    async def test_upserts_new_generation_then_drops_old(self, store, mock_qdrant_client):
        count = await store.replace_chunks("m1", make_chunks("m1", 2))

        assert count == 2
        points = mock_qdrant_client.upsert.call_args.kwargs["points"]
        assert [p.payload["chunk_index"] for p in points] == [0, 1]
        assert {p.payload["meeting_id"] for p in points} == {"m1"}
        generation = points[0].payload["generation"]
        assert all(p.payload["generation"] == generation for p in points)

        selector = mock_qdrant_client.delete.call_args.kwargs["points_selector"]
        stale = selector.filter
        assert stale.must[0].key == "meeting_id"
        assert stale.must[0].match.value == "m1"
        assert stale.must_not[0].key == "generation"
        assert stale.must_not[0].match.value == generation

    @pytest.mark.asyncio
    async def test_empty_generation_only_deletes(self, store, mock_qdrant_client):
        assert await store.replace_chunks("m1", []) == 0

        mock_qdrant_client.upsert.assert_not_called()
        mock_qdrant_client.delete.assert_called_once()


class TestReads:
    """Tests for delete, list and ranking."""

    @pytest.mark.asyncio
    async def test_delete_chunks_returns_count(self, store, mock_qdrant_client):
        mock_qdrant_client.count.return_value.count = 3

        assert await store.delete_chunks("m1") == 3
        mock_qdrant_client.delete.assert_called_once()

    @pytest.mark.asyncio
    async def test_list_chunks_sorted(self, store, mock_qdrant_client):
        points = []
        for index in (2, 0, 1):
            point = MagicMock()
            point.payload = {"meeting_id": "m1", "chunk_index": index, "chunk_text": f"c{index}"}
            point.vector = [0.1, 0.2]
            points.append(point)
        mock_qdrant_client.scroll.return_value = (points, None)

        chunks = await store.list_chunks("m1")

        assert [c.chunk_index for c in chunks] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_top_chunks_flat(self, store, mock_qdrant_client):
        mock_qdrant_client.query_points.return_value.points = [make_hit("m1", 0, 0.7), make_hit("m1", 1, 0.9)]

        results = await store.top_chunks([0.1, 0.2, 0.3], limit=2)

        assert [(r.chunk_index, r.score) for r in results] == [(1, 0.9), (0, 0.7)]
        assert mock_qdrant_client.query_points.call_args.kwargs["limit"] == 2
        mock_qdrant_client.query_points_groups.assert_not_called()

    @pytest.mark.asyncio
    async def test_top_chunks_one_per_meeting(self, store, mock_qdrant_client):
        group_a, group_b = MagicMock(), MagicMock()
        group_a.hits = [make_hit("m1", 3, 0.95)]
        group_b.hits = [make_hit("m2", 0, 0.6)]
        mock_qdrant_client.query_points_groups.return_value.groups = [group_a, group_b]

        results = await store.top_chunks([0.1, 0.2, 0.3], limit=5, one_per_meeting=True)

        assert [r.meeting_id for r in results] == ["m1", "m2"]
        kwargs = mock_qdrant_client.query_points_groups.call_args.kwargs
        assert kwargs["group_by"] == "meeting_id"
        assert kwargs["group_size"] == 1

    @pytest.mark.asyncio
    async def test_top_chunks_before_anything_is_indexed(self, store, mock_qdrant_client):
        mock_qdrant_client.query_points.side_effect = not_found()

        assert await store.top_chunks([0.1, 0.2], limit=5) == []

    @pytest.mark.asyncio
    async def test_top_chunks_zero_limit(self, store, mock_qdrant_client):
        assert await store.top_chunks([0.1], limit=0) == []
        mock_qdrant_client.query_points.assert_not_called()


class TestHealth:
    """Tests for ping and close."""

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping()

    @pytest.mark.asyncio
    async def test_ping_failure(self, store, mock_qdrant_client):
        mock_qdrant_client.get_collections.side_effect = ConnectionError("refused")

        assert not await store.ping()

    @pytest.mark.asyncio
    async def test_close(self, store, mock_qdrant_client):
        await store.close()

        mock_qdrant_client.close.assert_called_once()


class TestMissingCollection:
    """Operations on a collection that does not exist yet."""

    @pytest.mark.asyncio
    async def test_delete_chunks_is_not_retried(self, store, mock_qdrant_client):
        mock_qdrant_client.count.side_effect = not_found()

        assert await store.delete_chunks("m1") == 0
        assert mock_qdrant_client.count.call_count == 1
        mock_qdrant_client.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_clearing_an_unindexed_meeting(self, store, mock_qdrant_client):
        mock_qdrant_client.delete.side_effect = not_found()

        assert await store.replace_chunks("m1", []) == 0
        assert mock_qdrant_client.delete.call_count == 1

    def test_transient_errors_are_still_retried(self):
        server_error = UnexpectedResponse(
            status_code=503,
            reason_phrase="Service Unavailable",
            content=b"",
            headers=httpx.Headers(),
        )

        assert _is_transient(server_error)
        assert _is_transient(ConnectionError("refused"))
        assert not _is_transient(not_found())
