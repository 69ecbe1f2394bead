"""
MeetingIntelligence: the engine's public surface.

    async with build_engine(settings) as engine:
        result = await engine.process_new("m-1", "https://.../call.mp3")
        answer = await engine.answer("What did we decide about pricing?")
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional, Sequence

from meeting_intel.core.config import Settings
from meeting_intel.core.logging import setup_logging
from meeting_intel.core.run_lock import InMemoryRunLock, RedisRunLock, RunLock
from meeting_intel.llm.base import LLMProvider
from meeting_intel.llm.factory import create_llm_provider
from meeting_intel.schemas.results import (
    BatchItem,
    HealthStatus,
    MeetingProcessingResult,
    QAResult,
    SearchResult,
    SearchResultWithMetadata,
)
from meeting_intel.services.embedding_indexer import EmbeddingIndexer
from meeting_intel.services.insight_extractor import InsightExtractor
from meeting_intel.services.orchestrator import PipelineOrchestrator
from meeting_intel.services.qa_service import RAGAnswerer
from meeting_intel.services.search_service import SimilaritySearchEngine
from meeting_intel.services.topic_registry import TopicRegistry
from meeting_intel.store.base import EmbeddingStore, MeetingStore
from meeting_intel.transcription.base import TranscriptionProvider
from meeting_intel.transcription.client import TranscriptionClient

logger = logging.getLogger(__name__)


class MeetingIntelligence:
    """Wires the pipeline and retrieval components and owns their lifetimes."""

    def __init__(
        self,
        store: MeetingStore,
        embeddings: EmbeddingStore,
        transcriber: TranscriptionProvider,
        llm: LLMProvider,
        run_lock: Optional[RunLock] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or Settings()

        self.store = store
        self.embeddings = embeddings
        self.transcriber = transcriber
        self.llm = llm
        self.run_lock = run_lock or InMemoryRunLock()
        self.default_top_k = settings.DEFAULT_TOP_K

        self.transcription = TranscriptionClient(
            transcriber,
            poll_interval_seconds=settings.TRANSCRIPTION_POLL_INTERVAL_SECONDS,
            max_poll_attempts=settings.TRANSCRIPTION_MAX_POLL_ATTEMPTS,
        )
        self.extractor = InsightExtractor(llm, store)
        self.topics = TopicRegistry(store)
        self.indexer = EmbeddingIndexer(llm, embeddings, chunk_size_words=settings.CHUNK_SIZE_WORDS)
        self.search_engine = SimilaritySearchEngine(
            llm, embeddings, store, snippet_chars=settings.SEARCH_SNIPPET_CHARS
        )
        self.answerer = RAGAnswerer(llm, embeddings, store, snippet_chars=settings.ANSWER_SNIPPET_CHARS)
        self.orchestrator = PipelineOrchestrator(
            store=store,
            embeddings=embeddings,
            transcription=self.transcription,
            extractor=self.extractor,
            topics=self.topics,
            indexer=self.indexer,
            run_lock=self.run_lock,
            batch_delay_seconds=settings.BATCH_DELAY_SECONDS,
            recovery_delay_seconds=settings.RECOVERY_DELAY_SECONDS,
            service_flags={
                "transcription_api_key": bool(settings.ASSEMBLYAI_API_KEY),
                "llm_api_key": settings.LLM_PROVIDER == "ollama" or bool(settings.GEMINI_API_KEY),
            },
        )

    # --- Pipeline ---

    async def process_new(self, meeting_id: str, audio_ref: str) -> MeetingProcessingResult:
        return await self.orchestrator.process_new(meeting_id, audio_ref)

    async def reprocess(self, meeting_id: str, audio_ref: Optional[str] = None) -> MeetingProcessingResult:
        return await self.orchestrator.reprocess(meeting_id, audio_ref)

    async def batch_process(self, items: Sequence[BatchItem]) -> List[MeetingProcessingResult]:
        return await self.orchestrator.batch_process(items)

    async def recover_failed(self, stale_after: Optional[timedelta] = None) -> List[MeetingProcessingResult]:
        return await self.orchestrator.recover_failed(stale_after)

    # --- Retrieval ---

    async def search(self, query: str, top_k: Optional[int] = None) -> List[SearchResult]:
        return await self.search_engine.search(query, top_k or self.default_top_k)

    async def search_with_metadata(self, query: str, top_k: Optional[int] = None) -> List[SearchResultWithMetadata]:
        return await self.search_engine.search_with_metadata(query, top_k or self.default_top_k)

    async def answer(self, question: str, top_k: Optional[int] = None) -> QAResult:
        return await self.answerer.answer(question, top_k or self.default_top_k)

    async def suggest_questions(self, limit: int = 3) -> List[str]:
        return await self.answerer.suggest_questions(limit)

    async def check_health(self) -> HealthStatus:
        return await self.orchestrator.check_health()

    # --- Lifetime ---

    async def close(self) -> None:
        """Close provider clients and stores."""
        await self.transcriber.close()
        await self.llm.close()
        await self.embeddings.close()
        await self.store.close()
        if isinstance(self.run_lock, RedisRunLock):
            await self.run_lock.close()

    async def __aenter__(self) -> "MeetingIntelligence":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def build_engine(settings: Settings) -> MeetingIntelligence:
    """
    Build the engine from settings.

    Raises:
        ConfigurationError: a required API key is missing
    """
    from meeting_intel.database.connection import create_engine_from_settings, create_session_factory
    from meeting_intel.store.sql import SQLEmbeddingStore, SQLMeetingStore
    from meeting_intel.transcription.assemblyai import AssemblyAIClient

    setup_logging(settings.LOG_LEVEL)

    transcriber = AssemblyAIClient(
        api_key=settings.ASSEMBLYAI_API_KEY,
        base_url=settings.ASSEMBLYAI_BASE_URL,
    )
    llm = create_llm_provider(settings)

    db_engine = create_engine_from_settings(settings)
    session_factory = create_session_factory(db_engine)
    store = SQLMeetingStore(db_engine, session_factory)

    embeddings: EmbeddingStore
    if settings.VECTOR_STORE == "qdrant":
        from meeting_intel.vectorstore.qdrant import QdrantEmbeddingStore

        embeddings = QdrantEmbeddingStore(url=settings.QDRANT_URL, collection=settings.QDRANT_COLLECTION_CHUNKS)
    else:
        embeddings = SQLEmbeddingStore(db_engine, session_factory)

    run_lock: RunLock
    if settings.RUN_LOCK_BACKEND == "redis":
        run_lock = RedisRunLock.from_url(settings.REDIS_URL, ttl_seconds=settings.RUN_LOCK_TTL_SECONDS)
    else:
        run_lock = InMemoryRunLock()

    logger.info(
        f"Engine built: llm={settings.LLM_PROVIDER}, vector_store={settings.VECTOR_STORE}, "
        f"run_lock={settings.RUN_LOCK_BACKEND}"
    )
    return MeetingIntelligence(
        store=store,
        embeddings=embeddings,
        transcriber=transcriber,
        llm=llm,
        run_lock=run_lock,
        settings=settings,
    )
