"""
Question answering over meeting transcripts (retrieval-augmented generation).

Flow:
1. Embed the question
2. Retrieve the top-K chunks across all meetings (no per-meeting dedupe)
3. Ask the model to answer only from those chunks, labeled [Source n]
"""

from __future__ import annotations

import logging
import time
from typing import List

from meeting_intel.core.exceptions import ValidationError
from meeting_intel.core.metrics import metrics
from meeting_intel.llm.base import LLMProvider
from meeting_intel.llm.json_output import parse_or_raise
from meeting_intel.llm.prompts import build_answer_prompt, build_suggested_questions_prompt
from meeting_intel.schemas.results import AnswerSource, QAResult
from meeting_intel.services.search_service import validate_top_k
from meeting_intel.store.base import EmbeddingStore, MeetingStore
from meeting_intel.utils.text import truncate_snippet

logger = logging.getLogger(__name__)

NO_CONTENT_ANSWER = (
    "I could not find any relevant meeting content to answer your question. "
    "Please try rephrasing your question or ensure meetings have been processed."
)

DEFAULT_QUESTIONS = [
    "What decisions were made recently?",
    "What are the upcoming action items?",
    "What topics have been discussed most frequently?",
]

MAX_SUGGESTED_QUESTIONS = 5


class RAGAnswerer:
    def __init__(
        self,
        llm: LLMProvider,
        embeddings: EmbeddingStore,
        meetings: MeetingStore,
        snippet_chars: int = 200,
    ) -> None:
        self.llm = llm
        self.embeddings = embeddings
        self.meetings = meetings
        self.snippet_chars = snippet_chars

    async def answer(self, question: str, top_k: int = 5) -> QAResult:
        """
        Raises:
            ValidationError: empty question or top_k < 1
            ProviderError: embedding or generation failed
        """
        if not question or not question.strip():
            raise ValidationError("Question is required", field="question")
        validate_top_k(top_k)

        start = time.perf_counter()
        question = question.strip()
        query_vector = await self.llm.embed(question)
        chunks = await self.embeddings.top_chunks(query_vector, limit=top_k, one_per_meeting=False)

        if not chunks:
            logger.info("No relevant chunks found, skipping generation")
            metrics.record_answer((time.perf_counter() - start) * 1000, generated=False)
            return QAResult(answer=NO_CONTENT_ANSWER, sources=[])

        prompt = build_answer_prompt(question, [c.chunk_text for c in chunks])
        answer = (await self.llm.generate(prompt)).strip()

        sources = [
            AnswerSource(
                meeting_id=chunk.meeting_id,
                snippet=truncate_snippet(chunk.chunk_text, self.snippet_chars),
            )
            for chunk in chunks
        ]

        latency_ms = (time.perf_counter() - start) * 1000
        metrics.record_answer(latency_ms, generated=True)
        logger.info(f"Answered from {len(chunks)} chunks in {latency_ms:.0f}ms")
        return QAResult(answer=answer, sources=sources)

    async def suggest_questions(self, limit: int = 3) -> List[str]:
        """
        Suggest up to five questions from the `limit` most recent summaries.

        Falls back to generic questions when there is nothing to go on or
        generation fails.
        """
        try:
            summaries = await self.meetings.list_recent_summaries(limit)
            if not summaries:
                return list(DEFAULT_QUESTIONS)

            raw = await self.llm.generate(build_suggested_questions_prompt(summaries))
            questions = parse_or_raise(raw, List[str])
        except Exception as e:
            logger.error(f"Failed to generate suggested questions: {e}")
            return list(DEFAULT_QUESTIONS)

        questions = [q.strip() for q in questions if q.strip()][:MAX_SUGGESTED_QUESTIONS]
        return questions or list(DEFAULT_QUESTIONS)
