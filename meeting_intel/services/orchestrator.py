"""
Meeting processing pipeline.

Runs the full flow for one meeting under its run lock:

    transcribe -> extract insights -> summarize -> (topics || embeddings)

and moves the meeting through the run state machine:

    None | ready | failed -> processing -> ready | failed

Processing calls never raise. Every outcome, including a rejected run,
comes back as a MeetingProcessingResult.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from meeting_intel.core.exceptions import (
    InvalidTransitionError,
    MeetingIntelError,
    NotFoundError,
    RunInProgressError,
)
from meeting_intel.core.metrics import metrics
from meeting_intel.core.run_lock import RunLock
from meeting_intel.core.run_state import MeetingStatus, ProcessingStep, ensure_transition
from meeting_intel.schemas.records import MeetingRecord
from meeting_intel.schemas.results import BatchItem, HealthStatus, MeetingProcessingResult
from meeting_intel.services.embedding_indexer import EmbeddingIndexer
from meeting_intel.services.insight_extractor import InsightExtractor
from meeting_intel.services.topic_registry import TopicRegistry
from meeting_intel.store.base import EmbeddingStore, MeetingStore
from meeting_intel.transcription.client import TranscriptionClient

logger = logging.getLogger(__name__)


def _error_message(error: Exception) -> str:
    if isinstance(error, MeetingIntelError):
        return error.message
    return str(error) or type(error).__name__


class PipelineOrchestrator:
    def __init__(
        self,
        store: MeetingStore,
        embeddings: EmbeddingStore,
        transcription: TranscriptionClient,
        extractor: InsightExtractor,
        topics: TopicRegistry,
        indexer: EmbeddingIndexer,
        run_lock: RunLock,
        batch_delay_seconds: float = 1.0,
        recovery_delay_seconds: float = 2.0,
        service_flags: Optional[Dict[str, bool]] = None,
    ) -> None:
        self.store = store
        self.embeddings = embeddings
        self.transcription = transcription
        self.extractor = extractor
        self.topics = topics
        self.indexer = indexer
        self.run_lock = run_lock
        self.batch_delay_seconds = batch_delay_seconds
        self.recovery_delay_seconds = recovery_delay_seconds
        self.service_flags = service_flags or {}

    def _progress(self, meeting_id: str, step: ProcessingStep, progress: int, message: str) -> None:
        log = logger.error if step is ProcessingStep.FAILED else logger.info
        log(f"Meeting {meeting_id} - {step.value} ({progress}%): {message}")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def process_new(self, meeting_id: str, audio_ref: str) -> MeetingProcessingResult:
        """Process a meeting from its audio for the first time (or again, from new audio)."""
        return await self._locked_run(meeting_id, audio_ref, reprocess=False)

    async def reprocess(self, meeting_id: str, new_audio_ref: Optional[str] = None) -> MeetingProcessingResult:
        """
        Rebuild all derived data of a meeting.

        With new_audio_ref the audio is transcribed again and becomes the
        meeting's audio reference; otherwise the stored transcript is reused.
        """
        return await self._locked_run(meeting_id, new_audio_ref, reprocess=True)

    async def batch_process(self, items: Sequence[BatchItem]) -> List[MeetingProcessingResult]:
        """Process meetings one after another; a failure never stops the batch."""
        results: List[MeetingProcessingResult] = []
        for i, item in enumerate(items):
            if i > 0:
                # Pacing for provider rate limits
                await asyncio.sleep(self.batch_delay_seconds)
            results.append(await self.process_new(item.meeting_id, item.audio_url))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch finished: {succeeded}/{len(results)} meetings processed")
        return results

    async def recover_failed(self, stale_after: Optional[timedelta] = None) -> List[MeetingProcessingResult]:
        """
        Reprocess every failed meeting.

        With stale_after, runs stuck in processing longer than that (and no
        longer holding their run lock) are first marked failed, then
        recovered like any other failure.
        """
        if stale_after is not None:
            await self._fail_abandoned_runs(stale_after)

        failed = await self.store.list_meetings_by_status(MeetingStatus.FAILED)
        logger.info(f"Recovering {len(failed)} failed meetings")

        results: List[MeetingProcessingResult] = []
        for i, meeting in enumerate(failed):
            if i > 0:
                await asyncio.sleep(self.recovery_delay_seconds)
            if meeting.audio_url:
                results.append(await self.reprocess(meeting.id, meeting.audio_url))
            else:
                results.append(await self.reprocess(meeting.id))
        return results

    async def check_health(self) -> HealthStatus:
        services: Dict[str, bool] = {
            "database": await self.store.ping(),
            "vector_store": await self.embeddings.ping(),
            **self.service_flags,
        }
        return HealthStatus(
            healthy=all(services.values()),
            services=services,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------

    async def _locked_run(
        self,
        meeting_id: str,
        audio_ref: Optional[str],
        reprocess: bool,
    ) -> MeetingProcessingResult:
        start = time.perf_counter()
        try:
            async with self.run_lock.hold(meeting_id):
                return await self._run(meeting_id, audio_ref, reprocess, start)
        except RunInProgressError as e:
            return self._rejected(meeting_id, e, start)
        except Exception as e:
            # Lock backend unreachable; the run never started
            return self._rejected(meeting_id, e, start, outcome="failed")

    def _rejected(
        self,
        meeting_id: str,
        error: Exception,
        start: float,
        outcome: str = "rejected",
    ) -> MeetingProcessingResult:
        message = _error_message(error)
        logger.warning(f"Run for meeting {meeting_id} did not start: {message}")
        duration_ms = (time.perf_counter() - start) * 1000
        metrics.record_run(duration_ms, outcome)
        return MeetingProcessingResult(
            meeting_id=meeting_id,
            success=False,
            error=message,
            duration_ms=duration_ms,
        )

    async def _begin(
        self,
        meeting_id: str,
        audio_ref: Optional[str],
        reprocess: bool,
    ) -> Tuple[MeetingRecord, Optional[MeetingStatus]]:
        """Load or create the meeting and move it to processing; returns the prior status too."""
        if reprocess:
            meeting = await self.store.get_meeting(meeting_id)
            if meeting is None:
                raise NotFoundError("Meeting", meeting_id)
        else:
            meeting = await self.store.get_meeting(meeting_id) or await self.store.create_meeting(meeting_id)

        previous = meeting.status
        target = ensure_transition(meeting_id, previous, MeetingStatus.PROCESSING)

        fields = {"status": target, "last_error": None}
        if audio_ref:
            fields["audio_url"] = audio_ref
        return await self.store.update_meeting(meeting_id, **fields), previous

    async def _run(
        self,
        meeting_id: str,
        audio_ref: Optional[str],
        reprocess: bool,
        start: float,
    ) -> MeetingProcessingResult:
        try:
            meeting, previous = await self._begin(meeting_id, audio_ref, reprocess)
        except (InvalidTransitionError, NotFoundError) as e:
            # Nothing started, so the persisted status stays as it was
            return self._rejected(meeting_id, e, start)
        except Exception as e:
            # Store failed before processing was written
            return self._rejected(meeting_id, e, start, outcome="failed")

        result = MeetingProcessingResult(meeting_id=meeting_id, success=False)
        self._progress(meeting_id, ProcessingStep.STARTED, 0, "reprocessing" if reprocess else "processing")

        try:
            # Any earlier run may have left items behind
            if reprocess or previous is not None:
                await self._clear_derived_data(meeting_id)

            transcript = await self._resolve_transcript(meeting, audio_ref, reprocess)

            self._progress(meeting_id, ProcessingStep.EXTRACTING_INSIGHTS, 40, "extracting action items and decisions")
            insights, action_items, decisions = await self.extractor.extract_and_store(meeting_id, transcript)
            result.action_items_count = len(action_items)
            result.decisions_count = len(decisions)

            summary = await self.extractor.summarize(transcript)
            await self.store.update_meeting(meeting_id, summary=summary)

            self._progress(meeting_id, ProcessingStep.UPDATING_TOPICS, 60, f"linking {len(insights.topics)} topics")
            self._progress(meeting_id, ProcessingStep.GENERATING_EMBEDDINGS, 70, "indexing transcript chunks")
            topics_outcome, indexing_outcome = await asyncio.gather(
                self.topics.link_topics(meeting_id, insights.topics),
                self.indexer.reindex(meeting_id, transcript),
                return_exceptions=True,
            )
            for outcome in (topics_outcome, indexing_outcome):
                if isinstance(outcome, BaseException):
                    raise outcome

            result.topics_count = len(topics_outcome)
            result.chunks_indexed = indexing_outcome.chunks_indexed
            result.chunks_failed = indexing_outcome.chunks_failed

            await self.store.update_meeting(
                meeting_id,
                status=ensure_transition(meeting_id, MeetingStatus.PROCESSING, MeetingStatus.READY),
            )
        except Exception as e:
            return await self._fail(meeting_id, result, e, start)

        result.success = True
        result.status = MeetingStatus.READY
        result.duration_ms = (time.perf_counter() - start) * 1000
        metrics.record_run(result.duration_ms, "ready")
        self._progress(meeting_id, ProcessingStep.COMPLETED, 100, f"done in {result.duration_ms / 1000:.1f}s")
        return result

    async def _resolve_transcript(
        self,
        meeting: MeetingRecord,
        audio_ref: Optional[str],
        reprocess: bool,
    ) -> str:
        if audio_ref or not reprocess:
            self._progress(meeting.id, ProcessingStep.TRANSCRIBING, 10, "transcribing audio")
            transcript = await self.transcription.transcribe(audio_ref or "")
            await self.store.update_meeting(meeting.id, transcript=transcript)
            return transcript

        if meeting.transcript:
            self._progress(meeting.id, ProcessingStep.TRANSCRIBING, 10, "using stored transcript")
            return meeting.transcript

        raise NotFoundError(
            "Transcript",
            meeting.id,
            message=f"Meeting '{meeting.id}' has neither new audio nor a stored transcript",
        )

    async def _clear_derived_data(self, meeting_id: str) -> None:
        """Delete everything a previous run produced; topics themselves survive."""
        deleted = await asyncio.gather(
            self.store.delete_action_items(meeting_id),
            self.store.delete_decisions(meeting_id),
            self.store.delete_topic_links(meeting_id),
            self.embeddings.delete_chunks(meeting_id),
        )
        logger.info(
            f"Meeting {meeting_id}: cleared {deleted[0]} action items, {deleted[1]} decisions, "
            f"{deleted[2]} topic links, {deleted[3]} chunks"
        )

    async def _fail(
        self,
        meeting_id: str,
        result: MeetingProcessingResult,
        error: Exception,
        start: float,
    ) -> MeetingProcessingResult:
        message = _error_message(error)
        self._progress(meeting_id, ProcessingStep.FAILED, 100, message)

        try:
            await self.store.update_meeting(
                meeting_id,
                status=ensure_transition(meeting_id, MeetingStatus.PROCESSING, MeetingStatus.FAILED),
                last_error=message,
            )
        except Exception as e:
            logger.error(f"Could not mark meeting {meeting_id} as failed: {e}")

        result.success = False
        result.status = MeetingStatus.FAILED
        result.error = message
        result.duration_ms = (time.perf_counter() - start) * 1000
        metrics.record_run(result.duration_ms, "failed")
        return result

    async def _fail_abandoned_runs(self, stale_after: timedelta) -> None:
        cutoff = datetime.now(timezone.utc) - stale_after
        for meeting in await self.store.list_meetings_by_status(MeetingStatus.PROCESSING):
            updated_at = meeting.updated_at
            if updated_at is not None and updated_at.tzinfo is None:
                updated_at = updated_at.replace(tzinfo=timezone.utc)
            if updated_at is None or updated_at > cutoff:
                continue
            if await self.run_lock.is_locked(meeting.id):
                continue

            logger.warning(f"Meeting {meeting.id} stuck in processing since {updated_at.isoformat()}, marking failed")
            try:
                await self.store.update_meeting(
                    meeting.id,
                    status=ensure_transition(meeting.id, MeetingStatus.PROCESSING, MeetingStatus.FAILED),
                    last_error=f"Run abandoned: no progress for {stale_after}",
                )
            except Exception as e:
                logger.error(f"Could not mark abandoned meeting {meeting.id} as failed: {e}")
