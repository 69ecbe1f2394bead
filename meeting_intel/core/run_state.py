"""
Meeting run state machine.

A meeting with no status has never been processed. Every run starts by
moving to PROCESSING and ends in READY or FAILED:

    None | READY | FAILED  ->  PROCESSING  ->  READY | FAILED
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from meeting_intel.core.exceptions import InvalidTransitionError


class MeetingStatus(str, Enum):
    """Persisted meeting processing status."""
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class ProcessingStep(str, Enum):
    """Pipeline step reported in progress logs."""
    STARTED = "started"
    TRANSCRIBING = "transcribing"
    EXTRACTING_INSIGHTS = "extracting_insights"
    UPDATING_TOPICS = "updating_topics"
    GENERATING_EMBEDDINGS = "generating_embeddings"
    COMPLETED = "completed"
    FAILED = "failed"


ALLOWED_TRANSITIONS: Dict[Optional[MeetingStatus], FrozenSet[MeetingStatus]] = {
    None: frozenset({MeetingStatus.PROCESSING}),
    MeetingStatus.READY: frozenset({MeetingStatus.PROCESSING}),
    MeetingStatus.FAILED: frozenset({MeetingStatus.PROCESSING}),
    MeetingStatus.PROCESSING: frozenset({MeetingStatus.READY, MeetingStatus.FAILED}),
}


def coerce_status(value: Union[MeetingStatus, str, None]) -> Optional[MeetingStatus]:
    """Accept enum members, raw strings from storage, or None."""
    if value is None or isinstance(value, MeetingStatus):
        return value
    return MeetingStatus(value)


def can_transition(
    current: Union[MeetingStatus, str, None],
    target: Union[MeetingStatus, str],
) -> bool:
    return coerce_status(target) in ALLOWED_TRANSITIONS[coerce_status(current)]


def ensure_transition(
    meeting_id: str,
    current: Union[MeetingStatus, str, None],
    target: Union[MeetingStatus, str],
) -> MeetingStatus:
    """Return the target status or raise InvalidTransitionError."""
    current_status = coerce_status(current)
    target_status = coerce_status(target)

    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidTransitionError(
            meeting_id,
            current_status.value if current_status else None,
            target_status.value,
        )
    return target_status


def is_running(status: Union[MeetingStatus, str, None]) -> bool:
    return coerce_status(status) is MeetingStatus.PROCESSING
