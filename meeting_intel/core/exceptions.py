"""
Unified exception hierarchy for the Meeting Intelligence Engine.

This module provides:
- A base exception carrying a stable error code and structured details
- Provider, parsing, lookup and validation errors used across the pipeline
- Run-control errors raised by the status state machine and run lock
"""

from __future__ import annotations

from typing import Any, Optional, Dict

from pydantic import BaseModel


# =============================================================================
# Error Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Serializable error detail."""
    code: str
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


# =============================================================================
# Base Exception
# =============================================================================

class MeetingIntelError(Exception):
    """Base exception for the Meeting Intelligence Engine."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.details = details
        self.field = field
        super().__init__(self.message)

    def to_detail(self) -> ErrorDetail:
        """Convert exception to a serializable error detail."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            field=self.field,
            details=self.details,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.to_detail().model_dump(exclude_none=True)


# --- Configuration Errors ---

class ConfigurationError(MeetingIntelError):
    """Required configuration value is missing or invalid."""

    def __init__(self, setting: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"{setting} is required and was not provided",
            code="CONFIGURATION_ERROR",
            details={"setting": setting},
        )


# --- Provider Errors ---

class ProviderError(MeetingIntelError):
    """External provider (transcription, generation, embedding) failed."""

    def __init__(
        self,
        service: str,
        message: str = "Service temporarily unavailable",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.service = service
        super().__init__(
            message=f"{service}: {message}",
            code="PROVIDER_ERROR",
            details={"service": service, **(details or {})},
        )


class TranscriptionTimeoutError(MeetingIntelError, TimeoutError):
    """Transcription job did not complete within the poll budget."""

    def __init__(self, job_id: str, attempts: int, interval_seconds: float):
        super().__init__(
            message=(
                f"Transcription timed out: job '{job_id}' not completed after "
                f"{attempts} polls ({attempts * interval_seconds:.0f}s)"
            ),
            code="TRANSCRIPTION_TIMEOUT",
            details={"job_id": job_id, "attempts": attempts},
        )


# --- Parsing Errors ---

class ParseError(MeetingIntelError):
    """Model output could not be parsed into the expected structure."""

    def __init__(self, message: str, raw_excerpt: Optional[str] = None):
        super().__init__(
            message=message,
            code="PARSE_ERROR",
            details={"raw_excerpt": raw_excerpt} if raw_excerpt else None,
        )


# --- Resource Errors ---

class NotFoundError(MeetingIntelError):
    """Resource not found."""

    def __init__(
        self,
        resource: str,
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"{resource} not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' not found"

        super().__init__(
            message=message,
            code="RESOURCE_NOT_FOUND",
            details={"resource": resource, "id": resource_id},
        )


# --- Validation Errors ---

class ValidationError(MeetingIntelError):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            field=field,
            details=details,
        )


# --- Run Control Errors ---

class InvalidTransitionError(MeetingIntelError):
    """Requested meeting status transition is not allowed."""

    def __init__(self, meeting_id: str, current: Optional[str], target: str):
        super().__init__(
            message=(
                f"Meeting '{meeting_id}' cannot move from "
                f"'{current or 'never run'}' to '{target}'"
            ),
            code="INVALID_TRANSITION",
            details={"meeting_id": meeting_id, "current": current, "target": target},
        )


class RunInProgressError(MeetingIntelError):
    """Another processing run already holds the meeting."""

    def __init__(self, meeting_id: str):
        super().__init__(
            message=f"Meeting '{meeting_id}' is already being processed",
            code="RUN_IN_PROGRESS",
            details={"meeting_id": meeting_id},
        )


# --- Storage Errors ---

class StoreError(MeetingIntelError):
    """Persistence layer failure."""

    def __init__(self, message: str = "Store temporarily unavailable", operation: Optional[str] = None):
        super().__init__(
            message=message,
            code="STORE_ERROR",
            details={"operation": operation} if operation else None,
        )


# =============================================================================
# Utility Functions
# =============================================================================

def raise_not_found(resource: str, resource_id: Optional[str] = None) -> None:
    """Convenience function to raise NotFoundError."""
    raise NotFoundError(resource=resource, resource_id=resource_id)


def raise_validation_error(message: str, field: Optional[str] = None) -> None:
    """Convenience function to raise ValidationError."""
    raise ValidationError(message=message, field=field)
