"""
Schema for the structured insight object returned by the generation model.

The model is untrusted: field types are checked strictly (a list must be a
list) while individual values are normalized leniently.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meeting_intel.schemas.records import ActionItemPriority

_WHITESPACE = re.compile(r"\s+")


def normalize_topic_name(name: str) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", name).strip().lower()


def parse_due_date(value: Any) -> Optional[date]:
    """Accept YYYY-MM-DD or an ISO datetime; anything else means no date."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or text.lower() in ("null", "none", "n/a", "tbd"):
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


class ExtractedActionItem(BaseModel):
    description: str = ""
    priority: ActionItemPriority = ActionItemPriority.MEDIUM
    due_date: Optional[date] = None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v: Any) -> ActionItemPriority:
        if isinstance(v, str):
            try:
                return ActionItemPriority(v.strip().lower())
            except ValueError:
                pass
        return ActionItemPriority.MEDIUM

    @field_validator("due_date", mode="before")
    @classmethod
    def coerce_due_date(cls, v: Any) -> Optional[date]:
        return parse_due_date(v)


class ExtractedDecision(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    decision_text: str = Field(default="")
    context: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("decision_text", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""

    @field_validator("context", mode="before")
    @classmethod
    def blank_context_is_none(cls, v: Any) -> Optional[str]:
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [t.strip() for t in v if isinstance(t, str) and t.strip()]
        # Wrong shape is left for the list validator to reject
        return v


class MeetingInsights(BaseModel):
    """Action items, decisions and topic names extracted from one transcript."""
    model_config = ConfigDict(populate_by_name=True)

    action_items: List[ExtractedActionItem] = Field(default_factory=list, alias="actionItems")
    decisions: List[ExtractedDecision] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)

    @field_validator("action_items", "decisions", "topics", mode="before")
    @classmethod
    def null_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("decisions", mode="before")
    @classmethod
    def accept_text_alias(cls, v: Any) -> Any:
        # Models sometimes emit "text" instead of "decision_text"
        if not isinstance(v, list):
            return v
        fixed = []
        for entry in v:
            if isinstance(entry, dict) and "decision_text" not in entry and "text" in entry:
                entry = {**entry, "decision_text": entry["text"]}
            fixed.append(entry)
        return fixed

    @field_validator("topics", mode="after")
    @classmethod
    def drop_blank_topics(cls, v: List[str]) -> List[str]:
        return [t.strip() for t in v if t.strip()]

    @field_validator("action_items", mode="after")
    @classmethod
    def drop_blank_action_items(cls, v: List[ExtractedActionItem]) -> List[ExtractedActionItem]:
        return [item for item in v if item.description]

    @field_validator("decisions", mode="after")
    @classmethod
    def drop_blank_decisions(cls, v: List[ExtractedDecision]) -> List[ExtractedDecision]:
        return [d for d in v if d.decision_text]
