"""
Insight extraction: action items, decisions, topics and a summary from a
transcript, via one structured prompt and one summary prompt.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from meeting_intel.core.exceptions import ParseError
from meeting_intel.llm.base import LLMProvider
from meeting_intel.llm.json_output import parse_or_raise
from meeting_intel.llm.prompts import build_insights_prompt, build_summary_prompt
from meeting_intel.schemas.insights import MeetingInsights
from meeting_intel.schemas.records import ActionItemRecord, DecisionRecord
from meeting_intel.store.base import MeetingStore

logger = logging.getLogger(__name__)


class InsightExtractor:
    def __init__(self, llm: LLMProvider, store: MeetingStore) -> None:
        self.llm = llm
        self.store = store

    async def extract(self, transcript: str) -> MeetingInsights:
        """
        Ask the model for structured insights.

        Raises:
            ParseError: the response is not a valid insights object
            ProviderError: the generation call failed
        """
        if not transcript or not transcript.strip():
            logger.info("Empty transcript, nothing to extract")
            return MeetingInsights()

        raw = await self.llm.generate(build_insights_prompt(transcript))
        insights = parse_or_raise(raw, MeetingInsights)

        logger.info(
            f"Extracted {len(insights.action_items)} action items, "
            f"{len(insights.decisions)} decisions, {len(insights.topics)} topics"
        )
        return insights

    async def summarize(self, transcript: str) -> Optional[str]:
        """Return a short summary, or None if generation fails."""
        if not transcript or not transcript.strip():
            return None
        try:
            summary = await self.llm.generate(build_summary_prompt(transcript))
        except Exception as e:
            logger.error(f"Failed to generate summary: {e}")
            return None

        summary = summary.strip()
        return summary or None

    async def store_insights(
        self,
        meeting_id: str,
        insights: MeetingInsights,
    ) -> Tuple[List[ActionItemRecord], List[DecisionRecord]]:
        """Persist items one by one; a failed item is logged and skipped."""
        action_items: List[ActionItemRecord] = []
        for item in insights.action_items:
            try:
                action_items.append(await self.store.add_action_item(meeting_id, item))
            except Exception as e:
                logger.error(f"Failed to store action item for meeting {meeting_id}: {e}")

        decisions: List[DecisionRecord] = []
        for decision in insights.decisions:
            try:
                decisions.append(await self.store.add_decision(meeting_id, decision))
            except Exception as e:
                logger.error(f"Failed to store decision for meeting {meeting_id}: {e}")

        skipped = (len(insights.action_items) - len(action_items)) + (len(insights.decisions) - len(decisions))
        if skipped:
            logger.warning(f"Meeting {meeting_id}: {skipped} insights could not be stored")
        return action_items, decisions

    async def extract_and_store(
        self,
        meeting_id: str,
        transcript: str,
    ) -> Tuple[MeetingInsights, List[ActionItemRecord], List[DecisionRecord]]:
        try:
            insights = await self.extract(transcript)
        except ParseError:
            logger.error(f"Insight extraction for meeting {meeting_id} returned malformed output")
            raise
        action_items, decisions = await self.store_insights(meeting_id, insights)
        return insights, action_items, decisions
