"""
Tests for insight extraction and storage.
"""

import json

import pytest

from meeting_intel.core.exceptions import ParseError, ProviderError
from meeting_intel.schemas.insights import ExtractedActionItem, ExtractedDecision, MeetingInsights
from meeting_intel.schemas.records import ActionItemPriority
from meeting_intel.services.insight_extractor import InsightExtractor

from fakes import SAMPLE_INSIGHTS, SAMPLE_TRANSCRIPT, FakeLLM


# ============== Fixtures ==============

@pytest.fixture
def extractor(fake_llm, meeting_store):
    return InsightExtractor(fake_llm, meeting_store)


# ============== Tests ==============

class TestExtract:
    """Tests for InsightExtractor.extract."""

    @pytest.mark.asyncio
    async def test_extracts_and_normalizes(self, extractor, fake_llm):
        insights = await extractor.extract(SAMPLE_TRANSCRIPT)

        assert [i.description for i in insights.action_items] == [
            "Send the pricing proposal",
            "Book the launch venue",
        ]
        assert insights.action_items[0].priority == ActionItemPriority.HIGH
        # "urgent" is not a known priority
        assert insights.action_items[1].priority == ActionItemPriority.MEDIUM
        assert insights.action_items[1].due_date is None
        assert insights.decisions[0].tags == ["launch"]
        assert SAMPLE_TRANSCRIPT in fake_llm.prompts["insights"][0]

    @pytest.mark.asyncio
    async def test_fenced_response(self, meeting_store):
        llm = FakeLLM(insights="```json\n" + json.dumps(SAMPLE_INSIGHTS) + "\n```")

        insights = await InsightExtractor(llm, meeting_store).extract(SAMPLE_TRANSCRIPT)

        assert len(insights.action_items) == 2

    @pytest.mark.asyncio
    async def test_empty_transcript_skips_generation(self, extractor, fake_llm):
        insights = await extractor.extract("   ")

        assert insights == MeetingInsights()
        assert fake_llm.prompts["insights"] == []

    @pytest.mark.asyncio
    async def test_malformed_response(self, meeting_store):
        llm = FakeLLM(insights="Sorry, I cannot help with that.")

        with pytest.raises(ParseError):
            await InsightExtractor(llm, meeting_store).extract(SAMPLE_TRANSCRIPT)

    @pytest.mark.asyncio
    async def test_provider_failure_propagates(self, meeting_store):
        llm = FakeLLM(insights=ProviderError("gemini", "generate timed out"))

        with pytest.raises(ProviderError):
            await InsightExtractor(llm, meeting_store).extract(SAMPLE_TRANSCRIPT)


class TestSummarize:
    """Tests for InsightExtractor.summarize."""

    @pytest.mark.asyncio
    async def test_summary(self, extractor):
        summary = await extractor.summarize(SAMPLE_TRANSCRIPT)

        assert summary == "The team reviewed pricing and agreed on a March launch."

    @pytest.mark.asyncio
    async def test_failure_returns_none(self, meeting_store):
        llm = FakeLLM(summary=ProviderError("gemini", "generate timed out"))

        assert await InsightExtractor(llm, meeting_store).summarize(SAMPLE_TRANSCRIPT) is None

    @pytest.mark.asyncio
    async def test_blank_summary_is_none(self, meeting_store):
        llm = FakeLLM(summary="   ")

        assert await InsightExtractor(llm, meeting_store).summarize(SAMPLE_TRANSCRIPT) is None

    @pytest.mark.asyncio
    async def test_empty_transcript(self, extractor, fake_llm):
        assert await extractor.summarize("") is None
        assert fake_llm.prompts["summary"] == []


class TestStoreInsights:
    """Tests for InsightExtractor.store_insights."""

    @pytest.mark.asyncio
    async def test_stores_items_and_decisions(self, extractor, meeting_store):
        insights = MeetingInsights.model_validate(SAMPLE_INSIGHTS)

        items, decisions = await extractor.store_insights("m1", insights)

        assert len(items) == 2
        assert len(decisions) == 1
        assert len(await meeting_store.list_action_items("m1")) == 2
        assert (await meeting_store.list_decisions("m1"))[0].decision_text == "Launch the new plan in March"

    @pytest.mark.asyncio
    async def test_failed_item_is_skipped(self, extractor, meeting_store):
        original = meeting_store.add_action_item

        async def flaky_add(meeting_id, item):
            if item.description == "first":
                raise RuntimeError("disk full")
            return await original(meeting_id, item)

        meeting_store.add_action_item = flaky_add
        insights = MeetingInsights(
            action_items=[ExtractedActionItem(description="first"), ExtractedActionItem(description="second")],
            decisions=[ExtractedDecision(decision_text="Keep going")],
        )

        items, decisions = await extractor.store_insights("m1", insights)

        assert [i.description for i in items] == ["second"]
        assert len(decisions) == 1
        assert len(await meeting_store.list_action_items("m1")) == 1

    @pytest.mark.asyncio
    async def test_extract_and_store(self, extractor, meeting_store):
        insights, items, decisions = await extractor.extract_and_store("m1", SAMPLE_TRANSCRIPT)

        assert insights.topics == ["Pricing", "Launch   Plan"]
        assert len(items) == 2
        assert len(decisions) == 1
