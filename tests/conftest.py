"""
Root pytest configuration for meeting-intel tests.

Registers the custom command line options and markers, and provides the
in-memory stores and fake providers most service tests run against.
"""

import json

import pytest

from meeting_intel.core.config import Settings
from meeting_intel.core.metrics import metrics
from meeting_intel.engine import MeetingIntelligence
from meeting_intel.store.memory import InMemoryEmbeddingStore, InMemoryMeetingStore

from fakes import SAMPLE_INSIGHTS, SAMPLE_TRANSCRIPT, FakeLLM, FakeTranscriptionProvider


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires external services like Qdrant or Redis)",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require external services)"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless the flag is provided."""
    if config.getoption("--integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="Need --integration option to run integration tests"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============== Fixtures ==============

@pytest.fixture(autouse=True)
def reset_metrics():
    """Each test starts from empty pipeline metrics."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def test_settings():
    """Settings with no pacing delays and a small poll budget."""
    return Settings(
        _env_file=None,
        ASSEMBLYAI_API_KEY="test-assemblyai-key",
        GEMINI_API_KEY="test-gemini-key",
        TRANSCRIPTION_POLL_INTERVAL_SECONDS=0,
        TRANSCRIPTION_MAX_POLL_ATTEMPTS=3,
        BATCH_DELAY_SECONDS=0,
        RECOVERY_DELAY_SECONDS=0,
        CHUNK_SIZE_WORDS=10,
    )


@pytest.fixture
def meeting_store():
    return InMemoryMeetingStore()


@pytest.fixture
def embedding_store():
    return InMemoryEmbeddingStore()


@pytest.fixture
def fake_llm():
    return FakeLLM(
        insights=json.dumps(SAMPLE_INSIGHTS),
        summary="The team reviewed pricing and agreed on a March launch.",
    )


@pytest.fixture
def fake_transcriber():
    return FakeTranscriptionProvider(
        transcripts={
            "https://audio.example.com/a.mp3": SAMPLE_TRANSCRIPT,
            "https://audio.example.com/b.mp3": SAMPLE_TRANSCRIPT,
        },
    )


@pytest.fixture
def engine(meeting_store, embedding_store, fake_transcriber, fake_llm, test_settings):
    """Engine over in-memory stores and fake providers."""
    return MeetingIntelligence(
        store=meeting_store,
        embeddings=embedding_store,
        transcriber=fake_transcriber,
        llm=fake_llm,
        settings=test_settings,
    )
