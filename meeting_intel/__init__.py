"""
Meeting intelligence engine.

Turns meeting recordings into transcripts, action items, decisions,
topics and embeddings, and answers questions over the resulting corpus.
"""

from meeting_intel.engine import MeetingIntelligence, build_engine

__version__ = "0.1.0"

__all__ = ["MeetingIntelligence", "build_engine", "__version__"]
