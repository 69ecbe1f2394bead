"""Utility modules for the meeting intelligence engine."""

from meeting_intel.utils.chunking import chunk_words
from meeting_intel.utils.similarity import cosine_similarity, cosine_scores
from meeting_intel.utils.text import truncate_snippet

__all__ = [
    "chunk_words",
    "cosine_similarity",
    "cosine_scores",
    "truncate_snippet",
]
