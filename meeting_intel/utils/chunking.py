from __future__ import annotations

from typing import List


def chunk_words(text: str, chunk_size: int = 500) -> List[str]:
    """
    Split text into chunks of at most `chunk_size` whitespace-separated words.

    Words are re-joined with single spaces; the final chunk may be shorter
    and empty input yields no chunks.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    words = text.split()
    return [
        " ".join(words[start:start + chunk_size])
        for start in range(0, len(words), chunk_size)
    ]
