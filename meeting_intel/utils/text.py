from __future__ import annotations


def truncate_snippet(text: str, max_chars: int) -> str:
    """Cut text to `max_chars` and mark the cut with an ellipsis; text that fits is returned as is."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars].strip() + "..."
