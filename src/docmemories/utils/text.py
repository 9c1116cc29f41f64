"""Text helpers including the sliding-window chunker."""

from __future__ import annotations

from typing import Iterator


def chunk_text(text: str, *, max_chars: int = 8000, overlap: int = 200) -> Iterator[str]:
    """Split text into overlapping character windows.

    Windows advance by ``max_chars - overlap``; the last window always ends at
    the end of the text, so no trailing window is fully contained in its
    predecessor.
    """
    if not text:
        return

    step = max(max_chars - overlap, 1)
    start = 0
    while True:
        end = min(start + max_chars, len(text))
        yield text[start:end]
        if end >= len(text):
            break
        start += step


def truncate(text: str, limit: int) -> str:
    """Return at most ``limit`` leading characters of ``text``."""
    return text[:limit]
