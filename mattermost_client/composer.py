"""Outgoing post text helpers."""

from __future__ import annotations

MESSAGE_MAX_RUNES = 4000


def chunk_message(text: str | None, limit: int = MESSAGE_MAX_RUNES) -> list[str]:
    """Split text into consecutive chunks of at most ``limit`` characters.

    Splits on character boundaries only. Empty or missing text yields a
    single empty chunk, so there is always something to post.
    """
    if not text:
        return [""]
    return [text[i : i + limit] for i in range(0, len(text), limit)]
