"""Tests for outgoing message chunking."""

from __future__ import annotations

import pytest

from mattermost_client.composer import MESSAGE_MAX_RUNES, chunk_message


@pytest.mark.parametrize(
    ("length", "expected"),
    [
        (1, [1]),
        (4000, [4000]),
        (4001, [4000, 1]),
        (9000, [4000, 4000, 1000]),
    ],
)
def test_chunk_lengths(length: int, expected: list[int]) -> None:
    chunks = chunk_message("x" * length)
    assert [len(chunk) for chunk in chunks] == expected


def test_chunks_rejoin_to_original() -> None:
    text = "".join(chr(ord("a") + i % 26) for i in range(MESSAGE_MAX_RUNES * 2 + 17))
    assert "".join(chunk_message(text)) == text


def test_multibyte_characters_count_once() -> None:
    text = "é" * 4001
    chunks = chunk_message(text)
    assert [len(chunk) for chunk in chunks] == [4000, 1]


@pytest.mark.parametrize("text", ["", None])
def test_empty_text_yields_one_empty_chunk(text: str | None) -> None:
    assert chunk_message(text) == [""]


def test_custom_limit() -> None:
    assert chunk_message("abcdefg", 3) == ["abc", "def", "g"]
