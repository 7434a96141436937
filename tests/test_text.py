"""
Tests for text helpers and the chunk processor.
"""

import asyncio

import pytest

from aime.core.errors import (
    GenerationGuardrailViolation,
    TextProcessingChunkingFailed,
    TextProcessingEmptyInput,
)
from aime.core.text import ChunkProcessor, TextProcessor

PARAGRAPHS = [f"para-{i:05d}" for i in range(4)]
TEXT = "\n".join(PARAGRAPHS)


class TestTextProcessor:
    """Test stateless text utilities."""

    def test_is_empty_trims_whitespace(self):
        assert TextProcessor.is_empty("")
        assert TextProcessor.is_empty("   \n\t ")
        assert not TextProcessor.is_empty("  a  ")

    def test_truncate_leaves_short_text_untouched(self):
        assert TextProcessor.truncate("hello", 5) == "hello"
        assert TextProcessor.truncate("hello", 50) == "hello"

    def test_truncate_cuts_to_max_length(self):
        result = TextProcessor.truncate("hello world", 8)
        assert result == "hello..."
        assert len(result) == 8

    def test_truncate_bound_with_tiny_limit(self):
        result = TextProcessor.truncate("hello world", 2)
        assert result == "..."
        assert len(result) <= 2 + len("...")

    def test_truncate_custom_suffix(self):
        assert TextProcessor.truncate("abcdefgh", 5, suffix="…") == "abcd…"

    def test_estimate_token_count(self):
        assert TextProcessor.estimate_token_count("abcdefgh") == 2
        assert TextProcessor.estimate_token_count("abc") == 0

    def test_token_ranges_skip_blank_paragraphs(self):
        assert TextProcessor.token_ranges("a\n\nb\n") == [(0, 1), (3, 4)]

    def test_chunk_text_units(self):
        assert TextProcessor.chunk_text(" one \n\n two ") == ["one", "two"]
        assert TextProcessor.chunk_text("Hi there. How are you?", unit="sentence") == ["Hi there.", "How are you?"]
        assert TextProcessor.chunk_text("a  b\nc", unit="word") == ["a", "b", "c"]

    def test_unknown_unit_raises(self):
        with pytest.raises(ValueError):
            TextProcessor.token_ranges("text", unit="chapter")


class TestChunkProcessor:
    """Test bisection of oversized or failing spans."""

    def test_small_text_processed_in_one_call(self):
        calls = []

        async def operation(chunk):
            calls.append(chunk)
            return chunk.upper()

        result = asyncio.run(ChunkProcessor(TEXT, max_chunk_size=1000).process(operation))
        assert calls == [TEXT]
        assert result == TEXT.upper()

    def test_oversized_span_is_bisected(self):
        calls = []

        async def operation(chunk):
            calls.append(chunk)
            return f"<{len(chunk)}>"

        # Whole text is 43 characters; each half is 21
        result = asyncio.run(ChunkProcessor(TEXT, max_chunk_size=25).process(operation))
        assert calls == ["\n".join(PARAGRAPHS[:2]), "\n".join(PARAGRAPHS[2:])]
        assert result == "<21>\n<21>"

    def test_failing_spans_split_down_to_paragraphs(self):
        async def operation(chunk):
            if "\n" in chunk:
                raise RuntimeError("context window exceeded")
            return chunk[-1]

        result = asyncio.run(ChunkProcessor(TEXT).process(operation))
        assert result == "0\n1\n2\n3"

    def test_single_failing_range_raises_chunking_failed(self):
        calls = []

        async def operation(chunk):
            calls.append(chunk)
            raise RuntimeError("always fails")

        with pytest.raises(TextProcessingChunkingFailed) as exc_info:
            asyncio.run(ChunkProcessor(TEXT).process(operation))

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        # whole text, first half, first paragraph
        assert len(calls) == 3

    def test_non_size_errors_are_not_split(self):
        calls = []

        async def operation(chunk):
            calls.append(chunk)
            raise GenerationGuardrailViolation()

        with pytest.raises(GenerationGuardrailViolation):
            asyncio.run(ChunkProcessor(TEXT).process(operation))
        assert calls == [TEXT]

    @pytest.mark.parametrize("text", ["", "  \n \n"])
    def test_empty_text_raises(self, text):
        async def operation(chunk):
            return chunk

        with pytest.raises(TextProcessingEmptyInput):
            asyncio.run(ChunkProcessor(text).process(operation))
