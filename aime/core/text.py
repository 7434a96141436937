"""
Text helpers for AIME.

Chunking, emptiness checks, token estimates and truncation, plus the chunk
processor that bisects oversized inputs until each piece fits the model.
"""

import re
from typing import Awaitable, Callable, List, Tuple

from .errors import (
    ConfigurationInvalid,
    GenerationCancelled,
    GenerationGuardrailViolation,
    GenerationModelNotAvailable,
    TextProcessingChunkingFailed,
    TextProcessingEmptyInput,
    TextProcessingTooLarge,
)
from .log import aime_logger

# Character budget for a single model call (about 3k tokens)
DEFAULT_MAX_CHUNK_SIZE = 4096 * 3

# One unit per match; a paragraph is a run of text up to a line break
_UNIT_PATTERNS = {
    "paragraph": re.compile(r"[^\r\n]+"),
    "sentence": re.compile(r"[^.!?\r\n]+(?:[.!?]+|$)", re.MULTILINE),
    "word": re.compile(r"\S+"),
}

Range = Tuple[int, int]


class TextProcessor:
    """Stateless text utilities."""

    @staticmethod
    def token_ranges(text: str, unit: str = "paragraph") -> List[Range]:
        """
        Compute the (start, end) ranges of each non-blank unit of text.

        Args:
            text: Text to tokenize
            unit: "paragraph", "sentence" or "word"

        Returns:
            Ranges in document order

        Raises:
            ValueError: If unit is not supported
        """
        if unit not in _UNIT_PATTERNS:
            raise ValueError(f"Unsupported unit: {unit}. Available: {list(_UNIT_PATTERNS.keys())}")

        ranges = []
        for match in _UNIT_PATTERNS[unit].finditer(text):
            if match.group(0).strip():
                ranges.append((match.start(), match.end()))
        return ranges

    @staticmethod
    def chunk_text(text: str, unit: str = "paragraph") -> List[str]:
        """Split text into trimmed, non-empty chunks."""
        return [text[start:end].strip() for start, end in TextProcessor.token_ranges(text, unit)]

    @staticmethod
    def is_empty(text: str) -> bool:
        """Check if text is empty or only whitespace."""
        return not text.strip()

    @staticmethod
    def estimate_token_count(text: str) -> int:
        """Rough token estimate: 1 token ≈ 4 characters."""
        return len(text) // 4

    @staticmethod
    def truncate(text: str, max_length: int, suffix: str = "...") -> str:
        """
        Truncate text to a maximum length.

        The result never exceeds max_length + len(suffix) characters and is
        exactly max_length long whenever max_length >= len(suffix).

        Args:
            text: Text to truncate
            max_length: Maximum length
            suffix: Appended when text is cut

        Returns:
            The original text when short enough, otherwise a prefix plus suffix
        """
        if len(text) <= max_length:
            return text
        keep = max(max_length - len(suffix), 0)
        return text[:keep] + suffix


ChunkOperation = Callable[[str], Awaitable[str]]

# Failures that splitting the input cannot fix
_NON_SIZE_ERRORS = (GenerationModelNotAvailable, GenerationGuardrailViolation, GenerationCancelled, ConfigurationInvalid)


class ChunkProcessor:
    """
    Runs an operation over a text, bisecting it when the whole span fails.

    The text is tokenized into ranges once. The span covering all ranges is
    processed when it is under ``max_chunk_size``; otherwise, or when the
    operation fails, the range list is split at its midpoint and each half is
    processed recursively. Results are joined with a newline.
    """

    def __init__(self, text: str, unit: str = "paragraph", max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE):
        self.text = text
        self.max_chunk_size = max_chunk_size
        self.ranges = TextProcessor.token_ranges(text, unit)

    async def process(self, operation: ChunkOperation) -> str:
        """
        Process the whole text with the operation.

        Raises:
            TextProcessingEmptyInput: If the text holds no units
            TextProcessingChunkingFailed: If a single unit still fails
        """
        return await self._process(self.ranges, operation)

    async def _process(self, ranges: List[Range], operation: ChunkOperation) -> str:
        if not ranges or not self.text:
            raise TextProcessingEmptyInput()

        span = self.text[ranges[0][0] : ranges[-1][1]]

        try:
            if len(span) >= self.max_chunk_size:
                raise TextProcessingTooLarge()
            return await operation(span)
        except _NON_SIZE_ERRORS:
            raise
        except Exception as e:
            if len(ranges) <= 1:
                raise TextProcessingChunkingFailed() from e

            midpoint = len(ranges) // 2
            aime_logger.debug(
                "Splitting text span",
                category="ChunkProcessor",
                metadata={"ranges": len(ranges), "span_length": len(span), "reason": type(e).__name__},
            )
            first = await self._process(ranges[:midpoint], operation)
            second = await self._process(ranges[midpoint:], operation)
            return first + "\n" + second
