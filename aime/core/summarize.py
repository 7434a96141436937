"""
Summarization, with chunked processing for long texts.
"""

import time
from enum import Enum
from typing import AsyncIterator, Optional

from pydantic import BaseModel, Field

from .errors import AIMEError
from .generation import GenerationHelper
from .log import aime_logger
from .prompt import PromptTemplates
from .text import DEFAULT_MAX_CHUNK_SIZE, ChunkProcessor, TextProcessor


class SummaryStyle(str, Enum):
    CONCISE = "concise"
    STANDARD = "standard"
    DETAILED = "detailed"
    BULLET_POINTS = "bullet_points"

    @property
    def description(self) -> str:
        return _STYLE_DESCRIPTIONS[self]


_STYLE_DESCRIPTIONS = {
    SummaryStyle.CONCISE: "Write a very concise summary of one or two sentences at most.",
    SummaryStyle.STANDARD: "Write a medium-length summary of two or three paragraphs.",
    SummaryStyle.DETAILED: "Write a detailed summary that covers every important point.",
    SummaryStyle.BULLET_POINTS: "Write the summary as a bulleted list of the main points.",
}


class Summary(BaseModel):
    summary: str = Field(description="Summary of the text")


def default_instructions(style: SummaryStyle) -> str:
    return f"You are a helpful meeting assistant. Your task is to write a concise, neutral summary of the following text.\n{style.description}"


def apply_max_length(text: str, max_length: Optional[int]) -> str:
    if max_length is None:
        return text
    return TextProcessor.truncate(text, max_length)


class Summarizer(GenerationHelper):
    """
    Summarizes text in a chosen style.

    Texts longer than ``max_chunk_size`` characters are split by
    ``ChunkProcessor``; each part is summarized on its own and the partial
    summaries are joined with newlines.
    """

    category = "Summarizer"

    def __init__(self, *args, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_chunk_size = max_chunk_size

    async def _summarize_chunk(self, instructions: str, text: str) -> str:
        response = await self.stream_final(instructions, PromptTemplates.summary(text).build(), Summary)
        return response.summary or ""

    async def generate(
        self,
        text: str,
        max_length: Optional[int] = None,
        style: SummaryStyle = SummaryStyle.STANDARD,
        instructions: Optional[str] = None,
    ) -> str:
        """
        Summarize a text.

        Args:
            text: Text to summarize
            max_length: Maximum summary length in characters
            style: Summary style
            instructions: Custom system instructions

        Returns:
            The summary

        Raises:
            TextProcessingEmptyInput: If the text is empty
            AIMEError: If generation fails
        """
        self.require_text(text)
        aime_logger.info(
            "Generating summary", category=self.category, metadata={"text_length": len(text), "style": style.value, "max_length": max_length or 0}
        )
        started = time.perf_counter()
        final_instructions = instructions or default_instructions(style)

        try:
            if len(text) > self.max_chunk_size:
                processor = ChunkProcessor(text, max_chunk_size=self.max_chunk_size)
                summary = await processor.process(lambda chunk: self._summarize_chunk(final_instructions, chunk))
                self.log_success("Summary generated (long text)", started, summary_length=len(summary))
            else:
                summary = await self._summarize_chunk(final_instructions, text)
                self.log_success("Summary generated", started, summary_length=len(summary))
        except AIMEError as e:
            self.fail(e)
            raise
        except Exception as e:
            raise self.fail(e) from e

        return apply_max_length(summary, max_length)

    async def generate_streaming(
        self,
        text: str,
        max_length: Optional[int] = None,
        style: SummaryStyle = SummaryStyle.STANDARD,
        instructions: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Summarize a text, yielding the summary as it is generated.

        Yields:
            The summary so far, truncated to max_length
        """
        self.require_text(text)
        aime_logger.info("Starting streamed summary", category=self.category)

        session = self.session_factory(instructions or default_instructions(style))
        try:
            async for partial in session.stream_response(PromptTemplates.summary(text).build(), Summary):
                yield apply_max_length(partial.summary or "", max_length)
        except AIMEError as e:
            self.fail(e)
            raise
        except Exception as e:
            raise self.fail(e) from e

        aime_logger.info("Streamed summary finished", category=self.category)


async def summarize(text: str, max_length: Optional[int] = None, style: SummaryStyle = SummaryStyle.STANDARD, instructions: Optional[str] = None) -> str:
    """Convenience wrapper around ``Summarizer().generate``."""
    return await Summarizer().generate(text, max_length=max_length, style=style, instructions=instructions)
