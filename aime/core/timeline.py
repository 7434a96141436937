"""
Project timeline extraction from meeting transcripts.
"""

import time
from typing import AsyncIterator, List, Literal, Optional

from pydantic import BaseModel, Field

from .errors import AIMEError
from .generation import GenerationHelper
from .log import aime_logger
from .prompt import PromptTemplates
from .types import Priority, Timeline, TimelineItem

DEFAULT_INSTRUCTIONS = """You are a project timeline extraction assistant. Your task is to analyze meeting transcripts and produce a structured timeline of milestones and tasks.

INSTRUCTIONS:
1. Extract every milestone, deliverable and actionable task mentioned in the provided meeting transcripts
2. For each item, identify:
   - A clear title/description of the milestone or task
   - Owner/assignee (the individual responsible)
   - Due date (explicit dates, relative dates such as "next week", or inferred periods)
   - Status if mentioned (e.g. "in progress", "done", "planned", "blocked")
   - Priority if mentioned (e.g. "high", "medium", "low", "critical")
3. Consolidate information from several transcripts into one coherent timeline
4. Only include information explicitly stated or reasonably inferred from the transcripts
5. If a date is relative (e.g. "next Friday", "in two weeks"), keep it as stated and mark it as relative
6. If critical information is missing or unclear, record it in the extraction notes

BASE YOUR ANSWER ONLY ON THE PROVIDED TRANSCRIPTS. Do not add assumptions or information that is not in the text.
If the text contains no tasks or deliverables, say "There are no tasks or timeline"."""


class TimelineItemResponse(BaseModel):
    title: str = Field(description="Title of the milestone or task on the project timeline")
    date: str = Field(description="Due date or period for this item")
    owner: Optional[str] = Field(description="Name of the individual responsible, ONLY if specified")
    status: Optional[str] = Field(
        description="Current status, ONLY if mentioned in the transcripts, e.g. 'done', 'in progress', 'blocked', 'planned'"
    )
    priority: Optional[Literal["critical", "high", "medium", "low", "unspecified"]] = Field(description="Priority, ONLY if mentioned")


class TimelineResponse(BaseModel):
    timeline: Optional[List[TimelineItemResponse]] = Field(description="Timeline items (milestones and tasks) extracted from the meeting transcripts")
    extraction_notes: Optional[str] = Field(description="Important notes or ambiguities met during extraction")


class TimelineExtractor(GenerationHelper):
    """Extracts a project timeline from text."""

    category = "TimelineExtractor"

    @staticmethod
    def to_timeline(
        responses: Optional[List[TimelineItemResponse]],
        notes: Optional[str],
        include_status: bool = True,
        include_priority: bool = True,
        include_owner: bool = True,
    ) -> Timeline:
        items = [
            TimelineItem(
                title=response.title,
                date=response.date or "",
                owner=response.owner if include_owner else None,
                status=response.status if include_status else None,
                priority=Priority(response.priority) if include_priority and response.priority else None,
            )
            for response in responses or []
            if response.title
        ]
        return Timeline(items=items, extraction_notes=notes)

    async def extract(
        self,
        text: str,
        instructions: Optional[str] = None,
        include_status: bool = True,
        include_priority: bool = True,
        include_owner: bool = True,
    ) -> Timeline:
        """
        Extract a timeline from a text.

        Args:
            text: Text to analyze
            instructions: Custom system instructions
            include_status: Keep item statuses
            include_priority: Keep item priorities
            include_owner: Keep item owners

        Returns:
            The extracted timeline

        Raises:
            TextProcessingEmptyInput: If the text is empty
            AIMEError: If generation fails
        """
        self.require_text(text)
        aime_logger.info("Extracting timeline", category=self.category, metadata={"text_length": len(text)})
        started = time.perf_counter()

        try:
            response = await self.stream_final(instructions or DEFAULT_INSTRUCTIONS, PromptTemplates.timeline(text).build(), TimelineResponse)
        except AIMEError as e:
            self.fail(e)
            raise
        except Exception as e:
            raise self.fail(e) from e

        timeline = self.to_timeline(response.timeline, response.extraction_notes, include_status, include_priority, include_owner)
        self.log_success("Timeline extracted", started, item_count=len(timeline.items))
        return timeline

    async def extract_streaming(self, text: str, instructions: Optional[str] = None) -> AsyncIterator[Timeline]:
        """
        Extract a timeline, yielding it as it grows.

        Yields:
            The timeline so far
        """
        self.require_text(text)
        aime_logger.info("Starting streamed timeline extraction", category=self.category)

        session = self.session_factory(instructions or DEFAULT_INSTRUCTIONS)
        try:
            async for partial in session.stream_response(PromptTemplates.timeline(text).build(), TimelineResponse):
                yield self.to_timeline(partial.timeline, partial.extraction_notes)
        except AIMEError as e:
            self.fail(e)
            raise
        except Exception as e:
            raise self.fail(e) from e

        aime_logger.info("Streamed timeline extraction finished", category=self.category)


async def extract_timeline(text: str, instructions: Optional[str] = None, **options) -> Timeline:
    """Convenience wrapper around ``TimelineExtractor().extract``."""
    return await TimelineExtractor().extract(text, instructions=instructions, **options)
