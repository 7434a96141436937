"""
Action item extraction from meeting transcripts and notes.
"""

import time
from datetime import datetime
from typing import AsyncIterator, List, Literal, Optional

from pydantic import BaseModel, Field

from .errors import AIMEError
from .generation import GenerationHelper
from .log import aime_logger
from .prompt import PromptTemplates
from .types import ActionItem, Priority

DEFAULT_INSTRUCTIONS = """You are a helpful assistant. Your task is to extract the priority action items from team meeting transcripts.
The provided text contains team meeting transcripts.
You MUST return a list of priority action items based ONLY on the provided text."""

PriorityLabel = Literal["critical", "high", "medium", "low", "unspecified"]


class ActionItemResponse(BaseModel):
    title: str = Field(description="What needs to be done")
    priority: Optional[PriorityLabel] = Field(description="Priority, ONLY if mentioned")
    owner: Optional[str] = Field(description="Person responsible, ONLY if specified")
    due_date: Optional[str] = Field(description="Due date in ISO 8601 format (YYYY-MM-DD), ONLY if an explicit date is given")


class ActionItemsResponse(BaseModel):
    action_items: List[ActionItemResponse] = Field(description="Priority action items from the meeting")


def parse_due_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 date; free-form dates are dropped."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


class ActionItemsExtractor(GenerationHelper):
    """Extracts action items from text."""

    category = "ActionItemsExtractor"

    @staticmethod
    def _instructions(instructions: Optional[str], max_items: int) -> str:
        return instructions or f"{DEFAULT_INSTRUCTIONS}\nReturn at most {max_items} action items."

    @staticmethod
    def to_action_items(
        responses: Optional[List[ActionItemResponse]],
        max_items: int,
        include_priority: bool = False,
        include_owner: bool = False,
        include_due_date: bool = False,
    ) -> List[ActionItem]:
        """
        Map model output to public action items, keeping at most max_items.

        Items still being generated without a title are left out.
        """
        items = []
        titled = [response for response in responses or [] if response.title]
        for index, response in enumerate(titled[:max_items]):
            items.append(
                ActionItem(
                    title=response.title,
                    priority=Priority(response.priority) if include_priority and response.priority else None,
                    owner=response.owner if include_owner else None,
                    due_date=parse_due_date(response.due_date) if include_due_date else None,
                    index=index,
                )
            )
        return items

    async def extract(
        self,
        text: str,
        max_items: int = 10,
        instructions: Optional[str] = None,
        include_priority: bool = False,
        include_owner: bool = False,
        include_due_date: bool = False,
    ) -> List[ActionItem]:
        """
        Extract action items from a text.

        Args:
            text: Text to analyze
            max_items: Maximum number of items returned
            instructions: Custom system instructions
            include_priority: Keep the priority reported by the model
            include_owner: Keep the owner reported by the model
            include_due_date: Keep the due date reported by the model

        Returns:
            Action items in the order the model listed them

        Raises:
            TextProcessingEmptyInput: If the text is empty
            AIMEError: If generation fails
        """
        self.require_text(text)
        aime_logger.info("Extracting action items", category=self.category, metadata={"text_length": len(text), "max_items": max_items})
        started = time.perf_counter()

        try:
            response = await self.stream_final(
                self._instructions(instructions, max_items), PromptTemplates.action_items(text).build(), ActionItemsResponse
            )
        except AIMEError as e:
            self.fail(e)
            raise
        except Exception as e:
            raise self.fail(e) from e

        items = self.to_action_items(response.action_items, max_items, include_priority, include_owner, include_due_date)
        self.log_success("Action items extracted", started, item_count=len(items))
        return items

    async def extract_streaming(self, text: str, max_items: int = 10, instructions: Optional[str] = None) -> AsyncIterator[List[ActionItem]]:
        """
        Extract action items, yielding the list as it grows.

        Yields:
            The action items found so far
        """
        self.require_text(text)
        aime_logger.info("Starting streamed action item extraction", category=self.category)

        session = self.session_factory(self._instructions(instructions, max_items))
        try:
            async for partial in session.stream_response(PromptTemplates.action_items(text).build(), ActionItemsResponse):
                yield self.to_action_items(partial.action_items, max_items)
        except AIMEError as e:
            self.fail(e)
            raise
        except Exception as e:
            raise self.fail(e) from e

        aime_logger.info("Streamed action item extraction finished", category=self.category)


async def extract_action_items(text: str, max_items: int = 10, instructions: Optional[str] = None, **options) -> List[ActionItem]:
    """Convenience wrapper around ``ActionItemsExtractor().extract``."""
    return await ActionItemsExtractor().extract(text, max_items=max_items, instructions=instructions, **options)
