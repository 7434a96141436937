"""
Example output models to copy and adapt.

Any pydantic model can be used as an output type. Keep optional fields
nullable without defaults so the model works with strict structured output.

    class MyResponse(BaseModel):
        answer: str = Field(description="The answer")
        source: Optional[str] = Field(description="Optional quote")

    result = await LanguageModelHelper.generate("Your prompt", MyResponse)
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class QuestionAnswerExample(BaseModel):
    answer: str = Field(description="The answer to the question")
    citation: Optional[str] = Field(description="A quote from the source context")
    insufficient_information: bool = Field(description="True when the context does not contain the answer")


class SummaryExample(BaseModel):
    summary: str = Field(description="Summary of the text")
    key_points: Optional[List[str]] = Field(description="Key points")


class ActionItemsExample(BaseModel):
    action_items: List[str] = Field(description="List of action items")
    priorities: Optional[List[str]] = Field(description="Priority of each item")


class TimelineItemExample(BaseModel):
    title: str = Field(description="Item title")
    date: str = Field(description="Date or period")
    owner: Optional[str] = Field(description="Person responsible")
    status: Optional[str] = Field(description="Status")


class TimelineExample(BaseModel):
    items: Optional[List[TimelineItemExample]] = Field(description="Timeline items")
    notes: Optional[str] = Field(description="Extraction notes")
