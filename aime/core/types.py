"""
Type definitions for AIME.

This module defines the public value types returned by the generation helpers
(action items, timelines), the token accounting snapshot, log entries and the
small enumerations shared across the SDK.
"""

import uuid
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UseCase(str, Enum):
    """Intended use of a model session."""

    GENERAL = "general"
    CONTENT_TAGGING = "content_tagging"


class Priority(str, Enum):
    """
    Priority of an action item or timeline item.

    Raw values are the lowercase names used in model output; ``label`` gives
    the display form.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNSPECIFIED = "unspecified"

    @property
    def label(self) -> str:
        return _PRIORITY_LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> "Priority":
        """
        Resolve a priority from its display label or raw value (case insensitive).

        Raises:
            ValueError: If the label matches no priority
        """
        normalized = label.strip().lower()
        for priority in cls:
            if normalized in (priority.value, priority.label.lower()):
                return priority
        raise ValueError(f"Unknown priority label: {label!r}. Available: {[p.label for p in cls]}")


_PRIORITY_LABELS = {
    Priority.CRITICAL: "Critical",
    Priority.HIGH: "High",
    Priority.MEDIUM: "Medium",
    Priority.LOW: "Low",
    Priority.UNSPECIFIED: "Unspecified",
}


class ActionItem(BaseModel):
    """
    A single action item extracted from a text.

    Attributes:
        id: Unique identifier
        title: What needs to be done
        priority: Optional priority
        owner: Optional person responsible
        due_date: Optional due date
        index: Ordinal position in the extraction result
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, description="Unique identifier")
    title: str = Field(..., description="Action item description")
    priority: Optional[Priority] = Field(default=None, description="Priority of the item")
    owner: Optional[str] = Field(default=None, description="Person responsible")
    due_date: Optional[datetime] = Field(default=None, description="Due date")
    index: int = Field(default=0, ge=0, description="Ordinal position in the result")


class TimelineItem(BaseModel):
    """
    A milestone or task placed on a project timeline.

    The date is kept as free-form text because meetings often use relative
    dates ("next Friday", "in two weeks").
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, description="Unique identifier")
    title: str = Field(..., description="Milestone or task title")
    date: str = Field(..., description="Due date or period, possibly relative")
    owner: Optional[str] = Field(default=None, description="Person responsible")
    status: Optional[str] = Field(default=None, description="Status if mentioned")
    priority: Optional[Priority] = Field(default=None, description="Priority if mentioned")


class Timeline(BaseModel):
    """Ordered timeline items plus optional extraction notes."""

    model_config = ConfigDict(frozen=True)

    items: List[TimelineItem] = Field(default_factory=list, description="Timeline items in order")
    extraction_notes: Optional[str] = Field(default=None, description="Notes or ambiguities met during extraction")


class TokenUsage(BaseModel):
    """Snapshot of estimated token usage."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LogLevel(IntEnum):
    """Ordered logging levels."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


class LogEntry(BaseModel):
    """A single log record emitted by the AIME logger."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    level: LogLevel
    message: str
    category: str = "AIME"
    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[BaseException] = None


class Transcript(BaseModel):
    """
    Result of automatic speech recognition.
    """

    text: str = Field(..., description="Transcribed text")
    lang_hint: str = Field(default="auto", description="Detected or hinted language code")
