"""
AIME: schema-constrained text generation, meeting helpers and transcription.

    import aime

    answer = await aime.ask("Who owns the launch?", transcript)
    items = await aime.extract_action_items(transcript, include_owner=True)
"""

from .core.action_items import ActionItemsExtractor, extract_action_items
from .core.answer import QuestionAnswerer, ask
from .core.availability import AudioHelpers, ModelAvailability
from .core.client import AIMEClient, client
from .core.config import (
    AIMEConfiguration,
    LanguageModelConfiguration,
    LoggingConfiguration,
    RecordingConfiguration,
    TranscriptionConfiguration,
    configure,
    get_default_configuration,
)
from .core.errors import AIMEError
from .core.log import aime_logger
from .core.prompt import PromptBuilder, PromptTemplates
from .core.session import LanguageModelHelper, LanguageModelSession
from .core.speech import SpeechProcessor, transcribe_audio
from .core.summarize import Summarizer, SummaryStyle, summarize
from .core.templates import ActionItemsExample, QuestionAnswerExample, SummaryExample, TimelineExample, TimelineItemExample
from .core.text import ChunkProcessor, TextProcessor
from .core.timeline import TimelineExtractor, extract_timeline
from .core.tokens import token_tracker
from .core.transcriber import AudioRecorder, Transcriber
from .core.types import ActionItem, LogLevel, Priority, Timeline, TimelineItem, TokenUsage, UseCase

__version__ = "3.0.0"

__all__ = [
    "AIMEClient",
    "AIMEConfiguration",
    "AIMEError",
    "ActionItem",
    "ActionItemsExample",
    "ActionItemsExtractor",
    "AudioHelpers",
    "AudioRecorder",
    "ChunkProcessor",
    "LanguageModelConfiguration",
    "LanguageModelHelper",
    "LanguageModelSession",
    "LogLevel",
    "LoggingConfiguration",
    "ModelAvailability",
    "Priority",
    "PromptBuilder",
    "PromptTemplates",
    "QuestionAnswerExample",
    "QuestionAnswerer",
    "RecordingConfiguration",
    "SpeechProcessor",
    "SummaryExample",
    "Summarizer",
    "SummaryStyle",
    "TextProcessor",
    "Timeline",
    "TimelineExample",
    "TimelineExtractor",
    "TimelineItem",
    "TimelineItemExample",
    "TokenUsage",
    "Transcriber",
    "TranscriptionConfiguration",
    "UseCase",
    "__version__",
    "aime_logger",
    "ask",
    "client",
    "configure",
    "extract_action_items",
    "extract_timeline",
    "get_default_configuration",
    "summarize",
    "token_tracker",
    "transcribe_audio",
]
