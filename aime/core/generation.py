"""
Shared plumbing for the prebuilt generation helpers.

Each helper validates its input, opens a fresh session with its default (or
caller-supplied) instructions, streams a schema-constrained response, keeps
the last snapshot as the final value and funnels failures into the error
taxonomy after logging them.
"""

import time
from typing import Callable, Optional, Type, TypeVar

from pydantic import BaseModel

from .errors import AIMEError, GenerationGuardrailViolation, TextProcessingEmptyInput, to_aime_error
from .log import aime_logger
from .session import LanguageModelSession, partial_model
from .text import TextProcessor
from .types import UseCase

T = TypeVar("T", bound=BaseModel)

SessionFactory = Callable[[str], LanguageModelSession]


class GenerationHelper:
    """
    Base class for generation helpers.

    Args:
        use_case: Use case of the sessions opened by the helper
        session_factory: Builds a session from system instructions; tests pass fakes here
    """

    category = "Generation"

    def __init__(self, use_case: UseCase = UseCase.GENERAL, session_factory: Optional[SessionFactory] = None):
        self.use_case = use_case
        self.session_factory = session_factory or self._default_session

    def _default_session(self, instructions: str) -> LanguageModelSession:
        return LanguageModelSession(instructions=instructions, use_case=self.use_case, keep_history=False)

    @staticmethod
    def require_text(text: str) -> None:
        """Raise TextProcessingEmptyInput for blank input."""
        if TextProcessor.is_empty(text):
            raise TextProcessingEmptyInput()

    async def stream_final(self, instructions: str, prompt: str, output_type: Type[T]) -> BaseModel:
        """Stream a response and return the last snapshot."""
        session = self.session_factory(instructions)
        last = None
        async for partial in session.stream_response(prompt, output_type):
            last = partial
        if last is None:
            return partial_model(output_type)()
        return last

    def fail(self, error: BaseException) -> AIMEError:
        """Log a failure and return the matching taxonomy error."""
        aime_error = to_aime_error(error)
        if isinstance(aime_error, GenerationGuardrailViolation):
            aime_logger.error("Guardrail violation", category=self.category, error=aime_error)
        else:
            aime_logger.error("Generation error", category=self.category, error=aime_error)
        return aime_error

    def log_success(self, message: str, started: float, **metadata) -> None:
        """Log a finished generation; elapsed time is included when log_performance is on."""
        if aime_logger.configuration.log_performance:
            metadata["elapsed_time"] = round(time.perf_counter() - started, 3)
        aime_logger.info(message, category=self.category, metadata=metadata or None)
