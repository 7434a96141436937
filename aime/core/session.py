"""
Language model sessions with schema-constrained output.

A ``LanguageModelSession`` holds system instructions and the conversation so
far, and asks an OpenAI-compatible chat completions endpoint for output that
conforms to a caller-declared pydantic model. Responses are available either
as one validated instance (``respond``) or as a stream of partially generated
instances (``stream_response``) whose last item is the complete value.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Type, TypeVar, Union, get_args, get_origin

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError, create_model

from .config import config, get_client, get_default_configuration
from .debug_log import get_debug_logger
from .errors import AIMEError, GenerationGuardrailViolation, GenerationUnknownError, to_aime_error
from .text import TextProcessor
from .tokens import token_tracker
from .types import UseCase

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_INSTRUCTIONS = "You are a helpful assistant who answers questions clearly and concisely."


@lru_cache(maxsize=None)
def partial_model(output_type: Type[BaseModel]) -> Type[BaseModel]:
    """
    Build the partially generated counterpart of an output model.

    Every field becomes optional with a None default so snapshots taken while
    the model is still generating can be validated. Nested models, including
    those inside lists and unions, are made partial as well.
    """
    fields: Dict[str, Any] = {name: (Optional[_partial_annotation(field.annotation)], None) for name, field in output_type.model_fields.items()}
    return create_model(f"Partial{output_type.__name__}", **fields)


def _partial_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin is None and isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return partial_model(annotation)
    if origin is list and args:
        return List[_partial_annotation(args[0])]
    if origin is Union:
        return Union[tuple(_partial_annotation(arg) for arg in args)]
    return annotation


class LanguageModelSession:
    """
    A conversation with the configured language model.

    Args:
        instructions: System instructions; the default configuration's instructions when None
        use_case: Content tagging runs deterministically (temperature 0)
        model: Model name override
        client: AsyncOpenAI client; resolved with ``get_client`` for the running event loop when None
        keep_history: Whether completed turns are replayed in later requests
    """

    def __init__(
        self,
        instructions: Optional[str] = None,
        use_case: Optional[UseCase] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
        keep_history: bool = True,
    ):
        lm_config = get_default_configuration().language_model
        self.instructions = instructions or lm_config.default_instructions or DEFAULT_INSTRUCTIONS
        self.use_case = use_case or lm_config.use_case
        self.model = model or lm_config.model or config.llm_model
        self.keep_history = keep_history
        self.history: List[Dict[str, str]] = []
        self._client = client
        self.debug_logger = get_debug_logger()

    @property
    def client(self) -> AsyncOpenAI:
        return self._client or get_client()

    @property
    def temperature(self) -> float:
        if self.use_case == UseCase.CONTENT_TAGGING:
            return 0.0
        override = get_default_configuration().language_model.temperature
        return override if override is not None else config.model_temperature

    def _request_params(self, prompt: str, output_type: Type[BaseModel]) -> Dict[str, Any]:
        messages = [{"role": "system", "content": self.instructions}, *self.history, {"role": "user", "content": prompt}]
        return {
            "model": self.model,
            "messages": messages,
            "response_format": output_type,
            "temperature": self.temperature,
        }

    def _finish(self, prompt: str, message: Any, output_type: Type[T]) -> T:
        """Validate the final message, record usage and extend the history."""
        if getattr(message, "refusal", None):
            raise GenerationGuardrailViolation()
        parsed = getattr(message, "parsed", None)
        if parsed is None:
            raise GenerationUnknownError(ValueError("The model returned no structured output"))
        if not isinstance(parsed, output_type):
            parsed = output_type.model_validate(parsed)

        output_text = parsed.model_dump_json()
        self.debug_logger.log_llm_response(output_text, prompt)
        token_tracker.record_usage(TextProcessor.estimate_token_count(prompt), TextProcessor.estimate_token_count(output_text))

        if self.keep_history:
            self.history.append({"role": "user", "content": prompt})
            self.history.append({"role": "assistant", "content": output_text})
        return parsed

    async def respond(self, prompt: str, output_type: Type[T]) -> T:
        """
        Generate one complete structured response.

        Args:
            prompt: User prompt
            output_type: Pydantic model the output must conform to

        Returns:
            Validated instance of output_type

        Raises:
            AIMEError: Backend failures mapped into the error taxonomy
        """
        self.debug_logger.log_llm_request(prompt, self.instructions, output_type.__name__)
        try:
            completion = await self.client.chat.completions.parse(**self._request_params(prompt, output_type))
            return self._finish(prompt, completion.choices[0].message, output_type)
        except AIMEError:
            raise
        except ValidationError as e:
            self.debug_logger.log_validation_error(e, None, context=output_type.__name__)
            raise GenerationUnknownError(e) from e
        except Exception as e:
            raise to_aime_error(e) from e
        except asyncio.CancelledError as e:
            raise to_aime_error(e) from e

    async def stream_response(self, prompt: str, output_type: Type[T]) -> AsyncIterator[BaseModel]:
        """
        Stream partially generated responses.

        Yields instances of ``partial_model(output_type)``; snapshots that do
        not validate yet are skipped. The last item is built from the final,
        fully validated output.

        Raises:
            AIMEError: Backend failures mapped into the error taxonomy
        """
        partial_type = partial_model(output_type)
        self.debug_logger.log_llm_request(prompt, self.instructions, output_type.__name__)
        try:
            async with self.client.chat.completions.stream(**self._request_params(prompt, output_type)) as stream:
                async for event in stream:
                    if event.type != "content.delta" or event.parsed is None:
                        continue
                    try:
                        yield partial_type.model_validate(event.parsed)
                    except ValidationError:
                        logger.debug(f"Skipping incomplete {output_type.__name__} snapshot")
                completion = await stream.get_final_completion()
            final = self._finish(prompt, completion.choices[0].message, output_type)
            yield partial_type.model_validate(final.model_dump())
        except AIMEError:
            raise
        except ValidationError as e:
            self.debug_logger.log_validation_error(e, None, context=output_type.__name__)
            raise GenerationUnknownError(e) from e
        except Exception as e:
            raise to_aime_error(e) from e
        except asyncio.CancelledError as e:
            raise to_aime_error(e) from e


def complete_from_partial(partial: Optional[BaseModel], output_type: Type[T]) -> T:
    """
    Turn the last streamed snapshot into the full output type.

    Raises:
        GenerationUnknownError: If the stream produced nothing or the snapshot is incomplete
    """
    if partial is None:
        raise GenerationUnknownError(ValueError("The model stream produced no output"))
    try:
        return output_type.model_validate(partial.model_dump())
    except ValidationError as e:
        raise GenerationUnknownError(e) from e


class LanguageModelHelper:
    """Helpers for running your own output models against a session."""

    @staticmethod
    def create_session(instructions: Optional[str] = None, use_case: Optional[UseCase] = None) -> LanguageModelSession:
        return LanguageModelSession(instructions=instructions, use_case=use_case)

    @staticmethod
    async def generate(
        prompt: str,
        output_type: Type[T],
        session: Optional[LanguageModelSession] = None,
        use_case: Optional[UseCase] = None,
        instructions: Optional[str] = None,
    ) -> T:
        """Generate a response, creating a session when none is given."""
        session = session or LanguageModelHelper.create_session(instructions=instructions, use_case=use_case)
        return await session.respond(prompt, output_type)

    @staticmethod
    async def generate_streaming(
        prompt: str,
        output_type: Type[T],
        on_update: Callable[[BaseModel], None],
        session: Optional[LanguageModelSession] = None,
        use_case: Optional[UseCase] = None,
        instructions: Optional[str] = None,
    ) -> T:
        """
        Stream a response, calling on_update with each partial snapshot.

        Returns:
            The final value, validated as output_type
        """
        session = session or LanguageModelHelper.create_session(instructions=instructions, use_case=use_case)
        last = None
        async for partial in session.stream_response(prompt, output_type):
            on_update(partial)
            last = partial
        return complete_from_partial(last, output_type)
