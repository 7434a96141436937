"""
OpenAI-style client for AIME.

    client = aime.client(system_prompt="You are a meeting assistant.")
    result = await client.generate("Summarize: ...", MySummary)
"""

from typing import AsyncIterator, Callable, Optional, Type, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel

from .session import LanguageModelSession, complete_from_partial
from .types import UseCase

T = TypeVar("T", bound=BaseModel)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class AIMEClient:
    """
    Client bound to one model session.

    Args:
        use_case: Intended use of the model
        system_prompt: System instructions for the session
        model: Model name override
        openai_client: Explicit AsyncOpenAI client
    """

    def __init__(
        self,
        use_case: UseCase = UseCase.GENERAL,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        openai_client: Optional[AsyncOpenAI] = None,
    ):
        self.session = LanguageModelSession(
            instructions=system_prompt or DEFAULT_SYSTEM_PROMPT,
            use_case=use_case,
            model=model,
            client=openai_client,
        )

    async def generate(self, prompt: str, output_type: Type[T]) -> T:
        """Generate a response conforming to output_type."""
        return await self.session.respond(prompt, output_type)

    def stream(self, prompt: str, output_type: Type[T]) -> AsyncIterator[BaseModel]:
        """Stream partial snapshots; the last one is the complete value."""
        return self.session.stream_response(prompt, output_type)

    async def generate_streaming(self, prompt: str, output_type: Type[T], on_update: Callable[[BaseModel], None]) -> T:
        """
        Generate with streaming.

        Args:
            prompt: User prompt
            output_type: Pydantic model the output must conform to
            on_update: Called with every partial snapshot

        Returns:
            The final value as output_type
        """
        last = None
        async for partial in self.session.stream_response(prompt, output_type):
            on_update(partial)
            last = partial
        return complete_from_partial(last, output_type)


def client(
    use_case: UseCase = UseCase.GENERAL,
    system_prompt: Optional[str] = None,
    model: Optional[str] = None,
) -> AIMEClient:
    """Create an AIME client."""
    return AIMEClient(use_case=use_case, system_prompt=system_prompt, model=model)
