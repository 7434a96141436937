"""
Question answering over a caller-supplied context.
"""

import time
from typing import AsyncIterator, Optional

from pydantic import BaseModel, Field

from .errors import AIMEError, GenerationInvalidInput
from .generation import GenerationHelper
from .log import aime_logger
from .prompt import PromptBuilder
from .text import TextProcessor

DEFAULT_INSTRUCTIONS = """You are a helpful assistant who answers the user's questions using ONLY the information provided.
Important:
- Answer clearly and concisely
- If the question is unrelated to the provided information, say "I cannot answer this question"
- Treat the provided information as the source of truth"""

INSUFFICIENT_INFORMATION_ANSWER = "I could not find enough information to answer this question."
NO_ANSWER = "I cannot answer this question."


class QuestionAnswerResponse(BaseModel):
    citation: Optional[str] = Field(description="An exact quote from the source material that contains the answer")
    answer: str = Field(description="A brief answer to the question")
    insufficient_information: bool = Field(description="True when the question could not be answered from the information")


def build_question_prompt(question: str, context: str) -> str:
    return PromptBuilder().add_question(question).add_text(f"Here is all the information you can use to answer the question:\n{context}").build()


class QuestionAnswerer(GenerationHelper):
    """Answers questions using only the supplied context."""

    category = "QuestionAnswerer"

    def _validate(self, question: str, context: str) -> None:
        if TextProcessor.is_empty(question):
            raise GenerationInvalidInput()
        self.require_text(context)

    async def ask(self, question: str, context: str, instructions: Optional[str] = None, include_citation: bool = True) -> str:
        """
        Ask a question about a context.

        Args:
            question: The question
            context: Text the answer must be based on
            instructions: Custom system instructions
            include_citation: Append the supporting quote when the model gives one

        Returns:
            The answer text

        Raises:
            GenerationInvalidInput: If the question is empty
            TextProcessingEmptyInput: If the context is empty
            AIMEError: If generation fails
        """
        self._validate(question, context)
        aime_logger.info("Generating answer", category=self.category, metadata={"question": question, "context_length": len(context)})
        started = time.perf_counter()

        try:
            response = await self.stream_final(instructions or DEFAULT_INSTRUCTIONS, build_question_prompt(question, context), QuestionAnswerResponse)
        except AIMEError as e:
            self.fail(e)
            raise
        except Exception as e:
            raise self.fail(e) from e

        if response.insufficient_information:
            self.log_success("Answer generated: insufficient information", started)
            return INSUFFICIENT_INFORMATION_ANSWER

        answer = response.answer or NO_ANSWER
        if include_citation and response.citation:
            answer += f'\n\nCitation: "{response.citation}"'

        self.log_success("Answer generated", started, answer_length=len(answer))
        return answer

    async def ask_streaming(
        self, question: str, context: str, instructions: Optional[str] = None, include_citation: bool = False
    ) -> AsyncIterator[str]:
        """
        Ask a question and yield the answer as it is generated.

        When requested, a last snapshot carrying the citation follows the
        complete answer.

        Yields:
            The answer so far
        """
        self._validate(question, context)
        aime_logger.info("Starting streamed answer", category=self.category, metadata={"question": question, "context_length": len(context)})

        session = self.session_factory(instructions or DEFAULT_INSTRUCTIONS)
        try:
            last = None
            async for partial in session.stream_response(build_question_prompt(question, context), QuestionAnswerResponse):
                last = partial
                if partial.insufficient_information:
                    yield INSUFFICIENT_INFORMATION_ANSWER
                else:
                    yield partial.answer or ""
            if include_citation and last is not None and last.citation and not last.insufficient_information:
                yield f'{last.answer or ""}\n\nCitation: "{last.citation}"'
        except AIMEError as e:
            self.fail(e)
            raise
        except Exception as e:
            raise self.fail(e) from e

        aime_logger.info("Streamed answer finished", category=self.category)


async def ask(question: str, context: str, instructions: Optional[str] = None, include_citation: bool = True) -> str:
    """Convenience wrapper around ``QuestionAnswerer().ask``."""
    return await QuestionAnswerer().ask(question, context, instructions=instructions, include_citation=include_citation)
