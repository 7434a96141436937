"""
Token accounting for model calls.

Counts are estimates (characters / 4), not exact tokenizer output.
"""

from typing import List

from .config import get_default_configuration
from .log import aime_logger
from .types import TokenUsage


class TokenTracker:
    """Accumulates estimated input/output tokens and keeps a per-call history."""

    def __init__(self):
        self._total_input_tokens = 0
        self._total_output_tokens = 0
        self._usage_history: List[TokenUsage] = []

    def record_usage(self, input_tokens: int, output_tokens: int) -> TokenUsage:
        """
        Record the token usage of one model call.

        Args:
            input_tokens: Estimated prompt tokens
            output_tokens: Estimated output tokens

        Returns:
            The snapshot appended to the history
        """
        self._total_input_tokens += input_tokens
        self._total_output_tokens += output_tokens

        usage = TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens)
        self._usage_history.append(usage)

        if get_default_configuration().logging.log_tokens:
            aime_logger.info(
                f"Tokens used - Input: {input_tokens}, Output: {output_tokens}, Total: {usage.total_tokens}",
                category="TokenTracker",
                metadata={"input_tokens": input_tokens, "output_tokens": output_tokens, "total_tokens": usage.total_tokens},
            )
        return usage

    def get_total_usage(self) -> TokenUsage:
        """Get cumulative usage since the last reset."""
        return TokenUsage(input_tokens=self._total_input_tokens, output_tokens=self._total_output_tokens)

    def get_usage_history(self) -> List[TokenUsage]:
        """Get a copy of the per-call history."""
        return list(self._usage_history)

    def reset(self) -> None:
        """Clear totals and history."""
        self._total_input_tokens = 0
        self._total_output_tokens = 0
        self._usage_history.clear()


# Global token tracker instance
token_tracker = TokenTracker()
