"""
Error taxonomy for AIME.

Every failure surfaced by the SDK is an ``AIMEError`` subclass grouped by
subsystem (transcription, recording, generation, text processing,
configuration). Each error carries a human-readable description plus an
optional failure reason and recovery suggestion that callers can show to
end users.
"""

import asyncio
from typing import Optional

import openai


class AIMEError(Exception):
    """Base exception for all AIME errors."""

    message: str = "An unexpected AIME error occurred."
    failure_reason: Optional[str] = None
    recovery_suggestion: Optional[str] = None

    def __init__(self, error: Optional[BaseException] = None):
        self.error = error
        super().__init__(self.description)

    @property
    def description(self) -> str:
        """Human-readable description, including the underlying error when present."""
        if self.error is not None:
            return f"{self.message}: {self.error}"
        return self.message


# --- Transcription ---


class TranscriptionError(AIMEError):
    """Base class for speech transcription errors."""

    message = "Speech transcription failed."


class TranscriptionNotAuthorized(TranscriptionError):
    message = "Permission for speech transcription has not been granted."
    failure_reason = "The speech recognition backend rejected the configured credentials."
    recovery_suggestion = "Check OPENAI_API_KEY and the permissions of the transcription model."


class TranscriptionSetupFailed(TranscriptionError):
    message = "Unable to set up speech transcription."


class TranscriptionLocaleNotSupported(TranscriptionError):
    message = "The requested language is not supported for transcription."

    def __init__(self, locale: str):
        self.locale = locale
        super().__init__()

    @property
    def description(self) -> str:
        return f"The language '{self.locale}' is not supported for transcription."


class TranscriptionModelDownloadFailed(TranscriptionError):
    message = "Failed to fetch the transcription model."


class TranscriptionNoInternetConnection(TranscriptionError):
    message = "No network connection is available to reach the transcription model."
    recovery_suggestion = "Check your network connection and try again."


class TranscriptionInvalidAudioFormat(TranscriptionError):
    message = "Invalid audio format for transcription."


class TranscriptionAudioSessionFailed(TranscriptionError):
    message = "The audio session failed"


# --- Recording ---


class RecordingError(AIMEError):
    """Base class for audio recording errors."""

    message = "Audio recording failed."


class RecordingNotAuthorized(RecordingError):
    message = "Permission for audio recording has not been granted."
    failure_reason = "No usable audio input device could be opened."
    recovery_suggestion = "Check the microphone permissions in your system privacy settings."


class RecordingSetupFailed(RecordingError):
    message = "Failed to set up recording"


class RecordingStartFailed(RecordingError):
    message = "Failed to start recording"


class RecordingStopFailed(RecordingError):
    message = "Failed to stop recording"


class RecordingFileWriteFailed(RecordingError):
    message = "Failed to write the audio file"


class RecordingInvalidConfiguration(RecordingError):
    message = "Invalid recording configuration."


# --- Generation ---


class GenerationError(AIMEError):
    """Base class for text generation errors."""

    message = "Text generation failed."


class GenerationModelNotAvailable(GenerationError):
    message = "The language model is not available."
    failure_reason = "The configured model endpoint could not be reached or does not serve the requested model."
    recovery_suggestion = "Check OPENAI_BASE_URL, LLM_MODEL and that the model server is running."


class GenerationGuardrailViolation(GenerationError):
    message = "Generation was blocked by safety guardrails."
    failure_reason = "The generated content violates the model provider's content policy."


class GenerationInvalidInput(GenerationError):
    message = "The provided input is invalid for generation."


class GenerationTimeout(GenerationError):
    message = "Generation timed out."


class GenerationCancelled(GenerationError):
    message = "Generation was cancelled."


class GenerationUnknownError(GenerationError):
    message = "Unknown error during generation"


# --- Text processing ---


class TextProcessingError(AIMEError):
    """Base class for text processing errors."""

    message = "Text processing failed."


class TextProcessingEmptyInput(TextProcessingError):
    message = "The provided text is empty."


class TextProcessingTooLarge(TextProcessingError):
    message = "The provided text is too large to be processed."


class TextProcessingChunkingFailed(TextProcessingError):
    message = "Failed to split the text into chunks."


# --- Configuration ---


class ConfigurationInvalid(AIMEError):
    """Raised when configuration is invalid or missing."""

    message = "Invalid configuration"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__()

    @property
    def description(self) -> str:
        return f"{self.message}: {self.detail}"


def is_context_length_error(exception: BaseException) -> bool:
    """Check if a backend error reports that the prompt exceeds the model context."""
    if isinstance(exception, openai.LengthFinishReasonError):
        return True
    if isinstance(exception, openai.BadRequestError):
        code = (getattr(exception, "code", None) or "").lower()
        return code == "context_length_exceeded" or "maximum context length" in str(exception).lower()
    return False


def to_aime_error(exception: BaseException) -> AIMEError:
    """
    Map any exception raised while talking to the model backend into the taxonomy.

    Args:
        exception: Exception raised by the OpenAI SDK or by AIME itself

    Returns:
        The matching AIMEError; unrecognized errors become GenerationUnknownError
    """
    if isinstance(exception, AIMEError):
        return exception
    if isinstance(exception, openai.ContentFilterFinishReasonError):
        return GenerationGuardrailViolation()
    # APITimeoutError is a subclass of APIConnectionError, check it first
    if isinstance(exception, (openai.APITimeoutError, asyncio.TimeoutError)):
        return GenerationTimeout()
    if isinstance(exception, asyncio.CancelledError):
        return GenerationCancelled()
    if isinstance(exception, (openai.APIConnectionError, openai.AuthenticationError, openai.PermissionDeniedError, openai.NotFoundError)):
        return GenerationModelNotAvailable()
    if is_context_length_error(exception):
        return TextProcessingTooLarge()
    return GenerationUnknownError(exception)
