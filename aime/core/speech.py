"""
Speech-to-text using an OpenAI-compatible transcription endpoint.

This module wraps the Whisper transcription API for audio files and for
in-memory audio windows captured by the recorder.
"""

import io
from pathlib import Path
from typing import Optional

import numpy as np
import soundfile as sf
from openai import APIConnectionError, AsyncOpenAI

from .config import config, get_client, get_default_configuration
from .errors import (
    AIMEError,
    TranscriptionInvalidAudioFormat,
    TranscriptionNoInternetConnection,
    TranscriptionSetupFailed,
)
from .log import aime_logger
from .types import Transcript

# Whisper upload limit
MAX_AUDIO_BYTES = 25 * 1024 * 1024

SUPPORTED_EXTENSIONS = {".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".wav", ".webm"}


class SpeechProcessor:
    """
    Handles speech-to-text conversion using Whisper.

    Args:
        client: AsyncOpenAI client; resolved with ``get_client`` for the running event loop when None
        model: Model override; defaults to the transcription configuration, then ASR_MODEL
        language: ISO-639-1 hint; None lets the model detect the language
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None, language: Optional[str] = None):
        transcription_config = get_default_configuration().transcription
        self._client = client
        self.model = model or transcription_config.model or config.asr_model
        self.language = language or transcription_config.language

    @property
    def client(self) -> AsyncOpenAI:
        return self._client or get_client()

    async def _transcribe(self, file) -> Transcript:
        params = {"model": self.model, "file": file, "response_format": "verbose_json"}
        if self.language:
            params["language"] = self.language
        try:
            response = await self.client.audio.transcriptions.create(**params)
        except AIMEError:
            raise
        except APIConnectionError as e:
            raise TranscriptionNoInternetConnection(e) from e
        except Exception as e:
            raise TranscriptionSetupFailed(e) from e

        if hasattr(response, "text"):
            text = response.text.strip()
            lang_detected = getattr(response, "language", None) or self.language or "auto"
        else:
            text = str(response).strip()
            lang_detected = self.language or "auto"
        return Transcript(text=text, lang_hint=lang_detected)

    async def transcribe_audio(self, path: str) -> Transcript:
        """
        Transcribe an audio file.

        Args:
            path: Path to the audio file

        Returns:
            Transcript with text and detected language

        Raises:
            FileNotFoundError: If the audio file doesn't exist
            TranscriptionInvalidAudioFormat: If the file is unsupported or too large
            TranscriptionSetupFailed: If the transcription request fails
        """
        audio_path = Path(path)

        if not audio_path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if not audio_path.is_file() or not self.validate_audio_format(path):
            raise TranscriptionInvalidAudioFormat()

        file_size = audio_path.stat().st_size
        if file_size > MAX_AUDIO_BYTES:
            aime_logger.error(
                "Audio file too large", category="SpeechProcessor", metadata={"size_mb": round(file_size / 1024 / 1024, 1), "max_mb": 25}
            )
            raise TranscriptionInvalidAudioFormat()

        aime_logger.info("Transcribing audio file", category="SpeechProcessor", metadata={"path": str(audio_path), "model": self.model})
        with open(audio_path, "rb") as audio_file:
            return await self._transcribe(audio_file)

    async def transcribe_samples(self, samples: np.ndarray, sample_rate: int) -> Transcript:
        """
        Transcribe a window of raw samples.

        The samples are encoded as 16-bit WAV in memory before upload.

        Args:
            samples: Float samples shaped (frames,) or (frames, channels)
            sample_rate: Sample rate in Hz

        Returns:
            Transcript of the window
        """
        buffer = io.BytesIO()
        sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
        return await self._transcribe(("window.wav", buffer.getvalue()))

    @staticmethod
    def validate_audio_format(path: str) -> bool:
        """Check whether the file extension is supported."""
        return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS

    def get_audio_info(self, path: str) -> dict:
        """
        Get basic information about the audio file.

        Args:
            path: Path to the audio file

        Returns:
            Dictionary with file information
        """
        audio_path = Path(path)

        if not audio_path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        stat = audio_path.stat()

        return {
            "path": str(audio_path.absolute()),
            "name": audio_path.name,
            "size_bytes": stat.st_size,
            "size_mb": round(stat.st_size / 1024 / 1024, 2),
            "extension": audio_path.suffix.lower(),
            "supported": self.validate_audio_format(path),
        }


async def transcribe_audio(path: str, language: Optional[str] = None) -> Transcript:
    """Convenience wrapper around ``SpeechProcessor().transcribe_audio``."""
    return await SpeechProcessor(language=language).transcribe_audio(path)
