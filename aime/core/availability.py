"""
Availability checks for models and audio input.
"""

from typing import Dict, Optional

from openai import AsyncOpenAI

from .config import config, get_client, get_default_configuration
from .errors import AIMEError, to_aime_error
from .log import aime_logger

# Languages accepted by the Whisper transcription endpoint (ISO-639-1)
TRANSCRIPTION_LANGUAGES = frozenset(
    "af ar hy az be bs bg ca zh hr cs da nl en et fi fr gl de el he hi hu is id it ja kn kk ko lv lt mk ms mr mi ne no fa pl pt ro ru sr sk sl "
    "es sw sv tl ta th tr uk ur vi cy".split()
)


class ModelAvailability:
    """
    Checks whether the configured models can be used.

    Args:
        client: AsyncOpenAI client; resolved with ``get_client`` for the running event loop when None
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        return self._client or get_client()

    async def unavailability_reason(self, model: Optional[str] = None) -> Optional[str]:
        """
        Explain why a model cannot be used.

        Args:
            model: Model name; defaults to the configured language model

        Returns:
            None when the model is available, otherwise a message
        """
        model = model or get_default_configuration().language_model.model or config.llm_model
        try:
            await self.client.models.retrieve(model)
        except AIMEError as e:
            return e.description
        except Exception as e:
            error = to_aime_error(e)
            aime_logger.warning(f"Model {model} is not available", category="ModelAvailability", metadata={"reason": error.description})
            return f"{error.description} ({model})"
        return None

    async def is_available(self, model: Optional[str] = None) -> bool:
        return await self.unavailability_reason(model) is None

    async def is_transcription_model_installed(self) -> bool:
        """Check that the transcription model is served by the backend."""
        transcription_config = get_default_configuration().transcription
        return await self.is_available(transcription_config.model or config.asr_model)

    async def is_transcription_available(self, language: Optional[str] = None) -> bool:
        """
        Check that transcription can run for a language.

        Args:
            language: ISO-639-1 code; None means automatic detection
        """
        if language and language.split("-")[0].lower() not in TRANSCRIPTION_LANGUAGES:
            return False
        return await self.is_transcription_model_installed()


class AudioHelpers:
    """Audio input helpers."""

    @staticmethod
    def get_optimal_audio_format() -> Dict[str, object]:
        """Audio format best suited for speech recognition."""
        return {"sample_rate": 16000, "channels": 1, "dtype": "float32"}

    @staticmethod
    def check_microphone_permission() -> bool:
        """
        Check that an input device is present and can be opened for capture.

        Returns:
            True when the default (or configured) input device is usable
        """
        try:
            import sounddevice as sd
        except OSError as e:
            # PortAudio shared library missing
            aime_logger.warning("Audio input is unavailable", category="AudioHelpers", metadata={"reason": str(e)})
            return False

        recording_config = get_default_configuration().recording
        try:
            device = sd.query_devices(recording_config.device, kind="input")
            sd.check_input_settings(device=recording_config.device, channels=recording_config.channels, samplerate=recording_config.sample_rate)
        except (sd.PortAudioError, ValueError) as e:
            aime_logger.warning("No usable input device", category="AudioHelpers", metadata={"reason": str(e)})
            return False
        return bool(device) and device.get("max_input_channels", 0) > 0
