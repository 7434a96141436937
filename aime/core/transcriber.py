"""
Live microphone transcription.

``AudioRecorder`` captures audio with a sounddevice input stream on the
PortAudio callback thread and optionally writes it to a WAV file.
``Transcriber`` runs on the asyncio event loop: audio blocks are handed over
with ``call_soon_threadsafe``, buffered into fixed-length windows and each
window is transcribed with ``SpeechProcessor``. All transcript state is
mutated on the event loop only.
"""

import asyncio
import logging
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
import soundfile as sf

from .availability import TRANSCRIPTION_LANGUAGES
from .config import AIMEConfiguration, RecordingConfiguration, get_default_configuration
from .errors import (
    AIMEError,
    RecordingFileWriteFailed,
    RecordingInvalidConfiguration,
    RecordingStartFailed,
    RecordingStopFailed,
    TranscriptionAudioSessionFailed,
    TranscriptionLocaleNotSupported,
    to_aime_error,
)
from .log import aime_logger
from .speech import SpeechProcessor

logger = logging.getLogger(__name__)

AudioCallback = Callable[[np.ndarray], None]
TranscriptCallback = Callable[[str], None]
ErrorCallback = Callable[[AIMEError], None]


def default_recording_path() -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(tempfile.gettempdir()) / f"aime_recording_{timestamp}.wav"


class AudioRecorder:
    """
    Captures microphone audio.

    Args:
        configuration: Recording settings
        on_audio: Called on the audio thread with a copy of every captured block
    """

    def __init__(self, configuration: RecordingConfiguration, on_audio: AudioCallback):
        self.configuration = configuration
        self.on_audio = on_audio
        self.stream = None
        self.file: Optional[sf.SoundFile] = None
        self.paused = False
        self.frames_written = 0
        self.lock = threading.Lock()

    def _callback(self, indata, frames, time_info, status):
        if status:
            logger.debug(f"Audio input status: {status}")
        if self.paused:
            return
        block = indata.copy()
        with self.lock:
            if self.file is not None:
                self.file.write(block)
                self.frames_written += frames
        self.on_audio(block)

    def start(self, path: Optional[Path] = None) -> None:
        """
        Open the input stream and start capturing.

        Args:
            path: WAV file to write; nothing is written when None

        Raises:
            RecordingFileWriteFailed: If the WAV file cannot be created
            RecordingInvalidConfiguration: If the device rejects the settings
            RecordingStartFailed: If the stream cannot be started
        """
        import sounddevice as sd

        cfg = self.configuration
        if path is not None:
            try:
                self.file = sf.SoundFile(str(path), mode="w", samplerate=cfg.sample_rate, channels=cfg.channels, subtype="PCM_16")
            except (sf.LibsndfileError, OSError) as e:
                raise RecordingFileWriteFailed(e) from e

        try:
            self.stream = sd.InputStream(
                samplerate=cfg.sample_rate,
                channels=cfg.channels,
                blocksize=cfg.block_size,
                dtype=cfg.dtype,
                device=cfg.device,
                callback=self._callback,
            )
            self.stream.start()
        except ValueError as e:
            self._close_file()
            raise RecordingInvalidConfiguration(e) from e
        except sd.PortAudioError as e:
            self._close_file()
            raise RecordingStartFailed(e) from e

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def stop(self) -> None:
        """
        Stop capturing and close the WAV file.

        Raises:
            RecordingStopFailed: If the stream cannot be closed
        """
        stream, self.stream = self.stream, None
        try:
            if stream is not None:
                import sounddevice as sd

                try:
                    stream.stop()
                    stream.close()
                except sd.PortAudioError as e:
                    raise RecordingStopFailed(e) from e
        finally:
            self._close_file()

    def _close_file(self) -> None:
        with self.lock:
            if self.file is not None:
                self.file.close()
                self.file = None


RecorderFactory = Callable[[RecordingConfiguration, AudioCallback], AudioRecorder]


class Transcriber:
    """
    Records from the microphone and transcribes it in windows.

    The most recent window's text is kept in ``volatile_transcript`` until the
    next window arrives or recording stops; it then moves into
    ``finalized_transcript``.

    Args:
        configuration: Runtime configuration; the process-wide default when None
        speech_processor: Transcribes audio windows; built from the configuration when None
        recorder_factory: Builds the audio recorder; tests pass fakes here
    """

    def __init__(
        self,
        configuration: Optional[AIMEConfiguration] = None,
        speech_processor: Optional[SpeechProcessor] = None,
        recorder_factory: Optional[RecorderFactory] = None,
    ):
        self.configuration = configuration or get_default_configuration()
        self.speech_processor = speech_processor
        self.recorder_factory = recorder_factory or AudioRecorder

        self.finalized_transcript = ""
        self.volatile_transcript = ""
        self.is_recording = False
        self.is_paused = False
        self.is_processing = False
        self.audio_file_path: Optional[Path] = None

        self._recorder: Optional[AudioRecorder] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._on_transcript_update: Optional[TranscriptCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    @property
    def complete_transcript(self) -> str:
        return " ".join(part for part in (self.finalized_transcript, self.volatile_transcript) if part)

    @property
    def window_frames(self) -> int:
        return max(int(self.configuration.transcription.chunk_seconds * self.configuration.recording.sample_rate), 1)

    async def start_recording(
        self,
        language: Optional[str] = None,
        on_transcript_update: Optional[TranscriptCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """
        Start recording and transcribing.

        Args:
            language: ISO-639-1 hint for transcription
            on_transcript_update: Called with the complete transcript after every window
            on_error: Called with errors raised while transcribing a window

        Raises:
            TranscriptionLocaleNotSupported: If the language is not supported
            RecordingError: If the recorder cannot be started
        """
        if self.is_recording:
            aime_logger.warning("Recording already in progress", category="Transcriber")
            return

        if language:
            code = language.replace("_", "-").split("-")[0].lower()
            if code not in TRANSCRIPTION_LANGUAGES:
                raise TranscriptionLocaleNotSupported(language)
            language = code

        if self.speech_processor is None:
            self.speech_processor = SpeechProcessor(language=language or self.configuration.transcription.language)
        elif language:
            self.speech_processor.language = language

        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._on_transcript_update = on_transcript_update
        self._on_error = on_error
        self.finalized_transcript = ""
        self.volatile_transcript = ""

        recording_config = self.configuration.recording
        path = None
        if recording_config.save_to_disk:
            path = recording_config.save_path or default_recording_path()

        queue = self._queue
        recorder = self.recorder_factory(recording_config, lambda block: loop.call_soon_threadsafe(queue.put_nowait, block))
        try:
            recorder.start(path)
        except AIMEError as e:
            aime_logger.error("Failed to start recording", category="Transcriber", error=e)
            raise
        except Exception as e:
            error = TranscriptionAudioSessionFailed(e)
            aime_logger.error("Failed to start recording", category="Transcriber", error=error)
            raise error from e

        self._recorder = recorder
        self.audio_file_path = path
        self.is_recording = True
        self.is_paused = False
        self._worker = asyncio.create_task(self._consume())
        aime_logger.info(
            "Recording started",
            category="Transcriber",
            metadata={"language": language or "auto", "save_path": str(path) if path else None},
        )

    def pause_recording(self) -> None:
        if not self.is_recording or self.is_paused:
            aime_logger.warning("Cannot pause: not recording or already paused", category="Transcriber")
            return
        self._recorder.pause()
        self.is_paused = True
        aime_logger.info("Recording paused", category="Transcriber")

    def resume_recording(self) -> None:
        if not self.is_recording or not self.is_paused:
            aime_logger.warning("Cannot resume: not paused", category="Transcriber")
            return
        self._recorder.resume()
        self.is_paused = False
        aime_logger.info("Recording resumed", category="Transcriber")

    async def stop_recording(self) -> Optional[str]:
        """
        Stop recording, transcribe the remaining audio and finalize the transcript.

        Returns:
            The complete transcript, or None when nothing was recording

        Raises:
            RecordingStopFailed: If the recorder cannot be stopped
        """
        if not self.is_recording:
            aime_logger.warning("No recording in progress", category="Transcriber")
            return None

        try:
            self._recorder.stop()
        finally:
            # queued behind audio blocks already handed over with call_soon_threadsafe
            asyncio.get_running_loop().call_soon(self._queue.put_nowait, None)
            await self._worker
            self._finalize_volatile()
            self.is_recording = False
            self.is_paused = False
            self._recorder = None
            self._worker = None

        aime_logger.info(
            "Recording stopped",
            category="Transcriber",
            metadata={"transcript_length": len(self.finalized_transcript), "audio_file": str(self.audio_file_path) if self.audio_file_path else None},
        )
        return self.finalized_transcript

    async def _consume(self) -> None:
        blocks: List[np.ndarray] = []
        frames = 0
        while True:
            block = await self._queue.get()
            if block is None:
                break
            blocks.append(block)
            frames += len(block)
            if frames >= self.window_frames:
                await self._transcribe_window(np.concatenate(blocks))
                blocks, frames = [], 0

        if frames:
            await self._transcribe_window(np.concatenate(blocks))

    async def _transcribe_window(self, samples: np.ndarray) -> None:
        self.is_processing = True
        try:
            transcript = await self.speech_processor.transcribe_samples(samples, self.configuration.recording.sample_rate)
        except Exception as e:
            error = to_aime_error(e)
            aime_logger.error("Window transcription failed", category="Transcriber", error=error)
            if self._on_error is not None:
                self._on_error(error)
            return
        finally:
            self.is_processing = False

        self._finalize_volatile()
        self.volatile_transcript = transcript.text
        self._notify()

    def _finalize_volatile(self) -> None:
        if self.volatile_transcript:
            self.finalized_transcript = self.complete_transcript
            self.volatile_transcript = ""

    def _notify(self) -> None:
        if self._on_transcript_update is not None:
            self._on_transcript_update(self.complete_transcript)
