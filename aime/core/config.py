"""
Configuration management for AIME.

This module handles environment variables, API keys and model settings using
python-dotenv for explicit, project-scoped .env loading. No implicit loading
occurs at import time. It also holds the runtime configuration records
(language model, logging, transcription, recording) and the process-wide
default configuration.
"""

import asyncio
import os
import weakref
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from .errors import ConfigurationInvalid
from .types import LogEntry, LogLevel, UseCase

# Local OpenAI-compatible servers accept any key
LOCAL_API_KEY_PLACEHOLDER = "not-needed"


@lru_cache(maxsize=32)
def load_config(env_path: Optional[str] = None, override: bool = False) -> None:
    """Explicitly load environment variables from the given .env file path.

    Notes:
    - This function does NOT perform implicit loading when env_path is None.
    - Callers should pass a project-scoped env path resolved via helpers in this module.
    """
    if env_path:
        load_dotenv(dotenv_path=env_path, override=override)


class Config:
    """Environment-backed settings for AIME."""

    @property
    def openai_api_key(self) -> Optional[str]:
        """Get OpenAI API key from environment."""
        return os.getenv("OPENAI_API_KEY")

    @property
    def openai_base_url(self) -> Optional[str]:
        """Base URL of an OpenAI-compatible server (e.g. a local Ollama instance)."""
        return os.getenv("OPENAI_BASE_URL") or None

    @property
    def llm_model(self) -> str:
        """Get the LLM model name (default: gpt-4o-mini)."""
        return os.getenv("LLM_MODEL", "gpt-4o-mini")

    @property
    def asr_model(self) -> str:
        """Get the model name for ASR (default: whisper-1)."""
        return os.getenv("ASR_MODEL", "whisper-1")

    @property
    def model_temperature(self) -> float:
        """Get model temperature (default: 0.2)."""
        try:
            temp = float(os.getenv("MODEL_TEMPERATURE", "0.2"))
        except (TypeError, ValueError):
            return 0.2
        if not (0.0 <= temp <= 2.0):
            return 0.2
        return temp

    @property
    def openai_timeout(self) -> int:
        """Get OpenAI API timeout in seconds (default: 60)."""
        return int(os.getenv("OPENAI_TIMEOUT", "60"))

    @property
    def max_retries(self) -> int:
        """Get maximum number of retries for API calls (default: 3)."""
        return int(os.getenv("MAX_RETRIES", "3"))

    @property
    def log_level(self) -> LogLevel:
        """Get the AIME logger level (default: info)."""
        value = os.getenv("AIME_LOG_LEVEL", "info").upper()
        try:
            return LogLevel[value]
        except KeyError:
            return LogLevel.INFO


# Global config instance
config = Config()

# --- Project-scoped environment helpers ---

DEFAULT_ENV_FILENAME = os.getenv("AIME_ENV_FILENAME", ".env")
ENV_FILE_ENV_VAR = "AIME_ENV_FILE"
PROJECT_ROOT_ENV_VAR = "AIME_PROJECT_ROOT"


def detect_project_root(start_dir: Optional[str] = None) -> Optional[Path]:
    """Detect project root by looking for a .aime directory upwards from start_dir (or CWD)."""
    start = Path(start_dir) if start_dir else Path.cwd()
    for current in [start] + list(start.parents):
        if (current / ".aime").exists():
            return current
    return None


def get_project_metadata_dir(project_root: Optional[str] = None) -> Path:
    """Return the .aime directory for a given or detected project root."""
    root = Path(project_root) if project_root else (detect_project_root() or Path.cwd())
    return root / ".aime"


def load_project_env(project_root: Optional[str] = None, filename: str = DEFAULT_ENV_FILENAME, override: bool = False) -> Optional[str]:
    """
    Load a project-scoped environment file, if available.

    Load order (first match wins):
    1) Explicit env file path via AIME_ENV_FILE
    2) <project_root>/.aime/<filename> (default: .env)

    Returns the path loaded, or None if nothing was loaded.
    """
    explicit = os.getenv(ENV_FILE_ENV_VAR)
    if explicit and Path(explicit).is_file():
        load_config(explicit, override=override)
        return explicit

    if project_root is None:
        project_root = os.getenv(PROJECT_ROOT_ENV_VAR)
    if project_root is None:
        detected = detect_project_root()
        project_root = str(detected) if detected else None

    if project_root:
        env_path = get_project_metadata_dir(project_root) / filename
        if env_path.exists():
            load_config(str(env_path), override=override)
            return str(env_path)

    return None


# AsyncOpenAI connection pools are bound to the loop that first used them
_clients: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, AsyncOpenAI]" = weakref.WeakKeyDictionary()


def get_client() -> AsyncOpenAI:
    """
    Get configured async OpenAI client with timeout and retry settings.

    One client is cached per running event loop, so separate ``asyncio.run``
    calls never share connections. Outside an event loop a fresh client is
    built on every call.

    Behavior:
    - Does not implicitly load a .env from the current working directory.
    - If OPENAI_API_KEY is missing, attempts to load a project-scoped env:
      AIME_ENV_FILE → <project>/.aime/.env
    - When OPENAI_BASE_URL points at a local server, the API key is optional.

    Raises:
        ConfigurationInvalid: If neither an API key nor a base URL is configured
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return _build_client()

    client = _clients.get(loop)
    if client is None:
        client = _clients[loop] = _build_client()
    return client


def reset_clients() -> None:
    """Drop the cached per-loop clients."""
    _clients.clear()


def _build_client() -> AsyncOpenAI:
    if not config.openai_api_key:
        load_project_env()
    api_key = config.openai_api_key
    base_url = config.openai_base_url
    if not api_key and not base_url:
        raise ConfigurationInvalid(
            "OPENAI_API_KEY not found in environment. Set it via environment, AIME_ENV_FILE, "
            f"or place it under .aime/{DEFAULT_ENV_FILENAME}; or set OPENAI_BASE_URL for a local server."
        )
    try:
        return AsyncOpenAI(
            api_key=api_key or LOCAL_API_KEY_PLACEHOLDER,
            base_url=base_url,
            timeout=config.openai_timeout,
            max_retries=config.max_retries,
        )
    except Exception as e:
        raise ConfigurationInvalid(f"Failed to create OpenAI client: {e}") from e


def validate_config() -> None:
    """
    Validate that all required configuration is present.

    Raises:
        ConfigurationInvalid: If required configuration is missing
    """
    _ = get_client()


# --- Runtime configuration ---


class LanguageModelConfiguration(BaseModel):
    """Settings applied to every language model session."""

    use_case: UseCase = UseCase.GENERAL
    model: Optional[str] = Field(default=None, description="Model override; defaults to LLM_MODEL")
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0, description="Temperature override")
    default_instructions: Optional[str] = Field(default=None, description="System instructions used when none are given")


class LoggingConfiguration(BaseModel):
    """Settings for the AIME logger."""

    is_enabled: bool = True
    level: LogLevel = LogLevel.INFO
    log_tokens: bool = True
    log_errors: bool = True
    log_performance: bool = False
    custom_logger: Optional[Callable[[LogEntry], None]] = Field(default=None, description="Sink called with every emitted entry")


class TranscriptionConfiguration(BaseModel):
    """Settings for speech transcription."""

    language: Optional[str] = Field(default=None, description="ISO-639-1 language code; None lets the model detect it")
    model: Optional[str] = Field(default=None, description="Model override; defaults to ASR_MODEL")
    chunk_seconds: float = Field(default=5.0, gt=0.0, description="Audio window sent per transcription request")


class RecordingConfiguration(BaseModel):
    """Settings for audio capture."""

    sample_rate: int = Field(default=16000, gt=0)
    channels: int = Field(default=1, ge=1)
    block_size: int = Field(default=4096, gt=0, description="Frames per audio callback")
    dtype: str = "float32"
    device: Optional[str] = Field(default=None, description="Input device name; None uses the system default")
    save_to_disk: bool = True
    save_path: Optional[Path] = Field(default=None, description="Where to write the recording; a temp file when None")


class AIMEConfiguration(BaseModel):
    """Aggregate runtime configuration."""

    language_model: LanguageModelConfiguration = Field(default_factory=LanguageModelConfiguration)
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)
    transcription: TranscriptionConfiguration = Field(default_factory=TranscriptionConfiguration)
    recording: RecordingConfiguration = Field(default_factory=RecordingConfiguration)


# Global default configuration, built lazily so environment changes made before first use apply
_default_configuration: Optional[AIMEConfiguration] = None


def get_default_configuration() -> AIMEConfiguration:
    """Get or create the process-wide default configuration."""
    global _default_configuration
    if _default_configuration is None:
        _default_configuration = AIMEConfiguration(logging=LoggingConfiguration(level=config.log_level))
    return _default_configuration


def set_default_configuration(configuration: Optional[AIMEConfiguration]) -> None:
    """Replace the process-wide default configuration; None restores the defaults on next access."""
    global _default_configuration
    _default_configuration = configuration


def configure(
    language_model: Optional[LanguageModelConfiguration] = None,
    logging: Optional[LoggingConfiguration] = None,
    transcription: Optional[TranscriptionConfiguration] = None,
    recording: Optional[RecordingConfiguration] = None,
) -> AIMEConfiguration:
    """
    Update sections of the default configuration.

    Args:
        language_model: New language model settings
        logging: New logging settings
        transcription: New transcription settings
        recording: New recording settings

    Returns:
        The updated default configuration
    """
    current = get_default_configuration()
    updated = current.model_copy(
        update={
            key: value
            for key, value in {
                "language_model": language_model,
                "logging": logging,
                "transcription": transcription,
                "recording": recording,
            }.items()
            if value is not None
        }
    )
    set_default_configuration(updated)
    return updated
