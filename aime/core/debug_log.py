"""
Debug logging of model traffic.

When AIME_DEBUG=1, every model request, response and structured-output
validation failure is written as a JSON file under
``{project_root}/.aime/debug/session_<timestamp>/`` for later inspection.
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


def is_debug_enabled() -> bool:
    """
    Check if debug logging is enabled via environment variable.

    Returns:
        True if AIME_DEBUG=1 is set
    """
    return os.getenv("AIME_DEBUG", "0") == "1"


class DebugLogger:
    """
    Writes model requests and responses as JSON records.

    Logs are stored in {project_root}/.aime/debug/ with one subdirectory per
    session.
    """

    def __init__(self, project_root: str = ".", enabled: Optional[bool] = None):
        """
        Initialize debug logger.

        Args:
            project_root: Project root directory for log storage
            enabled: Override debug enable flag, uses AIME_DEBUG env var if None
        """
        self.project_root = project_root
        self.enabled = enabled if enabled is not None else is_debug_enabled()
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

        if self.enabled:
            self._setup_log_directory()

    def _setup_log_directory(self) -> None:
        """Create debug log directory structure."""
        self.log_dir = Path(self.project_root) / ".aime" / "debug"
        self.session_dir = self.log_dir / f"session_{self.session_id}"
        self.session_dir.mkdir(parents=True, exist_ok=True)

    def is_enabled(self) -> bool:
        """Check if debug logging is enabled."""
        return self.enabled

    def _write(self, step: str, payload: Dict[str, Any]) -> Optional[Path]:
        if not self.enabled:
            return None

        timestamp = datetime.now().isoformat()
        log_data = {"timestamp": timestamp, "session_id": self.session_id, "step": step, **payload}

        filename = f"{step}_{timestamp.replace(':', '-').replace('.', '_')}.json"
        log_file = self.session_dir / filename

        with open(log_file, "w", encoding="utf-8") as f:
            json.dump(log_data, f, indent=2, ensure_ascii=False, default=str)
        return log_file

    def log_llm_request(self, prompt: str, instructions: str, output_schema: str) -> Optional[Path]:
        """
        Log a model request.

        Args:
            prompt: User prompt sent to the model
            instructions: System instructions of the session
            output_schema: Name of the structured output type requested
        """
        return self._write(
            "llm_request",
            {"type": "request", "prompt": prompt, "instructions": instructions, "output_schema": output_schema, "prompt_length": len(prompt)},
        )

    def log_llm_response(self, response_content: str, prompt: str) -> Optional[Path]:
        """
        Log a model response.

        Args:
            response_content: Serialized structured output
            prompt: Prompt that produced it
        """
        return self._write(
            "llm_response",
            {
                "type": "response",
                "response_content": response_content,
                "response_length": len(response_content),
                "prompt_length": len(prompt),
            },
        )

    def log_validation_error(self, error: Exception, raw_data: Any, context: str = "validation") -> Optional[Path]:
        """
        Log detailed information about a structured-output validation failure.

        Args:
            error: The exception that occurred
            raw_data: The raw data that failed validation
            context: Context description for the error
        """
        return self._write(
            f"{context}_validation_error",
            {
                "type": "validation_error",
                "error": str(error),
                "error_type": type(error).__name__,
                "raw_data": raw_data,
                "validation_errors": error.errors() if hasattr(error, "errors") else [],
            },
        )


# Global debug logger instance
_debug_logger: Optional[DebugLogger] = None


def get_debug_logger(project_root: str = ".") -> DebugLogger:
    """
    Get or create global debug logger instance.

    Args:
        project_root: Project root directory

    Returns:
        DebugLogger instance
    """
    global _debug_logger
    if _debug_logger is None or _debug_logger.project_root != project_root:
        _debug_logger = DebugLogger(project_root)
    return _debug_logger
