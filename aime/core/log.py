"""
Level-filtered logger for AIME.

Entries are built as ``LogEntry`` records, filtered by the active
``LoggingConfiguration``, forwarded to the standard ``logging`` module under
``aime.<category>`` and handed to the optional custom sink.
"""

import logging
from typing import Any, Dict, Optional

from .config import LoggingConfiguration, get_default_configuration
from .types import LogEntry, LogLevel

_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}


class AIMELogger:
    """
    Main logger for AIME.

    Uses the default configuration's logging section unless a configuration
    has been set explicitly with ``update_configuration``.
    """

    def __init__(self, configuration: Optional[LoggingConfiguration] = None):
        self._configuration = configuration

    @property
    def configuration(self) -> LoggingConfiguration:
        if self._configuration is not None:
            return self._configuration
        return get_default_configuration().logging

    def update_configuration(self, configuration: Optional[LoggingConfiguration]) -> None:
        """Set the logging configuration; None follows the default configuration again."""
        self._configuration = configuration

    def log(
        self,
        level: LogLevel,
        message: str,
        category: str = "AIME",
        metadata: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> Optional[LogEntry]:
        """
        Log a message.

        Returns:
            The emitted entry, or None when it was filtered out
        """
        configuration = self.configuration
        if not configuration.is_enabled or level < configuration.level:
            return None
        if error is not None and level >= LogLevel.ERROR and not configuration.log_errors:
            return None

        entry = LogEntry(level=level, message=message, category=category, metadata=metadata, error=error)

        log_message = message
        if error is not None:
            log_message += f" - Error: {error}"
        if metadata:
            log_message += f" - Metadata: {metadata}"
        logging.getLogger(f"aime.{category}").log(_STDLIB_LEVELS[level], log_message)

        if configuration.custom_logger is not None:
            configuration.custom_logger(entry)
        return entry

    def debug(self, message: str, category: str = "AIME", metadata: Optional[Dict[str, Any]] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, message, category=category, metadata=metadata)

    def info(self, message: str, category: str = "AIME", metadata: Optional[Dict[str, Any]] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, message, category=category, metadata=metadata)

    def warning(self, message: str, category: str = "AIME", metadata: Optional[Dict[str, Any]] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.WARNING, message, category=category, metadata=metadata)

    def error(
        self, message: str, category: str = "AIME", error: Optional[BaseException] = None, metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, message, category=category, metadata=metadata, error=error)

    def critical(
        self, message: str, category: str = "AIME", error: Optional[BaseException] = None, metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[LogEntry]:
        return self.log(LogLevel.CRITICAL, message, category=category, metadata=metadata, error=error)


# Global logger instance
aime_logger = AIMELogger()
