"""Logging setup for voice-scribe.

All loggers live under the ``voice_scribe`` namespace. Console output goes
to stderr so that ``--json`` command output on stdout stays parseable.
Anything passed through ``extra=`` is rendered as key=value context (text)
or a ``context`` object (JSON).
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any, TextIO

ROOT_LOGGER_NAME = "voice_scribe"

# Attributes every LogRecord has; anything else came in through `extra`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class LogLevel(IntEnum):
    """CLI verbosity levels."""

    QUIET = 0  # Errors
    NORMAL = 1  # + warnings, e.g. a grammar fallback
    VERBOSE = 2  # + stage start/finish with timings
    DEBUG = 3  # + original and corrected text

    @property
    def python_level(self) -> int:
        """Matching stdlib logging level."""
        return (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)[self]


@dataclass
class LogConfig:
    """Configuration for logging.

    Attributes:
        level: Console verbosity
        log_file: Optional file that receives every record
        json_format: One JSON object per line instead of text
        include_timestamp: Prefix console lines with a timestamp
        include_context: Render `extra` fields
        color: ANSI colours when stderr is a terminal
    """

    level: LogLevel = LogLevel.NORMAL
    log_file: Path | None = None
    json_format: bool = False
    include_timestamp: bool = True
    include_context: bool = True
    color: bool = True


class StructuredFormatter(logging.Formatter):
    """Formats records as text lines or JSON lines, with their context."""

    RESET = "\033[0m"
    DIM = "\033[90m"
    NAME = "\033[96m"
    LEVEL_COLORS = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[92m",
        logging.WARNING: "\033[93m",
        logging.ERROR: "\033[91m",
        logging.CRITICAL: "\033[91m",
    }

    def __init__(
        self,
        json_format: bool = False,
        include_timestamp: bool = True,
        include_context: bool = True,
        color: bool = True,
    ):
        super().__init__()
        self.json_format = json_format
        self.include_timestamp = include_timestamp
        self.include_context = include_context
        self.color = color

    @staticmethod
    def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
        """Collect the fields passed via `extra` on a record."""
        return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}

    def format(self, record: logging.LogRecord) -> str:
        line = self._as_json(record) if self.json_format else self._as_text(record)
        if record.exc_info:
            trace = self.formatException(record.exc_info)
            if self.json_format:
                payload = json.loads(line)
                payload["exception"] = trace
                return json.dumps(payload)
            line += "\n" + trace
        return line

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{self.RESET}" if self.color else text

    def _as_json(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_timestamp:
            payload["timestamp"] = datetime.fromtimestamp(record.created).isoformat()

        context = self.extra_fields(record) if self.include_context else {}
        if context:
            payload["context"] = {k: _jsonable(v) for k, v in context.items()}

        return json.dumps(payload)

    def _as_text(self, record: logging.LogRecord) -> str:
        columns = []
        if self.include_timestamp:
            stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
            columns.append(self._paint(stamp, self.DIM))

        level_color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        columns.append(self._paint(record.levelname[:5].ljust(5), level_color))

        # voice_scribe.transcription.whisper_api -> ...ription.whisper_api
        name = record.name if len(record.name) <= 20 else "..." + record.name[-17:]
        columns.append(self._paint(f"{name:>20}", self.NAME))
        columns.append(record.getMessage())
        line = " | ".join(columns)

        context = self.extra_fields(record) if self.include_context else {}
        if context:
            pairs = " ".join(f"{k}={v}" for k, v in context.items())
            line += " " + self._paint(f"[{pairs}]", self.DIM)
        return line


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class VoiceScribeLogger(logging.Logger):
    """Logger that can carry bound context (user id, file...) into every record."""

    def __init__(self, name: str, level: int = logging.NOTSET):
        super().__init__(name, level)
        self._context: dict[str, Any] = {}

    def with_context(self, **context: Any) -> "VoiceScribeLogger":
        """Return a logger that adds context to every record.

        The new logger shares this logger's handlers and parent, so records
        still reach the voice_scribe handlers.
        """
        bound = VoiceScribeLogger(self.name, self.level)
        bound.parent = self.parent
        bound.handlers = self.handlers
        bound._context = {**self._context, **context}
        return bound

    def _log(
        self,
        level: int,
        msg: object,
        args: tuple,
        exc_info: Any = None,
        extra: dict | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
    ) -> None:
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra={**self._context, **(extra or {})},
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


_config: LogConfig = LogConfig()
_initialized: bool = False


def _console_handler(config: LogConfig, stream: TextIO) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(config.level.python_level)
    handler.setFormatter(StructuredFormatter(
        json_format=config.json_format,
        include_timestamp=config.include_timestamp,
        include_context=config.include_context,
        color=config.color and stream.isatty(),
    ))
    return handler


def _file_handler(config: LogConfig, path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(StructuredFormatter(json_format=config.json_format, color=False))
    return handler


def configure_logging(config: LogConfig | None = None) -> None:
    """(Re)build the handlers on the voice_scribe logger.

    Args:
        config: Logging configuration; the current one is reused if None
    """
    global _config, _initialized

    if config:
        _config = config

    logging.setLoggerClass(VoiceScribeLogger)

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.addHandler(_console_handler(_config, sys.stderr))

    if _config.log_file:
        package_logger.addHandler(_file_handler(_config, _config.log_file))
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(_config.level.python_level)

    _initialized = True


def get_logger(name: str) -> VoiceScribeLogger:
    """Get a logger, configuring logging on first use.

    Args:
        name: Logger name (usually __name__)

    Returns:
        VoiceScribeLogger for name
    """
    if not _initialized:
        configure_logging()

    logger = logging.getLogger(name)
    if isinstance(logger, VoiceScribeLogger):
        return logger

    # Created before our logger class was installed
    wrapped = VoiceScribeLogger(name, logger.level)
    wrapped.parent = logger.parent
    wrapped.handlers = logger.handlers
    return wrapped


def set_verbosity(level: LogLevel) -> None:
    """Change console verbosity."""
    _config.level = level
    configure_logging(_config)


def enable_file_logging(log_file: Path) -> None:
    """Also write every record, debug included, to log_file."""
    _config.log_file = log_file
    configure_logging(_config)


def log_operation_start(logger: logging.Logger, operation: str, **context: Any) -> None:
    """Log that a pipeline stage started."""
    logger.info(f"Starting: {operation}", extra=context)


def log_operation_complete(
    logger: logging.Logger,
    operation: str,
    duration: float | None = None,
    **context: Any,
) -> None:
    """Log that a pipeline stage finished.

    Args:
        logger: Logger to use
        operation: Stage name
        duration: Seconds taken, rounded to milliseconds in the record
        **context: Additional context
    """
    if duration is not None:
        context["duration_seconds"] = round(duration, 3)
    logger.info(f"Completed: {operation}", extra=context)


def log_operation_failed(
    logger: logging.Logger,
    operation: str,
    error: Exception,
    **context: Any,
) -> None:
    """Log a stage failure that the pipeline recovered from."""
    logger.warning(
        f"Failed: {operation}",
        extra={**context, "error_type": type(error).__name__, "error_message": str(error)},
    )
