"""Logging for the CLI and the HTTP service.

stdlib handlers (stderr plus an optional rotating file) carry CLI output;
structlog renders events as JSON in the service and as console lines locally.
Pasted text never reaches a log record whole: ``truncate_long_values`` caps
every string field of an event.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, TextIO

import structlog

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

DEFAULT_LOG_DIR = Path("logs")
DEFAULT_LOG_FILE = "filing_desk.log"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 3

# Longest string value kept in a structlog event
MAX_FIELD_CHARS = 2048

# Chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "sqlalchemy.engine")


def _rotating_handler(path: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def setup_logging(
    level: int = logging.INFO,
    log_dir: Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    console: bool = True,
    file_logging: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach handlers to the ``filing_desk`` logger, replacing earlier ones.

    Args:
        level: Level for the logger and its handlers.
        log_dir: Directory for the rotating file (default ``./logs``).
        log_file: File name inside ``log_dir``.
        max_bytes: Size at which the file rotates.
        backup_count: Rotated files to keep.
        console: Write to ``stream``.
        file_logging: Write to the rotating file.
        stream: Console stream; stderr by default so stdout stays parseable.

    Returns:
        The ``filing_desk`` package logger.
    """
    package_logger = logging.getLogger("filing_desk")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(stream or sys.stderr))
    if file_logging:
        handlers.append(
            _rotating_handler((log_dir or DEFAULT_LOG_DIR) / log_file, max_bytes, backup_count)
        )

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return package_logger


def truncate_long_values(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Cap string fields at ``MAX_FIELD_CHARS``, noting the original length."""
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_FIELD_CHARS:
            event_dict[key] = f"{value[:MAX_FIELD_CHARS]}... [{len(value)} chars]"
    return event_dict


def configure_structlog(
    json_format: bool = True,
    log_level: str = "INFO",
    extra_processors: list[structlog.types.Processor] | None = None,
    use_stdlib: bool = False,
) -> None:
    """Configure structlog for the service or the CLI.

    Args:
        json_format: Render JSON lines (service) instead of console lines.
        log_level: Minimum level name; unknown names fall back to INFO.
        extra_processors: Run after context merging, e.g. request IDs.
        use_stdlib: Hand events to the stdlib handlers from ``setup_logging``
            instead of printing them.
    """
    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.INFO)
    if not use_stdlib:
        logging.basicConfig(format="%(message)s", level=level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        *(extra_processors or []),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        truncate_long_values,
    ]
    if json_format:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=not use_stdlib))

    logger_factory: Any = (
        structlog.stdlib.LoggerFactory() if use_stdlib else structlog.PrintLoggerFactory()
    )
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )
