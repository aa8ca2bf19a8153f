"""Handler creation and structlog processors for happylog.

This module connects the formatters to structlog and the standard library.
Console handlers render records with ``HappyDevFormatter``; file handlers
write the canonical JSON produced by ``JSONFormatter``.
"""

import logging
import logging.handlers
import sys
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import Any

import colorama
import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from .config import ConsoleHandlerConfig, FileHandlerConfig
from .errors import FatalUsageError
from .happy_formatter import HappyDevFormatter
from .json_formatter import DEFAULT_TIMESTAMP_FORMAT, DEFAULT_TIMESTAMP_UTC, JSONFormatter
from .log_levels import level_number
from .validation import INTERNAL_LOGGER_NAME, validate_keys


# Attributes a logging.Formatter caches on the record it formats
_FORMATTER_ATTRIBUTES = ("message", "asctime")


def drop_formatter_attributes(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
) -> EventDict:
    """Remove attributes another handler's formatter left on a stdlib record.

    ``ExtraAdder`` copies every non-standard record attribute, so without this
    the formatted message would come back as a ``message`` field.
    """
    record = event_dict.get("_record")
    if record is None:
        return event_dict
    for key in _FORMATTER_ATTRIBUTES:
        if key in event_dict and event_dict[key] is getattr(record, key, None):
            del event_dict[key]
    return event_dict


def create_shared_processors() -> list[Processor]:
    """Create the list of shared structlog processors.

    These processors are used by both console and file handlers to provide
    consistent base enrichment of log records.

    Returns:
        List of structlog processors for both console and file output
    """
    return [
        # Context management
        structlog.contextvars.merge_contextvars,

        # Standard library integration
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        drop_formatter_attributes,

        # Error handling and stack traces
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,

        # Timestamp handling
        structlog.processors.TimeStamper(
            fmt=DEFAULT_TIMESTAMP_FORMAT,
            utc=DEFAULT_TIMESTAMP_UTC
        ),
    ]


def _exception_from(exc_info: Any) -> BaseException | None:
    if isinstance(exc_info, BaseException):
        return exc_info
    if isinstance(exc_info, tuple):
        return exc_info[1]
    if exc_info:
        return sys.exc_info()[1]
    return None


def split_event(
        event_dict: MutableMapping[str, Any],
        method_name: str,
) -> tuple[int, str, str, list[Any]]:
    """Turn a structlog event dict into the arguments of a log call.

    ``level``, ``logger`` and ``event`` become the level, logger name and
    message. ``exc_info`` becomes an ``exception`` field holding the exception.
    The structlog timestamp is dropped since the formatters stamp records
    themselves. All other keys become alternating keys and values, in order.

    Returns:
        Tuple of level, logger name, message and flat arguments
    """
    event = dict(event_dict)
    event.pop("timestamp", None)

    level = level_number(str(event.pop("level", method_name)))
    name = str(event.pop("logger", "") or "")
    message = str(event.pop("event", ""))
    exception = _exception_from(event.pop("exc_info", None))

    args = [item for pair in event.items() for item in pair]
    if exception is not None:
        args += ["exception", exception]
    return level, name, message, args


class _CallRenderer(ABC):
    """Base for processors that render an event dict as one log call.

    A fatal usage error ends the process: standard library handlers would
    otherwise report the exception and carry on.
    """

    def __call__(
            self,
            logger: WrappedLogger,
            method_name: str,
            event_dict: MutableMapping[str, Any],
    ) -> str:
        level, name, message, args = split_event(event_dict, method_name)
        try:
            return self.render_call(level, name, message, args)
        except FatalUsageError as e:
            raise SystemExit(1) from e

    @abstractmethod
    def render_call(self, level: int, name: str, message: str, args: list[Any]) -> str:
        """Render one log call."""


class HappyDevRenderer(_CallRenderer):
    """Render structlog events with ``HappyDevFormatter``."""

    def __init__(self, config: ConsoleHandlerConfig | None = None) -> None:
        self._formatter = HappyDevFormatter(INTERNAL_LOGGER_NAME, config)

    def render_call(self, level: int, name: str, message: str, args: list[Any]) -> str:
        # The stream handler appends its own line terminator
        return self._formatter.format(level, message, args, name).removesuffix("\n")


class CanonicalJSONRenderer(_CallRenderer):
    """Render structlog events as canonical JSON lines."""

    def __init__(self) -> None:
        self._formatter = JSONFormatter(INTERNAL_LOGGER_NAME)

    def render_call(self, level: int, name: str, message: str, args: list[Any]) -> str:
        validate_keys(args)
        return self._formatter.format(level, message, args, name)


def create_console_handler(
        config: ConsoleHandlerConfig,
        shared_processors: list[Processor]
) -> logging.Handler:
    """Create and configure a console logging handler.

    Creates a StreamHandler that renders records with the terminal formatter
    and writes them to stdout.

    Args:
        config:             Console handler configuration settings
        shared_processors:  List of shared structlog processors to use

    Returns:
        Configured StreamHandler instance
    """
    if config.colors:
        colorama.just_fix_windows_console()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            HappyDevRenderer(config),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    return handler


def create_file_handler(
        config: FileHandlerConfig,
        shared_processors: list[Processor]
) -> logging.Handler:
    """Create and configure a file logging handler.

    Creates a RotatingFileHandler writing canonical JSON lines. Handles log
    rotation based on file size with backup file support.

    Args:
        config:             File handler configuration settings
        shared_processors:  List of shared structlog processors

    Returns:
        Configured RotatingFileHandler instance
    """
    path = config.path
    path.parent.mkdir(parents=True, exist_ok=True)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            CanonicalJSONRenderer(),
        ],
    )
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=config.max_size,
        backupCount=config.backup_count,
        encoding=config.encoding,
    )
    handler.setFormatter(formatter)
    return handler
