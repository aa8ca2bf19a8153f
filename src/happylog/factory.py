"""Factory module for configuring and creating structured loggers.

This module provides the main interface for setting up logging with the
terminal formatter on the console and optional canonical JSON file output.
It manages the global logging state and provides a fluent interface for
configuration.

Logging can only be fully configured once. If logging is accessed before
configuration, a console-only fallback is installed.
"""

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final

import structlog
from structlog.stdlib import BoundLogger

from .config import FileHandlerConfig, LogConfig
from .handlers import create_console_handler, create_file_handler, create_shared_processors
from .log_levels import level_number


@dataclass(frozen=True)
class RuntimeConfig:
    """Internal configuration state holder.

    Attributes:
        base_config:    Base logging configuration from TOML or defaults
        file_path:      Optional custom path for file logging
    """

    base_config: LogConfig
    file_path: Path | None = None

    @property
    def file_config(self) -> FileHandlerConfig | None:
        """Get the effective file configuration.

        Returns:
            FileHandlerConfig if file logging is enabled, None otherwise
        """
        if self.file_path is not None:
            return self.base_config.file.with_path(self.file_path)

        if self.base_config.file.enabled:
            return self.base_config.file

        return None


class ConfigurationState:
    """Manages the global logging configuration state.

    Provides thread-safe access to the global logging configuration and
    ensures that logging can only be fully configured once.
    """

    def __init__(self) -> None:
        self._state: RuntimeConfig | None = None
        self._lock: Final = threading.Lock()

    def is_configured(self) -> bool:
        return self._state is not None

    def get_config(self) -> RuntimeConfig:
        """Get the current configuration state.

        Raises:
            RuntimeError: If logging hasn't been configured yet
        """
        if self._state is None:
            msg = (
                "Logging hasn't been configured. "
                "Call configure_logging() first or use default console-only logging."
            )
            raise RuntimeError(msg)
        return self._state

    def set_config(self, config: RuntimeConfig) -> None:
        """Set the configuration state.

        Raises:
            RuntimeError: If logging has already been configured
        """
        with self._lock:
            if self.is_configured():
                msg = (
                    "Logging has already been configured. "
                    "configure_logging() should only be called once."
                )
                raise RuntimeError(msg)
            self._state = config


# Global configuration state
_config_state: Final = ConfigurationState()


@dataclass
class LoggingBuilder:
    """Builder for logging configuration.

    Provides a fluent interface for enabling file output and applying
    environment overrides to the console formatter before the configuration
    is applied.

    Attributes:
        _base_config:   Base logging configuration from TOML or defaults
        _file_path:     Optional custom path for file logging output
    """

    _base_config: LogConfig
    _file_path: Path | None = None

    def with_file(self, path: str | Path | None = None) -> "LoggingBuilder":
        """Add file logging with an optional custom path.

        Relative paths are resolved from the current working directory. If no
        path is provided, the path of the base configuration is used.

        Args:
            path: Optional custom log file path

        Returns:
            Self for method chaining
        """
        if path is not None:
            self._file_path = Path(path)
        else:
            file_config = self._base_config.file.enable()
            self._base_config = replace(self._base_config, file=file_config)
        return self

    def with_environ(self, environ: Mapping[str, str] | None = None) -> "LoggingBuilder":
        """Apply ``HAPPYLOG_FORMAT``, ``HAPPYLOG_COLORS`` and ``NO_COLOR`` overrides.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``

        Returns:
            Self for method chaining
        """
        console = self._base_config.console.with_environ(environ)
        self._base_config = replace(self._base_config, console=console)
        return self

    def build(self) -> None:
        """Build and apply the logging configuration.

        Can only be called once per application lifecycle due to the global
        nature of the logging configuration.

        Raises:
            RuntimeError: If logging has already been configured
        """
        config = RuntimeConfig(
            base_config=self._base_config,
            file_path=self._file_path,
        )
        _config_state.set_config(config)
        _configure_logging(config)


def configure_logging(config_path: str | Path | None = None) -> LoggingBuilder:
    """Start configuring structlog and standard library logging.

    Args:
        config_path: Optional path to a TOML config file

    Returns:
        LoggingBuilder instance for method chaining
    """
    config = (
        LogConfig.from_toml(Path(config_path))
        if config_path is not None
        else LogConfig.create_default()
    )

    return LoggingBuilder(config)


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a configured structlog logger instance.

    If logging hasn't been configured yet, console-only logging is set up first.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Configured BoundLogger instance
    """
    if not _config_state.is_configured():
        _configure_console_only()
    return structlog.get_logger(name)


def _configure_console_only() -> None:
    """Configure console-only logging with default settings."""
    config = LogConfig.create_default()
    shared_processors = create_shared_processors()
    _configure_structlog(shared_processors)
    _configure_logging_system(
        level=config.level,
        handlers=[create_console_handler(config.console, shared_processors)]
    )


def _configure_logging(config: RuntimeConfig) -> None:
    """Configure the logging system with console and optional file output."""
    shared_processors = create_shared_processors()
    handlers = [create_console_handler(config.base_config.console, shared_processors)]

    if file_config := config.file_config:
        handlers.append(create_file_handler(file_config, shared_processors))

    _configure_structlog(shared_processors)
    _configure_logging_system(
        level=config.base_config.level,
        handlers=handlers,
    )


def _configure_structlog(shared_processors: list) -> None:
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _configure_logging_system(level: str, handlers: list[logging.Handler]) -> None:
    """Attach the handlers to the root logger and every existing logger."""
    numeric_level = level_number(level)
    _configure_root_logger(numeric_level, handlers)

    for logger_name, logger in logging.Logger.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger) or logger_name == "root":
            continue
        _configure_logger(logger, numeric_level, handlers)


def _configure_root_logger(level: int, handlers: list[logging.Handler]) -> None:
    """Configure the root logger with the specified settings.

    Args:
        level:      Logging level to set for the root logger
        handlers:   List of handlers to attach to the root logger
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()  # We only want our handlers

    for handler in handlers:
        root_logger.addHandler(handler)

    root_logger.setLevel(level)


def _configure_logger(logger: logging.Logger, level: int, handlers: list[logging.Handler]) -> None:
    logger.handlers.clear()
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False
    logger.setLevel(level)
