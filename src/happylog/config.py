"""Configuration handling for happylog.

This module provides the configuration classes and the TOML and environment
parsing for the terminal formatter and the logging handlers built on it. All
configuration objects are immutable; every formatter owns the configuration
it was created with.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Final

import tomllib

from .log_levels import VALID_LOG_LEVELS, LogLevel
from .theme import DEFAULT_THEME, parse_kv_list

FORMAT_ENV: Final = "HAPPYLOG_FORMAT"
COLORS_ENV: Final = "HAPPYLOG_COLORS"
NO_COLOR_ENV: Final = "NO_COLOR"

_FALSE_VALUES: Final = frozenset({"0", "false", "off", "no"})


@dataclass(frozen=True, slots=True)
class FileHandlerConfig:
    """Configuration for file-based logging output.

    Records are written as canonical JSON lines to a rotating file.

    Attributes:
        path:           Path to the log file
        max_size:       Maximum size of the log file in bytes before rotating
        backup_count:   Number of backup log files to keep before overwriting
        encoding:       Character encoding for the log file (default: utf-8)
        enabled:        Enable file-based logging (default: False)
    """

    path: Path
    max_size: int
    backup_count: int
    encoding: str = "utf-8"
    enabled: bool = field(default=False)

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If max_size is not positive or backup_count is negative
        """
        if self.max_size <= 0:
            msg = "max_size must be a positive integer (bytes)"
            raise ValueError(msg)

        if self.backup_count < 0:
            msg = "backup_count must be a non-negative integer"
            raise ValueError(msg)

    def with_path(self, new_path: Path) -> "FileHandlerConfig":
        """Create a new instance with an updated path and file logging enabled.

        Args:
            new_path: New log file path

        Returns:
            New FileHandlerConfig instance with the updated path
        """
        self._validate_path(new_path)
        return replace(self, path=new_path, enabled=True)

    def enable(self) -> "FileHandlerConfig":
        """Create a new instance with file logging enabled."""
        return replace(self, enabled=True)

    @staticmethod
    def _validate_path(path: Path) -> None:
        """Validate the log file path.

        Raises:
            ValueError: If the parent directory exists but is not writable
        """
        try:
            resolved_path = Path.cwd() / path if not path.is_absolute() else path
            parent = resolved_path.parent

            if not parent.exists() or os.access(parent, os.W_OK):
                return
            msg = f"Log directory is not writable: {parent}"
            raise ValueError(msg)

        except OSError as e:
            msg = f"Invalid log file path: {path}. Error: {e}"
            raise ValueError(msg) from e


@dataclass(frozen=True, slots=True)
class ConsoleHandlerConfig:
    """Configuration for the terminal formatter.

    Attributes:
        colors:         Emit ANSI colors
        theme:          Theme string, see ``happylog.theme``
        pretty:         Put every keyed field on its own line
        max_col:        Column at which fields wrap to a new line
        indent:         Indent written at the start of wrapped lines and call site frames
        context_lines:  Source lines shown on each side of an error frame
        warn_skip:      Extra call site frames skipped for warnings
        error_skip:     Extra call site frames skipped for errors
    """

    colors: bool = True
    theme: str = DEFAULT_THEME
    pretty: bool = False
    max_col: int = 80
    indent: str = "  "
    context_lines: int = 2
    warn_skip: int = 0
    error_skip: int = 0

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If max_col is not positive or a line/frame count is negative
        """
        if self.max_col <= 0:
            msg = "max_col must be a positive integer"
            raise ValueError(msg)

        for name in ("context_lines", "warn_skip", "error_skip"):
            if getattr(self, name) < 0:
                msg = f"{name} must be a non-negative integer"
                raise ValueError(msg)

    def with_environ(self, environ: Mapping[str, str] | None = None) -> "ConsoleHandlerConfig":
        """Create a new instance with overrides read from environment variables.

        ``HAPPYLOG_FORMAT`` holds comma separated options: ``pretty`` (or
        ``pretty=false``), ``maxcol=N``, ``context=N`` and ``indent=N`` (spaces).
        ``HAPPYLOG_COLORS`` replaces the theme string and ``NO_COLOR`` disables
        colors.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``

        Returns:
            New ConsoleHandlerConfig instance

        Raises:
            ValueError: If a numeric option is not an integer
        """
        environ = os.environ if environ is None else environ
        changes: dict[str, object] = {}

        if NO_COLOR_ENV in environ:
            changes["colors"] = False
        if theme := environ.get(COLORS_ENV):
            changes["theme"] = theme

        options = parse_kv_list(environ.get(FORMAT_ENV, ""))
        if "pretty" in options:
            changes["pretty"] = options["pretty"].lower() not in _FALSE_VALUES
        if "maxcol" in options:
            changes["max_col"] = int(options["maxcol"])
        if "context" in options:
            changes["context_lines"] = int(options["context"])
        if "indent" in options:
            changes["indent"] = " " * int(options["indent"])

        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Complete logging configuration settings.

    Attributes:
        level:      Logging level to use (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
        file:       FileHandlerConfig instance for file-based logging settings
        console:    ConsoleHandlerConfig instance for the terminal formatter
    """

    level: LogLevel
    file: FileHandlerConfig
    console: ConsoleHandlerConfig

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If the logging level is invalid
        """
        if self.level in VALID_LOG_LEVELS:
            return
        msg = (
            f"Invalid logging level: {self.level!r}. "
            f"Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )
        raise ValueError(msg)

    @classmethod
    def from_toml(cls, config_path: Path) -> "LogConfig":
        """Create LogConfig instance from a TOML configuration file.

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            Configured LogConfig instance

        Raises:
            ValueError: If required configuration keys are missing or if values are invalid
        """
        try:
            config_data = cls._load_toml(config_path)
            return cls._parse_config(config_data)

        except KeyError as e:
            msg = f"Missing required configuration key: {e.args[0]}"
            raise ValueError(msg) from e

        except (TypeError, ValueError) as e:
            msg = f"Invalid value in configuration file: {e!s}"
            raise ValueError(msg) from e

    @classmethod
    def _load_toml(cls, config_path: Path) -> dict:
        """Load and parse the TOML configuration file.

        Raises:
            FileNotFoundError:  If the configuration file doesn't exist
            TOMLDecodeError:    If the TOML file is malformed
        """
        try:
            with config_path.open("rb") as f:
                return tomllib.load(f)

        except FileNotFoundError as e:
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg) from e

        except tomllib.TOMLDecodeError as e:
            msg = f"Failed to parse TOML file {config_path}"
            raise tomllib.TOMLDecodeError(msg) from e

    @classmethod
    def _parse_config(cls, config_data: dict) -> "LogConfig":
        logging_config = config_data["logging"]

        return cls(
            level=logging_config["level"].upper(),
            file=cls._create_file_config(logging_config.get("file", {})),
            console=cls._create_console_config(logging_config.get("console", {})),
        )

    @staticmethod
    def _create_file_config(file_config: dict) -> FileHandlerConfig:
        """Create a FileHandlerConfig from the ``[logging.file]`` table.

        A missing table yields a disabled file configuration.
        """
        if not file_config:
            return FileHandlerConfig(
                path=Path("logs/app.log"),
                max_size=10 * 1024 * 1024,  # 10MB
                backup_count=5,
                enabled=False
            )

        return FileHandlerConfig(
            path=Path(file_config["path"]),
            max_size=int(file_config["max_size"]),
            backup_count=int(file_config["backup_count"]),
            encoding=file_config.get("encoding", "utf-8"),
            enabled=True
        )

    @staticmethod
    def _create_console_config(console_config: dict) -> ConsoleHandlerConfig:
        """Create a ConsoleHandlerConfig from the ``[logging.console]`` table."""
        defaults = ConsoleHandlerConfig()
        return ConsoleHandlerConfig(
            colors=bool(console_config.get("colors", defaults.colors)),
            theme=str(console_config.get("theme", defaults.theme)),
            pretty=bool(console_config.get("pretty", defaults.pretty)),
            max_col=int(console_config.get("max_col", defaults.max_col)),
            indent=str(console_config.get("indent", defaults.indent)),
            context_lines=int(console_config.get("context_lines", defaults.context_lines)),
            warn_skip=int(console_config.get("warn_skip", defaults.warn_skip)),
            error_skip=int(console_config.get("error_skip", defaults.error_skip)),
        )

    @classmethod
    def create_default(cls, log_dir: Path = Path("logs")) -> "LogConfig":
        """Create a default LogConfig instance.

        Creates a configuration with sensible defaults:
        - INFO level logging
        - Colored terminal output with the default theme
        - File logging disabled by default

        Args:
            log_dir: Directory where log files will be stored if enabled

        Returns:
            LogConfig instance with default settings
        """
        return cls(
            level="INFO",
            file=FileHandlerConfig(
                path=log_dir / "app.log",
                max_size=10 * 1024 * 1024,  # 10MB
                backup_count=5,
                enabled=False
            ),
            console=ConsoleHandlerConfig(),
        )
