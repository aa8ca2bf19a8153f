"""Developer-friendly structured log rendering.

This package renders structured log calls (a message plus alternating keys
and values) in two ways: a canonical single-line JSON encoding for production
and a colorful, column-aware terminal rendering for development that shows
where warnings and errors came from.

Key Features:
    - Canonical JSON encoding shared by file output and the terminal rendering
    - Field order preserved exactly as passed by the caller
    - Fields wrap onto indented lines at a configurable column, or one per line in pretty mode
    - Configurable color themes with a wildcard fallback
    - Warnings show their call site on one line, errors show the whole call chain with source
    - Reserved keys are rejected, keys needing JSON escaping abort the record
    - structlog and standard library integration with rotating JSON file output

Basic Usage:
    ```python
    from happylog import HappyDevFormatter, LEVEL_INFO

    formatter = HappyDevFormatter("app")
    print(formatter.format(LEVEL_INFO, "user created", ["id", 7, "name", "ada"]), end="")
    ```

    With structlog and the standard library:

    ```python
    from happylog import configure_logging, get_logger

    configure_logging("config/logging.toml").with_environ().with_file().build()
    logger = get_logger(__name__)
    logger.warning("disk almost full", free_mb=120)
    ```

Configuration:
    ```toml
    [logging]
    level = "INFO"  # (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)

    [logging.console]
    colors = true
    theme = "key=cyan+h,value,misc=blue+h,source=yellow,WRN=yellow+h,INF=green+h,ERR=red+h"
    pretty = false
    max_col = 80
    indent = "  "
    context_lines = 2

    [logging.file]
    path = "logs/app.log"
    max_size = 10485760  # 10MB
    backup_count = 5
    encoding = "utf-8"
    ```

    The environment variables ``HAPPYLOG_FORMAT`` (``pretty,maxcol=120,context=3``),
    ``HAPPYLOG_COLORS`` (a theme string) and ``NO_COLOR`` override the console
    settings when ``with_environ()`` is used.

Implementation Notes:
    - The terminal formatter is several times slower than the JSON one; never use it in production
    - Using a reserved key (``_t``, ``_l``, ``_n``, ``_m``, ``_p``, ``_c``) ends the process
    - An odd number of arguments is rendered with an ``_IMBALANCE_AT_INDEX_<i>`` field
"""

from .config import ConsoleHandlerConfig, FileHandlerConfig, LogConfig
from .errors import (
    ComplexKeyError,
    FatalUsageError,
    HappyLogError,
    ReservedKeyError,
    UnrecoverableRenderError,
)
from .factory import configure_logging, get_logger
from .happy_formatter import HappyDevFormatter
from .json_formatter import ErrorLike, JSONFormatter, Ordinary
from .log_levels import (
    LEVEL_DEBUG,
    LEVEL_ERROR,
    LEVEL_FATAL,
    LEVEL_INFO,
    LEVEL_TRACE,
    LEVEL_WARN,
)
from .theme import ColorTheme, parse_theme

__all__ = [
    "LEVEL_DEBUG",
    "LEVEL_ERROR",
    "LEVEL_FATAL",
    "LEVEL_INFO",
    "LEVEL_TRACE",
    "LEVEL_WARN",
    "ColorTheme",
    "ComplexKeyError",
    "ConsoleHandlerConfig",
    "ErrorLike",
    "FatalUsageError",
    "FileHandlerConfig",
    "HappyDevFormatter",
    "HappyLogError",
    "JSONFormatter",
    "LogConfig",
    "Ordinary",
    "ReservedKeyError",
    "UnrecoverableRenderError",
    "configure_logging",
    "get_logger",
    "parse_theme",
]
