"""Log level definitions, abbreviations and validation constants."""

from typing import Final, Literal, get_args

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_LEVELS = frozenset(get_args(LogLevel))

LEVEL_TRACE: Final = 5
LEVEL_DEBUG: Final = 10
LEVEL_INFO: Final = 20
LEVEL_WARN: Final = 30
LEVEL_ERROR: Final = 40
LEVEL_FATAL: Final = 50

LEVEL_NUMBERS: Final[dict[str, int]] = {
    "TRACE": LEVEL_TRACE,
    "DEBUG": LEVEL_DEBUG,
    "INFO": LEVEL_INFO,
    "WARN": LEVEL_WARN,
    "WARNING": LEVEL_WARN,
    "ERROR": LEVEL_ERROR,
    "EXCEPTION": LEVEL_ERROR,
    "CRITICAL": LEVEL_FATAL,
    "FATAL": LEVEL_FATAL,
}

LEVEL_ABBREVIATIONS: Final[dict[int, str]] = {
    LEVEL_TRACE: "TRC",
    LEVEL_DEBUG: "DBG",
    LEVEL_INFO: "INF",
    LEVEL_WARN: "WRN",
    LEVEL_ERROR: "ERR",
    LEVEL_FATAL: "FTL",
}


def level_number(name: str) -> int:
    """Map a level name (``"info"``, ``"warning"``, ...) to its number.

    Unknown names map to ``LEVEL_INFO``.
    """
    return LEVEL_NUMBERS.get(name.upper(), LEVEL_INFO)


def level_abbreviation(level: int) -> str:
    """Return the three-letter abbreviation rendered for ``level``."""
    return LEVEL_ABBREVIATIONS.get(level, str(level))
