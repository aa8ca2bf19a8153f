"""Colorful, column-aware terminal formatter for development.

``HappyDevFormatter`` does not care about speed. Every call is first encoded
by the production ``JSONFormatter`` and decoded again, so what a developer
reads in the terminal is exactly what production writes. On top of that it
reads source files to show where warnings and errors came from, and keeps
fields in the order they were passed.

Never use it in production.
"""

from collections.abc import Sequence
from typing import Any, Final

from .callsite import resolve_level_context
from .config import ConsoleHandlerConfig
from .json_formatter import FieldValue, JSONFormatter
from .keys import LEVEL_KEY, MESSAGE_KEY, NAME_KEY, TIME_KEY
from .theme import parse_theme
from .validation import ordered_keys, validate_keys

SEPARATOR: Final = " "
ASSIGNMENT: Final = ": "


class _RenderCursor:
    """Output buffer that tracks the column of the current line.

    Escape sequences go through ``write_raw`` so they never move the column.
    """

    __slots__ = ("_parts", "col")

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.col = 0

    def write(self, s: str) -> None:
        # Multi-line values count in full, pushing the next field to a new line
        self._parts.append(s)
        self.col += len(s)

    def write_raw(self, s: str) -> None:
        self._parts.append(s)

    def newline(self) -> None:
        self._parts.append("\n")
        self.col = 0

    def getvalue(self) -> str:
        return "".join(self._parts)


class HappyDevFormatter:
    """Terminal formatter with colors, wrapping and call site context.

    The theme and configuration are fixed when the formatter is created; all
    per-record state lives in a cursor created for each call, so a single
    instance can be shared between threads.

    Attributes:
        name:   Logger name written when a call does not provide one
        config: Console settings (theme, wrapping, call site context)
        theme:  Theme parsed from ``config.theme``
    """

    def __init__(self, name: str, config: ConsoleHandlerConfig | None = None) -> None:
        self.name = name
        self.config = config or ConsoleHandlerConfig()
        self.theme = parse_theme(self.config.theme, colors=self.config.colors)
        self._json_formatter = JSONFormatter(name)

    def format(
            self,
            level: int,
            message: str,
            args: Sequence[Any] = (),
            name: str | None = None,
    ) -> str:
        """Render one log call.

        Args:
            level:      Numeric level of the record
            message:    Log message
            args:       Alternating keys and values
            name:       Optional logger name overriding the formatter's name

        Returns:
            The rendered record, ending with exactly one newline

        Raises:
            ReservedKeyError: If a key collides with a reserved key
            ComplexKeyError:  If a key is not a trivially quoted JSON string
        """
        validate_keys(args)
        entry = self._json_formatter.log_entry(level, message, args, name)

        config = self.config
        theme = self.theme
        cursor = _RenderCursor()

        cursor.write_raw(theme.misc)
        cursor.write(entry[TIME_KEY].text())
        cursor.write_raw(theme.reset)

        context, color = resolve_level_context(
            level,
            theme,
            indent=config.indent,
            context_lines=config.context_lines,
            warn_skip=config.warn_skip,
            error_skip=config.error_skip,
        )

        self._set(cursor, "", entry[LEVEL_KEY], color)
        self._set(cursor, "", entry[NAME_KEY], theme.misc)
        self._set(cursor, "", entry[MESSAGE_KEY], color)

        for key in ordered_keys(args):
            self._set(cursor, key, entry[key], theme.value)

        if context:
            cursor.newline()
            cursor.write_raw(color)
            cursor.write(context.rstrip("\n"))
            cursor.write_raw(theme.reset)
        cursor.newline()

        return cursor.getvalue()

    def render(
            self,
            level: int,
            message: str,
            args: Sequence[Any] = (),
            name: str | None = None,
    ) -> bytes:
        """Render one log call as UTF-8 bytes."""
        return self.format(level, message, args, name).encode("utf-8")

    def _set(self, cursor: _RenderCursor, key: str, value: FieldValue, color: str) -> None:
        if value.is_error:
            color = self.theme.error
        self._offset(cursor, color, key, value.text())

    def _offset(self, cursor: _RenderCursor, color: str, key: str, value: str) -> None:
        """Write a field, wrapping to an indented new line when it does not fit."""
        val = value.strip("\n ")
        label = f"{key}{ASSIGNMENT}" if key else ""
        width = len(SEPARATOR) + len(label) + len(val)

        if (self.config.pretty and key) or cursor.col + width > self.config.max_col:
            cursor.newline()
            cursor.write(self.config.indent)
        else:
            cursor.write(SEPARATOR)

        if label:
            cursor.write_raw(self.theme.key)
            cursor.write(label)
            cursor.write_raw(self.theme.reset)

        if color:
            cursor.write_raw(color)
        cursor.write(val)
        if color:
            cursor.write_raw(self.theme.reset)
