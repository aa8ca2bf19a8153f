"""Call site resolution for warning and error records.

Warnings show the single frame that emitted them on one line. Errors show
every frame of the call chain with a few lines of surrounding source, which
is worth the vertical space when debugging.
"""

import linecache
import logging
import os
import sys
import sysconfig
from collections.abc import Iterator
from dataclasses import dataclass
from itertools import dropwhile, islice
from types import FrameType

import structlog

from .log_levels import LEVEL_DEBUG, LEVEL_INFO, LEVEL_WARN
from .theme import ColorTheme


def _module_dir(path: str | None) -> str:
    return os.path.dirname(os.path.abspath(path or "")) + os.sep


# Frames of the logging machinery itself are never a call site
_LOGGING_DIRS = (
    _module_dir(__file__),
    _module_dir(structlog.__file__),
    _module_dir(logging.__file__),
)

_STDLIB_DIR = os.path.abspath(sysconfig.get_paths()["stdlib"]) + os.sep
_SITE_DIRS = tuple(
    os.path.abspath(sysconfig.get_paths()[name]) + os.sep for name in ("purelib", "platlib")
)


def is_logging_code(filename: str) -> bool:
    """Check whether a source file belongs to happylog, structlog or stdlib logging."""
    return os.path.abspath(filename).startswith(_LOGGING_DIRS)


def _is_stdlib_code(filename: str) -> bool:
    path = os.path.abspath(filename)
    return path.startswith(_STDLIB_DIR) and not path.startswith(_SITE_DIRS)


def _display_path(filename: str) -> str:
    """Show a path relative to the working directory, or to home when that is shorter."""
    try:
        relative = os.path.relpath(filename)
    except ValueError:
        return filename

    if not relative.startswith((os.pardir + os.sep) * 3):
        return relative

    home = os.path.expanduser("~")
    if filename.startswith(home + os.sep):
        return "~" + filename[len(home):]
    return filename


@dataclass(frozen=True, slots=True)
class FrameInfo:
    """A single stack frame and the source around it.

    Attributes:
        filename:       Source file of the frame
        lineno:         Line being executed
        context_lines:  Lines shown on each side of ``lineno``, -1 for a one-line summary
    """

    filename: str
    lineno: int
    context_lines: int = -1

    def source(self) -> list[tuple[int, str]]:
        """Read the source lines around the frame; empty when unavailable."""
        if self.lineno <= 0:
            return []

        radius = max(self.context_lines, 0)
        start = max(1, self.lineno - radius)
        lines = []
        for lineno in range(start, self.lineno + radius + 1):
            line = linecache.getline(self.filename, lineno)
            if not line:
                break
            lines.append((lineno, line.rstrip("\r\n")))
        return lines

    def render(self, color: str, source_color: str, reset: str, indent: str) -> str:
        """Format the frame for display.

        One-line frames render as ``path:line`` followed by the stripped source
        line when it can be read. Multi-line frames render a numbered source
        block, and render nothing at all when no source is available.
        """
        header = f"{color}{indent}{_display_path(self.filename)}:{self.lineno}"
        lines = self.source()

        if self.context_lines < 0:
            if not lines:
                return header
            return f"{header}  {source_color}{lines[0][1].strip()}{reset}"

        if not lines:
            return ""

        parts = [header]
        for lineno, line in lines:
            if lineno == self.lineno:
                marker = "=> " if self.context_lines > 2 else "   "
                parts.append(f"{indent}{indent}{color}{lineno:3d}: {marker}{line}{reset}")
            else:
                parts.append(f"{indent}{indent}{source_color}{lineno:3d}:    {line}{reset}")
        return "\n".join(parts)


def _iter_frames(frame: FrameType | None) -> Iterator[tuple[str, int]]:
    while frame is not None:
        yield frame.f_code.co_filename, frame.f_lineno or 0
        frame = frame.f_back


def _callsite_frames(frame: FrameType | None, skip: int) -> Iterator[tuple[str, int]]:
    frames = dropwhile(lambda f: is_logging_code(f[0]), _iter_frames(frame))
    return islice(frames, skip, None)


def resolve_level_context(
        level: int,
        theme: ColorTheme,
        *,
        indent: str = "  ",
        context_lines: int = 2,
        warn_skip: int = 0,
        error_skip: int = 0,
) -> tuple[str, str]:
    """Resolve the call site context and color for a record.

    Frames of the logging machinery are trimmed first, then ``warn_skip`` or
    ``error_skip`` further frames are skipped.

    Args:
        level:          Numeric level of the record
        theme:          Theme providing the level and source colors
        indent:         Indent written before each frame
        context_lines:  Source lines shown on each side of an error frame
        warn_skip:      Extra frames skipped for warnings
        error_skip:     Extra frames skipped for errors

    Returns:
        Tuple of the context text (possibly empty) and the level color
    """
    if level <= LEVEL_DEBUG:
        return "", theme.debug
    if level <= LEVEL_INFO:
        return "", theme.info

    caller = sys._getframe(1)

    if level <= LEVEL_WARN:
        for filename, lineno in _callsite_frames(caller, warn_skip):
            frame = FrameInfo(filename, lineno)
            return frame.render(theme.warn, theme.source, theme.reset, indent), theme.warn
        return "", theme.warn

    frames = [f for f in _callsite_frames(caller, error_skip) if not is_logging_code(f[0])]
    # Interpreter bootstrap (runpy, threading) sits at the outer end of the stack
    while frames and _is_stdlib_code(frames[-1][0]):
        frames.pop()

    blocks = []
    for filename, lineno in frames:
        frame = FrameInfo(filename, lineno, context_lines)
        if block := frame.render(theme.error, theme.source, theme.reset, indent):
            blocks.append(block)
    return "\n".join(blocks), theme.error
