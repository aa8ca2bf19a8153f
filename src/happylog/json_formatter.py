"""Canonical JSON encoding of log calls.

The JSON line produced here is what production handlers write. The terminal
formatter decodes the same line back into a ``LogEntry`` so both outputs
always agree on field values.
"""

import json
import os
import traceback
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Final

import structlog

from .callsite import is_logging_code
from .keys import (
    LEVEL_KEY,
    MESSAGE_KEY,
    NAME_KEY,
    PID_KEY,
    TIME_KEY,
    bad_key_at_index,
    imbalanced_key_at_index,
)
from .log_levels import level_abbreviation

DEFAULT_TIMESTAMP_FORMAT: Final = "%Y-%m-%d %H:%M:%S"
DEFAULT_TIMESTAMP_UTC: Final = False


@dataclass(frozen=True, slots=True)
class Ordinary:
    """A plain field value as decoded from the canonical JSON."""

    value: Any
    is_error: ClassVar[bool] = False

    def text(self) -> str:
        if isinstance(self.value, str):
            return self.value
        return json.dumps(self.value, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ErrorLike:
    """An exception field: its message plus the stack it was raised through."""

    message: str
    stack: str
    is_error: ClassVar[bool] = True

    def text(self) -> str:
        return f"{self.message}\n{self.stack}"


FieldValue = Ordinary | ErrorLike
LogEntry = dict[str, FieldValue]


def _json_default(obj: object) -> str:
    return str(obj)


def _encodable(value: Any) -> Any:
    """Return ``value``, or its ``repr`` if JSON cannot encode it even as a string."""
    try:
        json.dumps(value, default=_json_default)
    except (TypeError, ValueError):
        return repr(value)
    return value


def _error_stack(exc: BaseException) -> str:
    """Format the traceback of ``exc``, or the current stack if it was never raised."""
    if exc.__traceback__ is not None:
        lines = traceback.format_tb(exc.__traceback__)
    else:
        frames = [f for f in traceback.extract_stack() if not is_logging_code(f.filename)]
        lines = traceback.format_list(frames)
    return "".join(lines).rstrip("\n")


def _field_value(original: Any, decoded: Any) -> FieldValue:
    if isinstance(original, BaseException):
        return ErrorLike(message=str(decoded), stack=_error_stack(original))
    return Ordinary(decoded)


class JSONFormatter:
    """Encode log calls as single-line JSON objects.

    Attributes:
        name: Logger name written when a call does not provide one
    """

    def __init__(
            self,
            name: str,
            *,
            timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
            utc: bool = DEFAULT_TIMESTAMP_UTC,
    ) -> None:
        self.name = name
        self._stamper = structlog.processors.TimeStamper(
            fmt=timestamp_format, utc=utc, key=TIME_KEY
        )
        self._renderer = structlog.processors.JSONRenderer(
            default=_json_default, ensure_ascii=False
        )

    def event_dict(
            self,
            level: int,
            message: str,
            args: Sequence[Any],
            name: str | None = None,
    ) -> dict[str, Any]:
        """Build the ordered field mapping for a log call before serialization.

        Keys that are not strings are stored under ``BADKEY_AT_INDEX_<i>``, empty
        keys are dropped, and a trailing unmatched key is stored under
        ``_IMBALANCE_AT_INDEX_<i>``.
        """
        event = self._stamper(None, "", {})
        event.update({
            PID_KEY: os.getpid(),
            NAME_KEY: name or self.name,
            LEVEL_KEY: level_abbreviation(level),
            MESSAGE_KEY: message,
        })

        for i in range(0, len(args) - 1, 2):
            key = args[i]
            if not isinstance(key, str):
                key = bad_key_at_index(i)
            elif not key:
                continue
            event[key] = args[i + 1]

        if len(args) % 2:
            event[imbalanced_key_at_index(len(args) - 1)] = args[-1]
        return event

    def _encode(self, event: dict[str, Any]) -> str:
        try:
            return self._renderer(None, "", event)
        except (TypeError, ValueError):
            # Tuple-keyed dicts and circular containers
            return self._renderer(None, "", {k: _encodable(v) for k, v in event.items()})

    def format(
            self,
            level: int,
            message: str,
            args: Sequence[Any] = (),
            name: str | None = None,
    ) -> str:
        """Encode a log call as one JSON object without a trailing newline."""
        return self._encode(self.event_dict(level, message, args, name))

    def log_entry(
            self,
            level: int,
            message: str,
            args: Sequence[Any] = (),
            name: str | None = None,
    ) -> LogEntry:
        """Encode a log call and decode it back into tagged field values.

        Exceptions become ``ErrorLike`` values carrying their stack; every other
        value is the ``Ordinary`` JSON-decoded value.
        """
        event = self.event_dict(level, message, args, name)
        decoded = json.loads(self._encode(event))
        return {key: _field_value(event[key], value) for key, value in decoded.items()}
