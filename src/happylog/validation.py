"""Validation of the flat key/value argument list of a log call.

Keys are checked before anything is encoded:

- a key that is not a string is reported and skipped
- a reserved key is a fatal usage error
- a key that would need escaping in JSON aborts the record, because the
  canonical encoding writes keys verbatim
"""

import json
from collections.abc import Sequence
from typing import Any, Final

import structlog

from .errors import ComplexKeyError, ReservedKeyError
from .keys import RESERVED_KEYS, imbalanced_key_at_index, is_reserved_key

INTERNAL_LOGGER_NAME: Final = "happylog"


def validate_keys(args: Sequence[Any]) -> list[int]:
    """Check every key of a flat ``key, value, ...`` argument list.

    Args:
        args: Alternating keys and values; a trailing unmatched key is checked too

    Returns:
        Indexes of keys that are not strings

    Raises:
        ReservedKeyError: If a key collides with a reserved key
        ComplexKeyError:  If a key is not a trivially quoted JSON string
    """
    # Fetched per call so the logger follows the current structlog configuration
    log = structlog.get_logger(INTERNAL_LOGGER_NAME)
    skipped = []

    for i in range(0, len(args), 2):
        key = args[i]
        try:
            reserved = is_reserved_key(key)
        except TypeError:
            log.error("Key is not a string.", index=f"args[{i}]", key=repr(key))
            skipped.append(i)
            continue

        if reserved:
            log.critical(
                "Key conflicts with reserved key. Avoid using reserved keys.", key=key
            )
            raise ReservedKeyError(key)

        if json.dumps(key, ensure_ascii=False) != f'"{key}"':
            raise ComplexKeyError(key)

    return skipped


def ordered_keys(args: Sequence[Any]) -> list[str]:
    """Return the field keys of ``args`` in the order the caller wrote them.

    Keys that are not strings, empty keys, repeated keys and reserved keys are
    left out. An odd-length list ends with the imbalance sentinel key.
    """
    order: list[str] = []
    seen: set[str] = set()

    for i in range(0, len(args) - 1, 2):
        key = args[i]
        if not isinstance(key, str) or not key or key in seen or key in RESERVED_KEYS:
            continue
        seen.add(key)
        order.append(key)

    if len(args) % 2:
        order.append(imbalanced_key_at_index(len(args) - 1))
    return order
