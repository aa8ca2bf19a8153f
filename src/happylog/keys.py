"""Reserved field keys and sentinel key builders.

The canonical encoder writes its own bookkeeping fields under short keys.
Callers may never reuse them as custom field names.
"""

from typing import Final

TIME_KEY: Final = "_t"
LEVEL_KEY: Final = "_l"
NAME_KEY: Final = "_n"
MESSAGE_KEY: Final = "_m"
PID_KEY: Final = "_p"
CALLSTACK_KEY: Final = "_c"

RESERVED_KEYS: Final = frozenset(
    {TIME_KEY, LEVEL_KEY, NAME_KEY, MESSAGE_KEY, PID_KEY, CALLSTACK_KEY}
)


def is_reserved_key(key: object) -> bool:
    """Check whether ``key`` collides with a reserved key.

    Raises:
        TypeError: If the key is not a string
    """
    if not isinstance(key, str):
        msg = f"Key is not a string: {key!r}"
        raise TypeError(msg)
    return key in RESERVED_KEYS


def bad_key_at_index(index: int) -> str:
    return f"BADKEY_AT_INDEX_{index}"


def imbalanced_key_at_index(index: int) -> str:
    return f"_IMBALANCE_AT_INDEX_{index}"
