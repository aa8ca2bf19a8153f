"""Color theme parsing for the terminal formatter.

A theme is configured with a compact string such as::

    key=cyan+h,value,misc=blue+h,source=yellow,WRN=yellow+h,ERR=red+h

Each token is ``name=style`` or a bare ``name``. The special name ``*`` sets a
wildcard style used by every slot that has no style of its own. Styles follow
the ``fg+attrs:bg+attrs`` form and are resolved to ANSI sequences with
colorama. Anything that cannot be resolved degrades to no styling.
"""

from dataclasses import dataclass
from typing import Final

from colorama import Back, Fore, Style
from colorama.ansi import AnsiCodes, code_to_chars

DEFAULT_THEME: Final = (
    "key=cyan+h,value,misc=blue+h,source=yellow,DBG,WRN=yellow+h,INF=green+h,ERR=red+h"
)

WILDCARD: Final = "*"
RESET: Final = Style.RESET_ALL

_COLOR_NAMES: Final = frozenset(
    {"black", "red", "green", "yellow", "blue", "magenta", "cyan", "white"}
)

_ATTRIBUTES: Final[dict[str, str]] = {
    "b": Style.BRIGHT,
    "d": Style.DIM,
    "u": code_to_chars(4),
    "B": code_to_chars(5),
    "i": code_to_chars(7),
}

# Theme slot -> name used in the theme string
_SLOT_NAMES: Final[dict[str, str]] = {
    "key": "key",
    "value": "value",
    "misc": "misc",
    "source": "source",
    "debug": "DBG",
    "info": "INF",
    "warn": "WRN",
    "error": "ERR",
}


@dataclass(frozen=True, slots=True)
class ColorTheme:
    """ANSI sequences for every colored part of a rendered record.

    Attributes:
        key:    Field labels
        value:  Field values
        misc:   Timestamp and logger name
        source: Source lines around a call site
        debug:  Debug and trace records
        info:   Info records
        warn:   Warning records
        error:  Error and fatal records, and error-valued fields
        reset:  Sequence closing a colored span
    """

    key: str = ""
    value: str = ""
    misc: str = ""
    source: str = ""
    debug: str = ""
    info: str = ""
    warn: str = ""
    error: str = ""
    reset: str = RESET

    @classmethod
    def plain(cls) -> "ColorTheme":
        """Create a theme that emits no escape sequences at all."""
        return cls(reset="")


def parse_kv_list(s: str, separator: str = ",") -> dict[str, str]:
    """Parse ``name=value`` tokens into a mapping.

    Bare names map to an empty string. Empty tokens and tokens with more than
    one ``=`` are ignored.
    """
    pairs: dict[str, str] = {}
    for token in s.split(separator):
        token = token.strip()
        if not token:
            continue
        parts = token.split("=")
        if len(parts) == 1:
            pairs[parts[0]] = ""
        elif len(parts) == 2:
            pairs[parts[0]] = parts[1]
    return pairs


def _color_part(part: str, palette: AnsiCodes, extended: str, *, foreground: bool) -> str:
    name, _, attrs = part.partition("+")
    codes = []

    if name.isdigit() and int(name) <= 255:
        codes.append(code_to_chars(f"{extended};5;{name}"))
    elif name == "default":
        codes.append(palette.RESET)
    elif name in _COLOR_NAMES:
        attr = f"LIGHT{name.upper()}_EX" if "h" in attrs else name.upper()
        codes.append(getattr(palette, attr))

    if foreground:
        codes.extend(_ATTRIBUTES[a] for a in attrs if a in _ATTRIBUTES)
    return "".join(codes)


def color_code(style: str) -> str:
    """Resolve a ``fg+attrs:bg+attrs`` style to an ANSI escape sequence.

    Returns an empty string when nothing in the style can be resolved.
    """
    if not style:
        return ""
    if style == "reset":
        return RESET

    fg, _, bg = style.partition(":")
    return _color_part(fg, Fore, "38", foreground=True) + _color_part(
        bg, Back, "48", foreground=False
    )


def parse_theme(spec: str, *, colors: bool = True) -> ColorTheme:
    """Parse a theme string into a ``ColorTheme``.

    Args:
        spec:   Comma separated ``name=style`` tokens, ``*`` being the wildcard
        colors: When False, a theme without any escape sequence is returned

    Returns:
        Parsed theme; specific slot styles always win over the wildcard
    """
    if not colors:
        return ColorTheme.plain()

    styles = parse_kv_list(spec)
    wildcard = color_code(styles.get(WILDCARD, ""))
    if wildcard == RESET:
        wildcard = ""

    slots = {
        slot: color_code(styles.get(name, "")) or wildcard
        for slot, name in _SLOT_NAMES.items()
    }
    return ColorTheme(**slots)
