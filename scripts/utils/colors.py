"""
Color helpers for entry types.

Notebookinator themes describe entry-type colors as Typst `rgb("#RRGGBB")`
literals. This module decodes those literals and renders entry-type names
with a matching 24-bit terminal color.
"""
from typing import NamedTuple

from rich.color import Color
from rich.text import Text

from utils.errors import BadColorLiteral

RGB_PREFIX = 'rgb("#'
RGB_SUFFIX = '")'


class RGB(NamedTuple):
    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        return f"{self.r:02X}{self.g:02X}{self.b:02X}"


def decode_hex(s: str) -> bytes:
    """Decode an even-length string of hex digit pairs."""
    if len(s) % 2 != 0:
        raise BadColorLiteral(f"odd number of hex digits: {s!r}")
    try:
        return bytes(int(s[i:i + 2], 16) for i in range(0, len(s), 2))
    except ValueError as e:
        raise BadColorLiteral(f"invalid hex digits: {s!r}") from e


def decode_rgb(literal: str) -> RGB:
    """Parse `rgb("#RRGGBB")` into an RGB triple."""
    if not (literal.startswith(RGB_PREFIX) and literal.endswith(RGB_SUFFIX)):
        raise BadColorLiteral(f"expected rgb(\"#RRGGBB\"), got {literal!r}")
    hex_digits = literal[len(RGB_PREFIX):len(literal) - len(RGB_SUFFIX)]
    # int(..., 16) tolerates signs, underscores and whitespace
    if not all(c in "0123456789abcdefABCDEF" for c in hex_digits):
        raise BadColorLiteral(f"invalid hex digits in {literal!r}")
    octets = decode_hex(hex_digits)
    if len(octets) != 3:
        raise BadColorLiteral(f"rgb color string was not of length 3: {literal!r}")
    return RGB(*octets)


def ansi_foreground(text: str, color: RGB) -> str:
    """Prefix `text` with a 24-bit SGR foreground escape for `color`."""
    codes = ";".join(Color.from_rgb(*color).get_ansi_codes(foreground=True))
    return f"\x1b[{codes}m{text}"


def strip_ansi(text: str) -> str:
    """Remove every ANSI escape sequence from `text`."""
    return Text.from_ansi(text).plain
