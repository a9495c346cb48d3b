"""Conversion between Color values and their textual forms.

Hex literals (``#rgb``, ``#rgba``, ``#rrggbb``, ``#rrggbbaa``) and C++ style
integer triplets (``{r,g,b}``) are supported. Opaque colors never carry an
alpha byte when encoded.
"""

import math
from enum import Enum

from ..lsp.types import Color
from .patterns import HEX_PATTERN


class Casing(str, Enum):
    UPPER = "Uppercase"
    LOWER = "Lowercase"


def expand_short_hex(text: str) -> str:
    """Duplicate every digit of a short hex literal.

    >>> expand_short_hex("#f00a")
    '#ff0000aa'
    """
    return "#" + "".join(digit * 2 for digit in text.lstrip("#"))


def _to_byte(value: float) -> int:
    # Rounding before the floor keeps k/255 * 255 from landing on k - 1.
    return max(0, min(255, math.floor(round(value * 255, 6))))


def decode_hex(text: str) -> Color:
    if HEX_PATTERN.fullmatch(text) is None:
        raise ValueError(f"Not a hex color: {text!r}")

    if len(text) <= 5:
        text = expand_short_hex(text)

    red = int(text[1:3], 16) / 255
    green = int(text[3:5], 16) / 255
    blue = int(text[5:7], 16) / 255

    alpha = 1.0
    if len(text) == 9:
        alpha = int(text[7:9], 16) / 255

    return Color(red=red, green=green, blue=blue, alpha=alpha)


def encode_hex(color: Color, casing: Casing | str = Casing.UPPER) -> str:
    result = "#" + "".join(f"{_to_byte(value):02x}" for value in (color.red, color.green, color.blue))

    if color.alpha < 1.0:
        result += f"{_to_byte(color.alpha):02x}"

    if Casing(casing) is Casing.LOWER:
        return result.lower()
    return result.upper()


def decode_triplet(red: int, green: int, blue: int) -> Color:
    for value in (red, green, blue):
        if not 0 <= value <= 255:
            raise ValueError(f"Channel value out of range: {value}")
    return Color(red=red / 255, green=green / 255, blue=blue / 255, alpha=1.0)


def encode_triplet(color: Color) -> str:
    return "{" + ",".join(str(_to_byte(value)) for value in (color.red, color.green, color.blue)) + "}"
