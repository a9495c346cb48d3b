"""Regular expressions for the color token shapes found in documents.

Every finder is a generator over ``re.Match`` objects in document order.
Calling a finder again restarts the scan from the beginning of the text.
"""

import re
from typing import Any, Iterator

# Full forms (6 or 8 digits) are tried before short forms (3 or 4 digits).
HEX_PATTERN = re.compile(r"#(?:[0-9a-fA-F]{6}(?:[0-9a-fA-F]{2})?|[0-9a-fA-F]{3}[0-9a-fA-F]?)")

_BYTE = r"0*(?:25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9]?[0-9])"

TRIPLET_PATTERN = re.compile(
    rf"\{{\s*(?P<r>{_BYTE})\s*,\s*(?P<g>{_BYTE})\s*,\s*(?P<b>{_BYTE})\s*\}}"
)

REFERENCE_PATTERN = re.compile(r"var\(--(?P<name>[a-zA-Z0-9\-]+)\)")

KEY_PATTERN = re.compile(
    r"""(?<=")(?P<double>[a-zA-Z0-9_\-]+)(?="\s*:)|(?<=')(?P<single>[a-zA-Z0-9_\-]+)(?='\s*:)"""
)


def find_hex_colors(text: str) -> Iterator[re.Match]:
    return HEX_PATTERN.finditer(text)


def find_triplets(text: str) -> Iterator[re.Match]:
    return TRIPLET_PATTERN.finditer(text)


def find_references(text: str) -> Iterator[re.Match]:
    return REFERENCE_PATTERN.finditer(text)


def find_keys(text: str) -> Iterator[re.Match]:
    return KEY_PATTERN.finditer(text)


def key_name(match: re.Match) -> str:
    return match.group("double") or match.group("single")


def is_color_token(value: Any) -> bool:
    return isinstance(value, str) and HEX_PATTERN.fullmatch(value) is not None
