import logging

from ..lsp.types import ColorToken, Location, Position
from .cache import TokenCache
from .codec import decode_hex
from .patterns import REFERENCE_PATTERN, find_references

logger = logging.getLogger(__name__)


class ReferenceResolver:
    """Resolves `var(--name)` references against colors cached from JSON documents."""

    def __init__(self, cache: TokenCache):
        self.cache = cache

    def resolve_references(self, document) -> list[ColorToken]:
        tokens = []
        for m in find_references(document.text):
            found = self.cache.lookup(m.group("name"))
            if found is None:
                continue
            _, variable = found
            tokens.append(ColorToken(
                range=document.range_of(m.start(), m.end()),
                color=decode_hex(variable.color),
            ))
        return tokens

    def resolve_definition(self, document, position: Position) -> list[Location]:
        m = REFERENCE_PATTERN.search(document.line_text(position.line))
        if m is None:
            return []

        name = m.group("name")
        locations = [
            Location(uri=uri, range=variable.range)
            for uri, variable in self.cache.lookup_all(name)
        ]
        logger.debug(f"--{name} is defined in {len(locations)} document(s)")
        return locations
