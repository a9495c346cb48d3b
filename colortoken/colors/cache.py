import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..lsp.types import Position, Range
from .patterns import find_keys, is_color_token, key_name

logger = logging.getLogger(__name__)


class ParseFailurePolicy(str, Enum):
    """What happens to a document's entry when its new text does not parse."""
    KEEP_STALE = "keep-stale"
    CLEAR = "clear"
    MARK_INVALID = "mark-invalid"


class CacheableDocument(Protocol):
    uri: str
    text: str

    def position_at(self, offset: int) -> Position: ...


@dataclass(frozen=True)
class CachedVariable:
    color: str
    range: Range


def _top_level_string_starts(text: str) -> set[int]:
    """Offsets of the opening quotes of strings directly inside the root object."""
    starts = set()
    depth = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
            if depth == 1:
                starts.add(i)
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
    return starts


class TokenCache:
    """Color variables defined by each JSON document, keyed by document URI.

    Entries are only ever replaced wholesale. Lookups walk documents in
    ascending URI order so a name defined in several documents always
    resolves the same way.
    """

    def __init__(self, on_parse_failure: ParseFailurePolicy = ParseFailurePolicy.KEEP_STALE):
        self.on_parse_failure = ParseFailurePolicy(on_parse_failure)
        self._entries: dict[str, dict[str, CachedVariable]] = {}
        self._invalid: set[str] = set()

    def __contains__(self, uri: str) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def uris(self) -> list[str]:
        return sorted(self._entries)

    def get(self, uri: str) -> dict[str, CachedVariable]:
        return dict(self._entries.get(uri, {}))

    def is_valid(self, uri: str) -> bool:
        return uri in self._entries and uri not in self._invalid

    def update(self, document: CacheableDocument) -> bool:
        """Rebuild the entry for document. Returns False if the text did not parse."""
        text = document.text
        try:
            parsed = json.loads(text)
        except (json.JSONDecodeError, RecursionError) as e:
            self._handle_parse_failure(document.uri, e)
            return False

        variables: dict[str, CachedVariable] = {}
        if isinstance(parsed, dict):
            top_level = _top_level_string_starts(text)
            for m in find_keys(text):
                if m.start() - 1 not in top_level:
                    continue
                name = key_name(m)
                value = parsed.get(name)
                if not is_color_token(value):
                    continue
                variables[name] = CachedVariable(
                    color=value,
                    range=Range(
                        start=document.position_at(m.start()),
                        end=document.position_at(m.start() + len(name)),
                    ),
                )

        self._entries[document.uri] = variables
        self._invalid.discard(document.uri)
        logger.debug(f"Cached {len(variables)} color variables for {document.uri}")
        return True

    def _handle_parse_failure(self, uri: str, error: Exception) -> None:
        logger.debug(f"Could not parse {uri} ({error}), applying {self.on_parse_failure.value}")
        if self.on_parse_failure is ParseFailurePolicy.CLEAR:
            self.remove(uri)
        elif self.on_parse_failure is ParseFailurePolicy.MARK_INVALID:
            if uri in self._entries:
                self._invalid.add(uri)

    def remove(self, uri: str) -> None:
        self._entries.pop(uri, None)
        self._invalid.discard(uri)

    def lookup(self, name: str) -> tuple[str, CachedVariable] | None:
        matches = self.lookup_all(name)
        return matches[0] if matches else None

    def lookup_all(self, name: str) -> list[tuple[str, CachedVariable]]:
        results = []
        for uri in self.uris():
            if uri in self._invalid:
                continue
            variable = self._entries[uri].get(name)
            if variable is not None:
                results.append((uri, variable))
        return results
