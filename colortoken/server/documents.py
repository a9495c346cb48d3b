import logging
from dataclasses import dataclass, field

from ..lsp.types import Position, Range, TextDocumentContentChangeEvent
from ..utils.text import line_starts, offset_to_position, position_to_offset

logger = logging.getLogger(__name__)


@dataclass
class TextDocument:
    """A full-text snapshot of an open document.

    Positions use UTF-16 code units for the character offset, like the host.
    """
    uri: str
    language_id: str
    version: int
    text: str
    _line_starts: list[int] | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def line_starts(self) -> list[int]:
        if self._line_starts is None:
            self._line_starts = line_starts(self.text)
        return self._line_starts

    @property
    def line_count(self) -> int:
        return len(self.line_starts)

    def position_at(self, offset: int) -> Position:
        line, character = offset_to_position(self.text, offset, self.line_starts)
        return Position(line=line, character=character)

    def offset_at(self, position: Position) -> int:
        return position_to_offset(self.text, position.line, position.character, self.line_starts)

    def range_of(self, start: int, end: int) -> Range:
        return Range(start=self.position_at(start), end=self.position_at(end))

    def line_text(self, line: int) -> str:
        starts = self.line_starts
        if not 0 <= line < len(starts):
            return ""
        end = starts[line + 1] if line + 1 < len(starts) else len(self.text)
        return self.text[starts[line]:end]

    def apply_changes(self, changes: list[TextDocumentContentChangeEvent], version: int) -> None:
        for change in changes:
            if change.range is None:
                self.text = change.text
            else:
                start = self.offset_at(change.range.start)
                end = self.offset_at(change.range.end)
                if end < start:
                    start, end = end, start
                self.text = self.text[:start] + change.text + self.text[end:]
            self._line_starts = None
        self.version = version


class DocumentStore:
    def __init__(self):
        self._documents: dict[str, TextDocument] = {}

    def __contains__(self, uri: str) -> bool:
        return uri in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def get(self, uri: str) -> TextDocument | None:
        return self._documents.get(uri)

    def open(self, uri: str, language_id: str, version: int, text: str) -> TextDocument:
        document = TextDocument(uri=uri, language_id=language_id, version=version, text=text)
        self._documents[uri] = document
        logger.debug(f"Opened {uri} ({language_id}, version {version})")
        return document

    def change(self, uri: str, version: int, changes: list[TextDocumentContentChangeEvent]) -> TextDocument | None:
        document = self._documents.get(uri)
        if document is None:
            logger.warning(f"Change for unknown document: {uri}")
            return None
        document.apply_changes(changes, version)
        return document

    def close(self, uri: str) -> TextDocument | None:
        document = self._documents.pop(uri, None)
        if document is not None:
            logger.debug(f"Closed {uri}")
        return document
