from typing import Any
from pydantic import BaseModel, Field, ConfigDict


class LSPModel(BaseModel):
    """Base model with camelCase aliases, accepted and emitted."""
    model_config = ConfigDict(populate_by_name=True)

    def to_lsp(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Position(LSPModel):
    line: int
    character: int


class Range(LSPModel):
    start: Position
    end: Position


class Location(LSPModel):
    uri: str
    range: Range


class TextDocumentIdentifier(LSPModel):
    uri: str


class VersionedTextDocumentIdentifier(TextDocumentIdentifier):
    version: int


class TextDocumentItem(LSPModel):
    uri: str
    language_id: str = Field(alias="languageId")
    version: int
    text: str


class TextDocumentContentChangeEvent(LSPModel):
    """Either a full replacement (no range) or a ranged edit."""
    text: str
    range: Range | None = None


class DidOpenTextDocumentParams(LSPModel):
    text_document: TextDocumentItem = Field(alias="textDocument")


class DidChangeTextDocumentParams(LSPModel):
    text_document: VersionedTextDocumentIdentifier = Field(alias="textDocument")
    content_changes: list[TextDocumentContentChangeEvent] = Field(alias="contentChanges")


class DidCloseTextDocumentParams(LSPModel):
    text_document: TextDocumentIdentifier = Field(alias="textDocument")


class Color(LSPModel):
    """A color with every channel in the range [0, 1]."""
    red: float = Field(ge=0.0, le=1.0)
    green: float = Field(ge=0.0, le=1.0)
    blue: float = Field(ge=0.0, le=1.0)
    alpha: float = Field(default=1.0, ge=0.0, le=1.0)


class ColorToken(LSPModel):
    """An occurrence of a color in a document. Serializes as ColorInformation."""
    range: Range
    color: Color


class ColorPresentation(LSPModel):
    label: str


class DocumentColorParams(LSPModel):
    text_document: TextDocumentIdentifier = Field(alias="textDocument")


class ColorPresentationParams(LSPModel):
    text_document: TextDocumentIdentifier = Field(alias="textDocument")
    color: Color
    range: Range


class DefinitionParams(LSPModel):
    text_document: TextDocumentIdentifier = Field(alias="textDocument")
    position: Position
