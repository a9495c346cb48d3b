from colortoken.colors.cache import TokenCache
from colortoken.colors.codec import decode_hex
from colortoken.colors.references import ReferenceResolver
from colortoken.lsp.types import Location, Position, Range
from colortoken.server.documents import TextDocument


def make_resolver(*documents: TextDocument) -> ReferenceResolver:
    cache = TokenCache()
    for document in documents:
        cache.update(document)
    return ReferenceResolver(cache)


class TestResolveReferences:
    def test_resolves_at_reference_range(self, json_document, css_document):
        resolver = make_resolver(json_document)
        tokens = resolver.resolve_references(css_document)

        assert len(tokens) == 2
        assert tokens[0].color == decode_hex("#336699")
        assert tokens[0].range == Range(start=Position(line=1, character=9), end=Position(line=1, character=23))
        assert tokens[1].color == decode_hex("#ff0000")
        assert tokens[1].range == Range(start=Position(line=3, character=16), end=Position(line=3, character=29))

    def test_unknown_names_are_skipped(self, css_document):
        resolver = make_resolver()
        assert resolver.resolve_references(css_document) == []

    def test_follows_cache_changes(self, json_document, css_document):
        resolver = make_resolver(json_document)
        resolver.cache.remove(json_document.uri)
        assert resolver.resolve_references(css_document) == []


class TestResolveDefinition:
    def test_definition_range(self, json_document, css_document):
        resolver = make_resolver(json_document)
        locations = resolver.resolve_definition(css_document, Position(line=1, character=0))

        assert locations == [
            Location(
                uri=json_document.uri,
                range=Range(start=Position(line=1, character=3), end=Position(line=1, character=10)),
            )
        ]

    def test_no_reference_on_line(self, json_document, css_document):
        resolver = make_resolver(json_document)
        assert resolver.resolve_definition(css_document, Position(line=0, character=0)) == []

    def test_unknown_reference(self, json_document, css_document):
        resolver = make_resolver(json_document)
        assert resolver.resolve_definition(css_document, Position(line=2, character=20)) == []

    def test_line_out_of_range(self, json_document, css_document):
        resolver = make_resolver(json_document)
        assert resolver.resolve_definition(css_document, Position(line=99, character=0)) == []

    def test_every_defining_document(self):
        first = TextDocument(uri="file:///b.json", language_id="json", version=1, text='{"brand": "#000"}')
        second = TextDocument(uri="file:///a.json", language_id="json", version=1, text='{\n  "brand": "#fff"\n}')
        css = TextDocument(uri="file:///x.css", language_id="css", version=1, text="a { color: var(--brand); }")
        resolver = make_resolver(first, second)

        locations = resolver.resolve_definition(css, Position(line=0, character=5))
        assert [location.uri for location in locations] == ["file:///a.json", "file:///b.json"]
        assert locations[0].range.start == Position(line=1, character=3)
        assert locations[1].range.start == Position(line=0, character=2)

    def test_first_reference_on_line_wins(self):
        defs = TextDocument(uri="file:///a.json", language_id="json", version=1, text='{"one": "#111", "two": "#222"}')
        css = TextDocument(uri="file:///x.css", language_id="css", version=1,
                           text="a { border: var(--two) var(--one); }")
        resolver = make_resolver(defs)

        locations = resolver.resolve_definition(css, Position(line=0, character=30))
        assert len(locations) == 1
        assert locations[0].range.start == Position(line=0, character=17)
