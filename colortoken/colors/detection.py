import logging
from typing import Any, Awaitable, Callable

from ..lsp.types import Color, ColorPresentation, ColorToken
from ..settings import LanguageClassifier, SettingsProvider
from .codec import decode_hex, decode_triplet, encode_hex, encode_triplet
from .patterns import find_hex_colors, find_triplets
from .references import ReferenceResolver

logger = logging.getLogger(__name__)

MAX_TOKENS_NOTIFICATION = "JSONCOLORTOKEN.maxNumberOfColorTokens"

Notifier = Callable[[str, Any], Awaitable[None]]


async def _discard(method: str, params: Any) -> None:
    pass


class DetectionEngine:
    """Finds the colors visible in a document.

    Reference-language documents are handed to the ReferenceResolver. In
    color-language documents hex literals are collected first, then, for
    C++ documents, ``{r,g,b}`` triplets, until the configured cap is hit.
    """

    def __init__(
        self,
        provider: SettingsProvider,
        classifier: LanguageClassifier,
        resolver: ReferenceResolver,
        notify: Notifier | None = None,
    ):
        self.provider = provider
        self.classifier = classifier
        self.resolver = resolver
        self.notify = notify or _discard

    async def detect(self, document) -> list[ColorToken]:
        # The cap is read fresh for every request.
        settings = await self.provider.get()
        max_tokens = settings.max_token_count

        if await self.classifier.is_css_language(document.language_id):
            return self.resolver.resolve_references(document)

        if not await self.classifier.is_color_language(document.language_id):
            return []

        text = document.text
        tokens: list[ColorToken] = []

        for m in find_hex_colors(text):
            if len(tokens) >= max_tokens:
                break
            tokens.append(ColorToken(
                range=document.range_of(m.start(), m.end()),
                color=decode_hex(m.group(0)),
            ))

        if self.classifier.is_cpp_language(document.language_id):
            for m in find_triplets(text):
                if len(tokens) >= max_tokens:
                    break
                tokens.append(ColorToken(
                    range=document.range_of(m.start(), m.end()),
                    color=decode_triplet(int(m.group("r")), int(m.group("g")), int(m.group("b"))),
                ))

        if len(tokens) == max_tokens:
            logger.warning(f"Reached {max_tokens} color tokens in {document.uri}, stopped scanning")
            await self.notify(MAX_TOKENS_NOTIFICATION, {"count": max_tokens})

        return tokens

    async def present(self, document, color: Color) -> list[ColorPresentation]:
        if not await self.classifier.is_color_language(document.language_id):
            return []

        if self.classifier.is_cpp_language(document.language_id):
            return [ColorPresentation(label=encode_triplet(color))]

        settings = await self.provider.get()
        return [ColorPresentation(label=encode_hex(color, settings.casing))]
