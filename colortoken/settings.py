"""Client settings and language classification.

The host may answer `workspace/configuration` requests for the
``jsonColorToken`` section. When it cannot, the defaults (optionally
overridden from the local config file) are used instead.
"""

import logging
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field

from .colors.codec import Casing

logger = logging.getLogger(__name__)

CONFIGURATION_SECTION = "jsonColorToken"

CPP_LANGUAGES = frozenset({"cpp", "c++"})


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_token_count: int = Field(default=1000, gt=0, alias="maxNumberOfColorTokens")
    casing: Casing = Field(default=Casing.UPPER, alias="colorTokenCasing")
    languages: list[str] = Field(default_factory=lambda: ["json", "jsonc", "cpp", "c++"])
    css_languages: list[str] = Field(default_factory=lambda: ["css", "less"], alias="cssLanguages")

    @classmethod
    def from_client(cls, raw: Any, defaults: "Settings | None" = None) -> "Settings":
        """Overlay a (possibly partial or null) client payload on the defaults."""
        base = (defaults or DEFAULT_SETTINGS).model_dump(by_alias=True)
        if isinstance(raw, list):
            raw = raw[0] if raw else None
        if isinstance(raw, dict):
            base.update({key: value for key, value in raw.items() if value is not None})
        return cls.model_validate(base)


DEFAULT_SETTINGS = Settings()

SettingsFetcher = Callable[[], Awaitable[Any]]


class SettingsProvider:
    """Fetches settings from the host on every call, or returns the defaults.

    Fetch errors are not caught.
    """

    def __init__(self, fetch: SettingsFetcher | None = None, defaults: Settings = DEFAULT_SETTINGS):
        self.fetch = fetch
        self.defaults = defaults

    async def get(self) -> Settings:
        if self.fetch is None:
            return self.defaults
        raw = await self.fetch()
        return Settings.from_client(raw, self.defaults)


class LanguageClassifier:
    """Memoizes the language lists from the first settings fetch.

    Later configuration changes are not seen until invalidate() is called.
    """

    def __init__(self, provider: SettingsProvider):
        self.provider = provider
        self._languages: frozenset[str] | None = None
        self._css_languages: frozenset[str] | None = None

    async def _load(self) -> None:
        if self._languages is not None and self._css_languages is not None:
            return
        settings = await self.provider.get()
        self._languages = frozenset(settings.languages)
        self._css_languages = frozenset(settings.css_languages)
        logger.info(
            f"Color languages: {sorted(self._languages)}, "
            f"reference languages: {sorted(self._css_languages)}"
        )

    def invalidate(self) -> None:
        self._languages = None
        self._css_languages = None

    async def is_color_language(self, language_id: str) -> bool:
        await self._load()
        # A language listed as both is treated as a reference language.
        return language_id not in self._css_languages and language_id in self._languages

    async def is_css_language(self, language_id: str) -> bool:
        await self._load()
        return language_id in self._css_languages

    @staticmethod
    def is_cpp_language(language_id: str) -> bool:
        return language_id in CPP_LANGUAGES
