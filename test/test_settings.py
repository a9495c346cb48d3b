import pytest
from pydantic import ValidationError

from colortoken.colors.codec import Casing
from colortoken.settings import DEFAULT_SETTINGS, LanguageClassifier, Settings, SettingsProvider


class TestSettings:
    def test_defaults(self):
        assert DEFAULT_SETTINGS.max_token_count == 1000
        assert DEFAULT_SETTINGS.casing is Casing.UPPER
        assert DEFAULT_SETTINGS.languages == ["json", "jsonc", "cpp", "c++"]
        assert DEFAULT_SETTINGS.css_languages == ["css", "less"]

    def test_from_client_wire_names(self):
        settings = Settings.from_client({
            "maxNumberOfColorTokens": 10,
            "colorTokenCasing": "Lowercase",
            "languages": ["json"],
            "cssLanguages": ["scss"],
        })
        assert settings.max_token_count == 10
        assert settings.casing is Casing.LOWER
        assert settings.languages == ["json"]
        assert settings.css_languages == ["scss"]

    def test_from_client_partial(self):
        settings = Settings.from_client({"maxNumberOfColorTokens": 5, "languages": None})
        assert settings.max_token_count == 5
        assert settings.languages == DEFAULT_SETTINGS.languages

    def test_from_client_configuration_response(self):
        assert Settings.from_client([{"colorTokenCasing": "Lowercase"}]).casing is Casing.LOWER
        assert Settings.from_client([None]) == DEFAULT_SETTINGS
        assert Settings.from_client(None) == DEFAULT_SETTINGS

    def test_from_client_custom_defaults(self):
        defaults = Settings(max_token_count=7)
        assert Settings.from_client({}, defaults).max_token_count == 7

    def test_cap_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings.from_client({"maxNumberOfColorTokens": 0})

    def test_unknown_casing(self):
        with pytest.raises(ValidationError):
            Settings.from_client({"colorTokenCasing": "Title"})


class CountingFetch:
    def __init__(self, payload):
        self.payload = payload
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.payload


class TestSettingsProvider:
    @pytest.mark.asyncio
    async def test_defaults_without_fetch(self):
        provider = SettingsProvider()
        assert await provider.get() is DEFAULT_SETTINGS

    @pytest.mark.asyncio
    async def test_fetches_every_call(self):
        fetch = CountingFetch([{"maxNumberOfColorTokens": 3}])
        provider = SettingsProvider(fetch)
        assert (await provider.get()).max_token_count == 3
        await provider.get()
        assert fetch.calls == 2


class TestLanguageClassifier:
    @pytest.mark.asyncio
    async def test_classification(self):
        classifier = LanguageClassifier(SettingsProvider())
        assert await classifier.is_color_language("json")
        assert await classifier.is_color_language("cpp")
        assert not await classifier.is_color_language("css")
        assert await classifier.is_css_language("less")
        assert not await classifier.is_css_language("json")
        assert not await classifier.is_color_language("python")

    @pytest.mark.asyncio
    async def test_reference_wins_on_overlap(self):
        fetch = CountingFetch({"languages": ["json", "css"], "cssLanguages": ["css"]})
        classifier = LanguageClassifier(SettingsProvider(fetch))
        assert not await classifier.is_color_language("css")
        assert await classifier.is_css_language("css")

    @pytest.mark.asyncio
    async def test_memoized_until_invalidated(self):
        fetch = CountingFetch({"languages": ["json"]})
        classifier = LanguageClassifier(SettingsProvider(fetch))

        await classifier.is_color_language("json")
        await classifier.is_css_language("css")
        assert fetch.calls == 1

        fetch.payload = {"languages": ["yaml"]}
        assert await classifier.is_color_language("json")

        classifier.invalidate()
        assert not await classifier.is_color_language("json")
        assert await classifier.is_color_language("yaml")
        assert fetch.calls == 2

    def test_cpp_family(self):
        assert LanguageClassifier.is_cpp_language("cpp")
        assert LanguageClassifier.is_cpp_language("c++")
        assert not LanguageClassifier.is_cpp_language("c")
