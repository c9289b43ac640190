import json

import pytest

from transactions.i18n import LocaleResolver, load_catalog_file, normalize_locale


class TestResolve:
    """Locale tag to catalog resolution."""

    def test_exact_match(self, resolver):
        catalog = resolver.resolve("ja-JP")
        assert catalog.locale == "ja-JP"
        assert catalog("order.cart.merchant.name") == "本屋"

    def test_case_and_separator_insensitive(self, resolver):
        assert resolver.resolve("ja_jp").locale == "ja-JP"
        assert resolver.resolve("EN-us").locale == "en-US"

    def test_language_only_matches_region_catalog(self, resolver):
        assert resolver.resolve("ja").locale == "ja-JP"

    def test_same_language_other_region(self, resolver):
        assert resolver.resolve("en-GB").locale == "en-US"

    @pytest.mark.parametrize("tag", ["fr-FR", "", None, "zz"])
    def test_unsupported_falls_back_to_default(self, resolver, tag):
        assert resolver.resolve(tag).locale == "en-US"

    def test_supported_locales(self, resolver):
        assert resolver.supported_locales == ["en-US", "ja-JP"]


class TestLookup:
    """Key lookups and misses."""

    def test_miss_uses_default_catalog(self):
        resolver = LocaleResolver({"en-US": {"a": "A", "b": "B"}, "ja-JP": {"a": "あ"}}, "en-US")
        ja = resolver.resolve("ja-JP")
        assert ja("a") == "あ"
        assert ja("b") == "B"

    def test_miss_everywhere_returns_key(self, resolver):
        assert resolver.resolve("ja-JP")("no.such.key") == "no.such.key"
        assert resolver.resolve("en-US")("no.such.key") == "no.such.key"

    def test_catalog_is_read_only(self, en):
        with pytest.raises(TypeError):
            en.strings["delivery_address"] = "changed"

    def test_shipped_catalogs_share_keys(self, settings):
        en_keys = set(load_catalog_file(settings.locales_dir / "en-US.json"))
        ja_keys = set(load_catalog_file(settings.locales_dir / "ja-JP.json"))
        assert en_keys == ja_keys


class TestLoading:
    def test_default_locale_must_exist(self):
        with pytest.raises(ValueError):
            LocaleResolver({"ja-JP": {"a": "あ"}}, "en-US")

    def test_bom_is_stripped(self, tmp_path):
        path = tmp_path / "en-US.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps({"greeting": "hi"}).encode("utf-8"))
        assert load_catalog_file(path) == {"greeting": "hi"}

    def test_non_object_payload_rejected(self, tmp_path):
        path = tmp_path / "en-US.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            load_catalog_file(path)

    def test_invalid_json_rejected(self, tmp_path):
        path = tmp_path / "en-US.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            load_catalog_file(path)

    def test_from_directory(self, tmp_path):
        (tmp_path / "en-US.json").write_text('{"k": "v"}', encoding="utf-8")
        (tmp_path / "de-DE.json").write_text('{"k": "w"}', encoding="utf-8")
        resolver = LocaleResolver.from_directory(tmp_path, "en-US")
        assert resolver.resolve("de")("k") == "w"


def test_normalize_locale():
    assert normalize_locale(" ja_JP ") == "ja-jp"
    assert normalize_locale(None) == ""
