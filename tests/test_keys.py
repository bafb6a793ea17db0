"""Tests for the asset key mapper."""

import pytest

from shopsync.exceptions import InvalidPathError
from shopsync.keys import AssetKeyMapper, decode_key, encode_key


class TestMakeAssetKey:
    """Tests for deriving asset keys from local paths."""

    def test_key_is_relative_to_base(self, theme_dir):
        mapper = AssetKeyMapper(theme_dir)
        assert mapper.make_asset_key(theme_dir / "assets" / "site.css") == (
            "assets/site.css"
        )

    def test_nested_template_directory(self, theme_dir):
        mapper = AssetKeyMapper(theme_dir)
        path = theme_dir / "templates" / "customers" / "login.liquid"
        assert mapper.make_asset_key(path) == "templates/customers/login.liquid"

    def test_key_is_uri_encoded(self, theme_dir):
        mapper = AssetKeyMapper(theme_dir)
        path = theme_dir / "assets" / "my logo#1.png"
        assert mapper.make_asset_key(path) == "assets/my%20logo%231.png"

    def test_key_is_deterministic(self, theme_dir):
        mapper = AssetKeyMapper(theme_dir)
        path = theme_dir / "snippets" / "a b.liquid"
        assert mapper.make_asset_key(path) == mapper.make_asset_key(path)

    def test_relative_path_resolved_against_cwd(self, theme_dir, monkeypatch):
        monkeypatch.chdir(theme_dir.parent)
        mapper = AssetKeyMapper(theme_dir)
        assert mapper.make_asset_key("shop/layout/theme.liquid") == (
            "layout/theme.liquid"
        )

    def test_dot_segments_are_normalised(self, theme_dir):
        mapper = AssetKeyMapper(theme_dir)
        path = theme_dir / "assets" / ".." / "config" / "settings.html"
        assert mapper.make_asset_key(path) == "config/settings.html"

    def test_invalid_path_raises(self, theme_dir):
        mapper = AssetKeyMapper(theme_dir)
        with pytest.raises(InvalidPathError):
            mapper.make_asset_key(theme_dir / "random" / "z.txt")


class TestIsValidPath:
    """Tests for the containment and whitelist checks."""

    @pytest.mark.parametrize(
        "relative",
        [
            "assets/x.js",
            "config/settings_data.json",
            "layout/theme.liquid",
            "snippets/header.liquid",
            "templates/index.liquid",
            "templates/customers/account.liquid",
            "locales/en.default.json",
        ],
    )
    def test_whitelisted_directories(self, theme_dir, relative):
        assert AssetKeyMapper(theme_dir).is_valid_path(theme_dir / relative)

    def test_whitelist_is_case_insensitive(self, theme_dir):
        assert AssetKeyMapper(theme_dir).is_valid_path(theme_dir / "Assets" / "x.js")

    def test_outside_whitelist(self, theme_dir):
        assert not AssetKeyMapper(theme_dir).is_valid_path(
            theme_dir / "random" / "z.txt"
        )

    def test_file_at_theme_root(self, theme_dir):
        assert not AssetKeyMapper(theme_dir).is_valid_path(theme_dir / "README.md")

    def test_whitelisted_directory_itself(self, theme_dir):
        assert not AssetKeyMapper(theme_dir).is_valid_path(theme_dir / "assets")

    def test_base_directory_itself(self, theme_dir):
        assert not AssetKeyMapper(theme_dir).is_valid_path(theme_dir)

    def test_escaping_with_dot_dot(self, theme_dir):
        path = theme_dir / ".." / "assets" / "x.js"
        assert not AssetKeyMapper(theme_dir).is_valid_path(path)

    def test_sibling_directory_with_common_prefix(self, theme_dir):
        sibling = theme_dir.parent / (theme_dir.name + "2") / "assets" / "x.js"
        assert not AssetKeyMapper(theme_dir).is_valid_path(sibling)


class TestLocalPathForKey:
    """Tests for mapping remote keys back to local paths."""

    def test_plain_key(self, theme_dir):
        mapper = AssetKeyMapper(theme_dir)
        assert mapper.local_path_for_key("assets/x.js") == (
            theme_dir.resolve() / "assets" / "x.js"
        )

    def test_encoded_key(self, theme_dir):
        mapper = AssetKeyMapper(theme_dir)
        assert mapper.local_path_for_key("assets/a%20b.css") == (
            theme_dir.resolve() / "assets" / "a b.css"
        )

    def test_escaping_key_rejected(self, theme_dir):
        with pytest.raises(InvalidPathError):
            AssetKeyMapper(theme_dir).local_path_for_key("../../etc/passwd")

    def test_empty_key_rejected(self, theme_dir):
        with pytest.raises(InvalidPathError):
            AssetKeyMapper(theme_dir).local_path_for_key("")


def test_encode_decode_keys():
    assert encode_key("assets/a b.css") == "assets/a%20b.css"
    assert decode_key("assets/a%20b.css") == "assets/a b.css"
