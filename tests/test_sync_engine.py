"""Tests for the bulk sync, deploy and download operations."""

import os
from unittest.mock import Mock

import httpx
import pytest

from shopsync.exceptions import RemoteRejectionError
from shopsync.sync import ThemeScanner
from shopsync.keys import AssetKeyMapper

REMOTE_TIME = "2013-05-01T10:00:00-04:00"
REMOTE_EPOCH = 1367416800.0


def _set_mtime(path, mtime):
    os.utime(path, (mtime, mtime))


class TestScanLocal:
    """Tests for ThemeScanner.scan_local."""

    def test_whitelist_order_and_filtering(self, theme_dir, make_file):
        make_file("templates/y.liquid")
        make_file("assets/x.js")
        make_file("assets/.DS_Store")
        make_file("random/z.txt")
        make_file("README.md")
        make_file("snippets/nested/deep.liquid")

        files = ThemeScanner(AssetKeyMapper(theme_dir)).scan_local()

        assert [f.key for f in files] == [
            "assets/x.js",
            "snippets/nested/deep.liquid",
            "templates/y.liquid",
        ]

    def test_exclude_settings(self, theme_dir, make_file):
        make_file("config/settings_data.json", "{}")
        make_file("config/settings_schema.json", "[]")

        files = ThemeScanner(AssetKeyMapper(theme_dir)).scan_local(
            exclude_settings=True
        )

        assert [f.key for f in files] == ["config/settings_schema.json"]


class TestSync:
    """Tests for ThemeEngine.sync."""

    def test_newer_local_file_is_uploaded(self, engine, shop, make_file):
        shop.add_asset("assets/x.js", value="old", updated_at=REMOTE_TIME)
        path = make_file("assets/x.js", "new")
        _set_mtime(path, REMOTE_EPOCH + 3600)

        stats = engine.sync()

        assert stats["uploads"] == 1
        assert shop.calls == [("GET", ""), ("PUT", "assets/x.js")]
        assert shop.assets["assets/x.js"]["value"] == "new"

    def test_same_timestamp_is_not_uploaded(self, engine, shop, make_file):
        shop.add_asset("assets/x.js", value="old", updated_at=REMOTE_TIME)
        path = make_file("assets/x.js", "new")
        _set_mtime(path, REMOTE_EPOCH)

        stats = engine.sync()

        assert stats["uploads"] == 0
        assert stats["skipped"] == 1
        assert shop.calls == [("GET", "")]

    def test_new_local_file_is_uploaded(self, engine, shop, make_file):
        make_file("snippets/new.liquid", "hi")

        stats = engine.sync()

        assert stats["planned"] == ["snippets/new.liquid"]
        assert ("PUT", "snippets/new.liquid") in shop.calls

    def test_never_deletes_remote_only_assets(self, engine, shop, make_file):
        shop.add_asset("assets/remote-only.js", value="x")
        make_file("assets/x.js")

        engine.sync()

        assert all(method != "DELETE" for method, _ in shop.calls)
        assert "assets/remote-only.js" in shop.assets

    def test_encoded_keys_match_remote_listing(self, engine, shop, make_file):
        shop.add_asset("assets/a b.css", value="x", updated_at=REMOTE_TIME)
        path = make_file("assets/a b.css")
        _set_mtime(path, REMOTE_EPOCH - 10)

        stats = engine.sync()

        assert stats["uploads"] == 0
        assert stats["remote_assets"] == 1

    def test_dry_run_plans_only(self, engine, shop, make_file):
        make_file("assets/x.js")

        stats = engine.sync(dry_run=True)

        assert stats["planned"] == ["assets/x.js"]
        assert shop.calls == [("GET", "")]

    def test_listing_failure_is_reported(self, engine, shop, notifier):
        shop.fail("GET", "", httpx.Response(500, json={"errors": "down"}))

        with pytest.raises(RemoteRejectionError):
            engine.sync()
        assert notifier.notify.call_args.kwargs["is_error"] is True


class TestDeploy:
    """Tests for ThemeEngine.deploy."""

    def test_uploads_theme_files_only(self, engine, shop, make_file):
        make_file("assets/x.js")
        make_file("templates/y.liquid")
        make_file("random/z.txt")

        keys = engine.deploy()

        assert keys == ["assets/x.js", "templates/y.liquid"]
        assert shop.calls == [
            ("PUT", "assets/x.js"),
            ("PUT", "templates/y.liquid"),
        ]

    def test_no_json_skips_settings_data(self, engine, shop, make_file):
        make_file("config/settings_data.json", "{}")
        make_file("layout/theme.liquid")

        keys = engine.deploy(no_json=True)

        assert keys == ["layout/theme.liquid"]

    def test_aborts_at_first_failure(self, engine, shop, make_file):
        for name in "abcde":
            make_file(f"assets/{name}.js")
        shop.fail("PUT", "assets/c.js", httpx.Response(500, json={"errors": "x"}))

        with pytest.raises(RemoteRejectionError):
            engine.deploy()

        assert shop.calls == [
            ("PUT", "assets/a.js"),
            ("PUT", "assets/b.js"),
            ("PUT", "assets/c.js"),
        ]

    def test_progress_callback(self, engine, shop, make_file):
        make_file("assets/a.js")
        make_file("assets/b.js")
        progress = Mock()

        engine.deploy(progress_callback=progress)

        assert [c.args for c in progress.call_args_list] == [(0, 2), (1, 2), (2, 2)]


class TestDownloadTheme:
    """Tests for ThemeEngine.download_theme."""

    def test_downloads_in_listing_order(self, engine, shop, theme_dir):
        shop.add_asset("templates/index.liquid", value="hi")
        shop.add_asset("assets/logo.png", attachment=b"\xff\x00")

        destinations = engine.download_theme()

        base = theme_dir.resolve()
        assert destinations == [
            base / "templates" / "index.liquid",
            base / "assets" / "logo.png",
        ]
        assert (base / "assets" / "logo.png").read_bytes() == b"\xff\x00"
        assert shop.calls == [
            ("GET", ""),
            ("GET", "templates/index.liquid"),
            ("GET", "assets/logo.png"),
        ]

    def test_aborts_at_first_failure(self, engine, shop, theme_dir):
        shop.add_asset("assets/a.js", value="a")
        shop.add_asset("assets/b.js", value="b")
        shop.add_asset("assets/c.js", value="c")
        shop.fail("GET", "assets/b.js", httpx.Response(404, json={"errors": "gone"}))

        with pytest.raises(RemoteRejectionError):
            engine.download_theme()

        assert (theme_dir / "assets" / "a.js").exists()
        assert not (theme_dir / "assets" / "c.js").exists()
