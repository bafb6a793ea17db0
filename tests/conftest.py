"""Shared fixtures: a theme directory and an in-memory shop API."""

import base64
import json
from pathlib import Path
from typing import Any, Optional
from unittest.mock import Mock

import httpx
import pytest

from shopsync.api import ShopifyClient
from shopsync.config import ThemeConfig
from shopsync.keys import AssetKeyMapper
from shopsync.notifier import Notifier
from shopsync.sync import ThemeEngine, ThemeOperations


class FakeShop:
    """In-memory stand-in for the asset API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.assets: dict[str, dict[str, Any]] = {}
        self.themes: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], httpx.Response] = {}

    def add_asset(
        self,
        key: str,
        value: Optional[str] = None,
        attachment: Optional[bytes] = None,
        updated_at: str = "2013-05-01T10:00:00-04:00",
    ) -> None:
        asset: dict[str, Any] = {"key": key, "updated_at": updated_at}
        if value is not None:
            asset["value"] = value
            asset["size"] = len(value)
        if attachment is not None:
            asset["attachment"] = base64.b64encode(attachment).decode("ascii")
            asset["size"] = len(attachment)
        self.assets[key] = asset

    def fail(self, method: str, key: str, response: httpx.Response) -> None:
        """Answer requests for ``key`` with a canned response."""
        self.failures[(method, key)] = response

    @property
    def calls(self) -> list[tuple[str, str]]:
        """(method, asset key) for every asset request seen so far."""
        result = []
        for request in self.requests:
            key = request.url.params.get("asset[key]")
            if key is None and request.method == "PUT":
                key = json.loads(request.content)["asset"]["key"]
            result.append((request.method, key or ""))
        return result

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/admin/themes.json":
            return httpx.Response(200, json={"themes": self.themes})

        key = request.url.params.get("asset[key]")
        if request.method == "PUT":
            key = json.loads(request.content)["asset"]["key"]

        failure = self.failures.get((request.method, key or ""))
        if failure is not None:
            return failure

        if request.method == "GET" and key is None:
            listing = [
                {k: v for k, v in a.items() if k not in ("value", "attachment")}
                for a in self.assets.values()
            ]
            return httpx.Response(200, json={"assets": listing})
        if request.method == "GET":
            if key not in self.assets:
                return httpx.Response(404, json={"errors": "Not Found"})
            return httpx.Response(200, json={"asset": self.assets[key]})
        if request.method == "PUT":
            asset = json.loads(request.content)["asset"]
            self.assets[key] = asset
            return httpx.Response(200, json={"asset": {"key": key}})
        if request.method == "DELETE":
            self.assets.pop(key, None)
            return httpx.Response(200, json={"message": f"{key} was deleted"})
        return httpx.Response(405)


@pytest.fixture
def theme_dir(tmp_path: Path) -> Path:
    """Create an empty theme directory."""
    base = tmp_path / "shop"
    base.mkdir()
    return base


@pytest.fixture
def config(theme_dir: Path) -> ThemeConfig:
    """Theme-scoped configuration pointing at the temporary theme directory."""
    return ThemeConfig(
        url="example.myshopify.com",
        api_key="key",
        password="secret",
        theme_id="42",
        base=theme_dir,
        disable_desktop_notifications=True,
    )


@pytest.fixture
def shop() -> FakeShop:
    return FakeShop()


@pytest.fixture
def client(config: ThemeConfig, shop: FakeShop):
    client = ShopifyClient(config, transport=httpx.MockTransport(shop.handler))
    yield client
    client.close()


@pytest.fixture
def notifier() -> Mock:
    return Mock(spec=Notifier)


@pytest.fixture
def operations(client, config, notifier) -> ThemeOperations:
    return ThemeOperations(client, AssetKeyMapper(config.base_path), notifier)


@pytest.fixture
def engine(client, operations) -> ThemeEngine:
    return ThemeEngine(client, operations)


def write_file(base: Path, relative: str, content: Any = "x") -> Path:
    """Create a file below ``base`` (text or bytes)."""
    path = base / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)
    return path


@pytest.fixture
def make_file(theme_dir: Path):
    """Return a helper creating files inside the theme directory."""

    def _make(relative: str, content: Any = "x") -> Path:
        return write_file(theme_dir, relative, content)

    return _make
