"""API client for the theme asset REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import ThemeConfig
from .exceptions import (
    MalformedResponseError,
    RemoteRejectionError,
    TransportError,
)
from .keys import decode_key
from .utils import encode_attachment, is_binary

logger = logging.getLogger(__name__)

USER_AGENT = "shopsync"


def build_asset_payload(key: str, data: bytes) -> dict[str, Any]:
    """Build the PUT body for an asset.

    7-bit ASCII content is sent as text in ``value``, anything else is
    base64-encoded into ``attachment``.

    Args:
        key: Asset key (plain or URI-encoded)
        data: Raw file content

    Returns:
        Request body with exactly one of ``value`` or ``attachment``
    """
    asset: dict[str, Any] = {"key": decode_key(key)}
    if is_binary(data):
        asset["attachment"] = encode_attachment(data)
    else:
        asset["value"] = data.decode("ascii")
    return {"asset": asset}


class ShopifyClient:
    """Client for the theme asset and theme list endpoints."""

    def __init__(
        self,
        config: ThemeConfig,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the API client.

        Args:
            config: Run configuration (host, credentials, theme, timeout)
            transport: Optional httpx transport, used by tests
        """
        self.config = config
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.config.base_url,
                auth=(self.config.api_key, self.config.password),
                headers={
                    "Accept": "application/json",
                    "User-Agent": USER_AGENT,
                },
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> ShopifyClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================
    # Request handling
    # =========================

    def assets_path(self, theme_id: str | None = None) -> str:
        """Return the asset collection path, theme-scoped when possible."""
        theme_id = theme_id or self.config.theme_id
        if theme_id:
            return f"/admin/themes/{theme_id}/assets.json"
        return "/admin/assets.json"

    @staticmethod
    def _error_type(status_code: int) -> str:
        """Map an HTTP status to the error tag reported to the user."""
        if status_code == 401:
            return "ShopifyAuthenticationError"
        if status_code == 403:
            return "ShopifyPermissionError"
        if status_code == 404:
            return "ShopifyNotFoundError"
        if status_code == 429:
            return "ShopifyRateLimitError"
        if status_code >= 500:
            return "ShopifyServerError"
        return "ShopifyInvalidRequestError"

    @staticmethod
    def _error_detail(body: Any) -> str | None:
        """Extract the human-readable part of an API error body."""
        if not isinstance(body, dict):
            return None
        errors = body.get("errors") or body.get("error")
        if errors is None:
            return None
        if isinstance(errors, dict):
            parts = []
            for field, messages in errors.items():
                if isinstance(messages, list):
                    messages = ", ".join(str(m) for m in messages)
                parts.append(f"{field}: {messages}")
            return "; ".join(parts)
        if isinstance(errors, list):
            return ", ".join(str(e) for e in errors)
        return str(errors)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request and interpret the response.

        Args:
            method: HTTP method
            endpoint: Path below the shop host
            **kwargs: Additional arguments passed to httpx

        Returns:
            Parsed JSON body ({} for an empty body)

        Raises:
            TransportError: If no response was received
            MalformedResponseError: If the body is not valid JSON
            RemoteRejectionError: If the status code is 400 or above
        """
        client = self._get_client()
        logger.debug(f"{method} {endpoint} {kwargs.get('params') or ''}")

        try:
            response = client.request(method, endpoint, **kwargs)
        except httpx.RequestError as e:
            raise TransportError(f"Problem with {method} request", str(e)) from e

        body: Any = {}
        if response.content:
            try:
                body = response.json()
            except ValueError as e:
                raise MalformedResponseError(
                    "Failed to parse response",
                    MalformedResponseError.PARSE_ERROR,
                    f"status {response.status_code}: {response.text[:200]}",
                ) from e

        if response.status_code >= 400:
            raise RemoteRejectionError(
                response.status_code,
                self._error_type(response.status_code),
                self._error_detail(body) or response.text or None,
            )

        return body

    @staticmethod
    def _require(body: Any, field: str) -> Any:
        """Return a required top-level field of a response body."""
        if not isinstance(body, dict) or body.get(field) is None:
            raise MalformedResponseError(
                "Incomplete response",
                MalformedResponseError.INCOMPLETE_RESPONSE,
                f"missing '{field}' in {body!r}"[:300],
            )
        return body[field]

    # =========================
    # Asset operations
    # =========================

    def retrieve(self, key: str, theme_id: str | None = None) -> dict[str, Any]:
        """Fetch a single asset.

        Args:
            key: Asset key (plain or URI-encoded)
            theme_id: Theme to read from (defaults to the configured theme)

        Returns:
            Asset record with ``value`` or ``attachment``
        """
        theme_id = theme_id or self.config.theme_id
        params = {"asset[key]": decode_key(key)}
        if theme_id:
            params["theme_id"] = str(theme_id)
        body = self._request("GET", self.assets_path(theme_id), params=params)
        asset: dict[str, Any] = self._require(body, "asset")
        return asset

    def update(
        self, asset: dict[str, Any], theme_id: str | None = None
    ) -> dict[str, Any]:
        """Create or replace an asset.

        Args:
            asset: Request body as built by :func:`build_asset_payload`
            theme_id: Theme to write to (defaults to the configured theme)

        Returns:
            Asset record returned by the API (may be empty)
        """
        body = self._request("PUT", self.assets_path(theme_id), json=asset)
        if not isinstance(body, dict):
            return {}
        result: dict[str, Any] = body.get("asset") or {}
        return result

    def destroy(self, key: str, theme_id: str | None = None) -> Any:
        """Delete an asset.

        Args:
            key: Asset key (plain or URI-encoded)
            theme_id: Theme to delete from (defaults to the configured theme)
        """
        return self._request(
            "DELETE",
            self.assets_path(theme_id),
            params={"asset[key]": decode_key(key)},
        )

    def list(self, theme_id: str | None = None) -> list[dict[str, Any]]:
        """List all assets (key, updated_at, size) without their content."""
        body = self._request("GET", self.assets_path(theme_id))
        assets = self._require(body, "assets")
        if not isinstance(assets, list):
            raise MalformedResponseError(
                "Incomplete response",
                MalformedResponseError.INCOMPLETE_RESPONSE,
                "'assets' is not a list",
            )
        return assets

    def list_themes(self) -> list[dict[str, Any]]:
        """List the shop's themes as ``{id, name, role}`` records."""
        body = self._request("GET", "/admin/themes.json")
        themes = self._require(body, "themes")
        return [
            {
                "id": theme.get("id"),
                "name": theme.get("name"),
                "role": theme.get("role"),
            }
            for theme in themes
        ]
