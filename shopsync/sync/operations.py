"""Single-asset upload, remove and download operations."""

import binascii
import logging
from pathlib import Path
from typing import Optional, Union

from ..api import ShopifyClient, build_asset_payload
from ..exceptions import LocalFileError, MalformedResponseError, ShopSyncError
from ..keys import AssetKeyMapper, decode_key
from ..notifier import Notifier
from ..utils import decode_attachment

logger = logging.getLogger(__name__)


class ThemeOperations:
    """Unified per-file operations shared by the queue and the bulk engine.

    Paths outside the theme directory or outside the directory whitelist
    are skipped without contacting the API: upload and remove return None.
    Failures are reported through the notifier and then re-raised.
    """

    def __init__(
        self,
        client: ShopifyClient,
        mapper: AssetKeyMapper,
        notifier: Optional[Notifier] = None,
        dry_run: bool = False,
    ):
        """Initialize theme operations.

        Args:
            client: API client
            mapper: Path to asset key mapper for the theme directory
            notifier: Receives success and failure messages
            dry_run: If True, downloads are fetched but not written
        """
        self.client = client
        self.mapper = mapper
        self.notifier = notifier or Notifier()
        self.dry_run = dry_run

    def upload_file(self, path: Union[str, Path]) -> Optional[str]:
        """Upload a local file.

        Args:
            path: Local file path

        Returns:
            The asset key, or None if the path was skipped
        """
        if not self.mapper.is_valid_path(path):
            logger.debug(f"Not uploading non-theme path {path}")
            return None
        if Path(path).is_dir():
            logger.debug(f"Not uploading directory {path}")
            return None

        key = self.mapper.make_asset_key(path)
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            error = LocalFileError(f"Could not read {path}", str(e))
            self.notifier.notify(f"Error uploading {key}: {error}", is_error=True)
            raise error from e

        try:
            self.client.update(build_asset_payload(key, data))
        except ShopSyncError as e:
            self.notifier.notify(f"Error uploading {key}: {e}", is_error=True)
            raise

        self.notifier.notify(f"Uploaded {path} as {decode_key(key)}")
        return key

    def remove_file(self, path: Union[str, Path]) -> Optional[str]:
        """Delete the remote asset belonging to a local path.

        The local file does not have to exist.

        Returns:
            The asset key, or None if the path was skipped
        """
        if not self.mapper.is_valid_path(path):
            logger.debug(f"Not deleting non-theme path {path}")
            return None

        key = self.mapper.make_asset_key(path)
        try:
            self.client.destroy(key)
        except ShopSyncError as e:
            self.notifier.notify(f"Error deleting {key}: {e}", is_error=True)
            raise

        self.notifier.notify(f"Deleted {decode_key(key)}")
        return key

    def download_asset(self, key: str) -> Path:
        """Download one asset into the theme directory.

        Text assets (``value``) are written as UTF-8, binary assets
        (``attachment``) are base64-decoded first. In dry run mode nothing
        is written.

        Args:
            key: Asset key (plain or URI-encoded)

        Returns:
            Local destination path

        Raises:
            MalformedResponseError: If the asset has neither value nor attachment
        """
        try:
            destination = self.mapper.local_path_for_key(key)
            asset = self.client.retrieve(key)
            content = self._asset_content(asset)
        except ShopSyncError as e:
            self.notifier.notify(f"Error downloading {key}: {e}", is_error=True)
            raise

        if self.dry_run:
            self.notifier.notify(
                f"dry run: Downloaded {decode_key(key)} to {destination}"
            )
            logger.info(f"dry run asset: {asset!r}")
            return destination

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                destination.write_bytes(content)
            else:
                destination.write_text(content, encoding="utf-8")
        except OSError as e:
            error = LocalFileError(f"Error saving asset {key} to {destination}", str(e))
            self.notifier.notify(str(error), is_error=True)
            raise error from e

        self.notifier.notify(f"Downloaded {decode_key(key)} to {destination}")
        return destination

    @staticmethod
    def _asset_content(asset: dict) -> Union[str, bytes]:
        """Extract text or binary content from an asset record."""
        if asset.get("value") is not None:
            return str(asset["value"])
        if asset.get("attachment") is not None:
            try:
                return decode_attachment(asset["attachment"])
            except (binascii.Error, ValueError) as e:
                raise MalformedResponseError(
                    "Failed to parse response",
                    MalformedResponseError.PARSE_ERROR,
                    f"invalid attachment for {asset.get('key')}",
                ) from e
        raise MalformedResponseError(
            "Incomplete object",
            MalformedResponseError.INCOMPLETE_RESPONSE,
            f"asset {asset.get('key')!r} has neither value nor attachment",
        )
