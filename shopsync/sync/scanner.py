"""Local theme directory scanning and remote asset records."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ..keys import AssetKeyMapper, encode_key
from ..utils import SETTINGS_DATA_KEY, parse_iso_timestamp

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """Represents a local theme file with metadata."""

    path: Path
    """Absolute path to the file"""

    key: str
    """URI-encoded asset key"""

    size: int
    """File size in bytes"""

    mtime: float
    """Last modification time (Unix timestamp)"""

    @classmethod
    def from_path(cls, file_path: Path, mapper: AssetKeyMapper) -> "LocalFile":
        """Create LocalFile from a path inside the theme directory.

        Raises:
            InvalidPathError: If the path is not a theme asset path
        """
        stat = file_path.stat()
        return cls(
            path=file_path,
            key=mapper.make_asset_key(file_path),
            size=stat.st_size,
            mtime=stat.st_mtime,
        )


@dataclass
class RemoteAsset:
    """Represents an entry of the remote asset listing."""

    key: str
    """Plain asset key as stored remotely"""

    updated_at: Optional[str] = None
    """ISO timestamp of the last remote change"""

    size: Optional[int] = None
    """Size in bytes, if reported"""

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RemoteAsset":
        return cls(
            key=record["key"],
            updated_at=record.get("updated_at"),
            size=record.get("size"),
        )

    @property
    def encoded_key(self) -> str:
        """Key in the same encoded form LocalFile.key uses."""
        return encode_key(self.key)

    @property
    def mtime(self) -> Optional[float]:
        """Last remote modification time (Unix timestamp)."""
        return parse_iso_timestamp(self.updated_at)


class ThemeScanner:
    """Finds the theme files under the whitelisted directories.

    Examples:
        >>> scanner = ThemeScanner(AssetKeyMapper(Path("shop")))
        >>> files = scanner.scan_local()
        >>> [f.key for f in files]
        ['assets/x.js', 'templates/y.liquid']
    """

    def __init__(self, mapper: AssetKeyMapper):
        self.mapper = mapper

    def scan_local(self, exclude_settings: bool = False) -> list[LocalFile]:
        """Scan the theme directories below the base.

        Files are returned in whitelist order, sorted by path within each
        directory. Dot files are skipped.

        Args:
            exclude_settings: Skip config/settings_data.json

        Returns:
            List of LocalFile objects
        """
        files: list[LocalFile] = []

        for directory in self.mapper.directories:
            root = self.mapper.base / directory
            if not root.is_dir():
                continue

            for item in sorted(root.rglob("*")):
                if not item.is_file() or item.name.startswith("."):
                    continue
                if not self.mapper.is_valid_path(item):
                    logger.debug(f"Skipping non-theme file: {item}")
                    continue
                try:
                    local_file = LocalFile.from_path(item, self.mapper)
                except OSError as e:
                    # Skip files we can't read
                    logger.debug(f"Skipping unreadable file {item}: {e}")
                    continue
                if exclude_settings and local_file.key == SETTINGS_DATA_KEY:
                    continue
                files.append(local_file)

        return files

    def scan_remote(self, records: list[dict[str, Any]]) -> list[RemoteAsset]:
        """Turn asset listing records into RemoteAsset objects."""
        return [RemoteAsset.from_record(r) for r in records if r.get("key")]
