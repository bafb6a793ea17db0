"""File comparison logic for theme sync."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .scanner import LocalFile, RemoteAsset


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    UPLOAD = "upload"
    """Upload local file to remote"""

    SKIP = "skip"
    """Skip file (no action needed)"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    local_file: Optional[LocalFile]
    """Local file (if exists)"""

    remote_asset: Optional[RemoteAsset]
    """Remote asset (if exists)"""

    key: str
    """Encoded asset key"""


class FileComparator:
    """Decides which local files have to be uploaded.

    Sync only ever uploads: remote-only assets and assets at least as new as
    the local copy are left alone.
    """

    def compare_files(
        self,
        local_files: dict[str, LocalFile],
        remote_assets: dict[str, RemoteAsset],
    ) -> list[SyncDecision]:
        """Compare local files against the remote listing.

        Args:
            local_files: Dictionary mapping encoded key to LocalFile
            remote_assets: Dictionary mapping encoded key to RemoteAsset

        Returns:
            One SyncDecision per key, local files first in their given order,
            then remote-only keys
        """
        decisions: list[SyncDecision] = []

        for key, local_file in local_files.items():
            decisions.append(
                self._compare_single_file(key, local_file, remote_assets.get(key))
            )

        for key in sorted(set(remote_assets) - set(local_files)):
            decisions.append(
                SyncDecision(
                    action=SyncAction.SKIP,
                    reason="Remote-only asset",
                    local_file=None,
                    remote_asset=remote_assets[key],
                    key=key,
                )
            )

        return decisions

    def _compare_single_file(
        self,
        key: str,
        local_file: LocalFile,
        remote_asset: Optional[RemoteAsset],
    ) -> SyncDecision:
        """Compare one local file with its remote counterpart."""
        if remote_asset is None:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="New local file",
                local_file=local_file,
                remote_asset=None,
                key=key,
            )

        remote_mtime = remote_asset.mtime
        if remote_mtime is None:
            # No usable remote timestamp, prefer the local copy
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="Remote timestamp unavailable",
                local_file=local_file,
                remote_asset=remote_asset,
                key=key,
            )

        if local_file.mtime > remote_mtime:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="Local file is newer",
                local_file=local_file,
                remote_asset=remote_asset,
                key=key,
            )

        return SyncDecision(
            action=SyncAction.SKIP,
            reason="Remote asset is up to date",
            local_file=local_file,
            remote_asset=remote_asset,
            key=key,
        )
