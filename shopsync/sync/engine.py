"""Bulk theme operations: sync, deploy and whole-theme download."""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..api import ShopifyClient
from ..exceptions import ShopSyncError
from ..notifier import Notifier
from .comparator import FileComparator, SyncAction, SyncDecision
from .operations import ThemeOperations
from .scanner import ThemeScanner

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ThemeEngine:
    """Runs the bulk operations one file at a time.

    Every bulk operation is a plain sequential loop that stops at the first
    failure and re-raises it. Nothing is retried; running the command again
    starts the whole sequence over.
    """

    def __init__(
        self,
        client: ShopifyClient,
        operations: ThemeOperations,
        scanner: Optional[ThemeScanner] = None,
    ):
        """Initialize the engine.

        Args:
            client: API client used for the remote listing
            operations: Per-file operations
            scanner: Local theme scanner (built from the operations' mapper
                if not given)
        """
        self.client = client
        self.operations = operations
        self.scanner = scanner or ThemeScanner(operations.mapper)

    @property
    def notifier(self) -> Notifier:
        return self.operations.notifier

    def plan_sync(self) -> list[SyncDecision]:
        """Compare the local theme against the remote listing.

        Returns:
            Decisions for every local file and remote-only asset
        """
        remote_assets = self.scanner.scan_remote(self.client.list())
        local_files = self.scanner.scan_local()

        local_map = {f.key: f for f in local_files}
        remote_map = {a.encoded_key: a for a in remote_assets}
        return FileComparator().compare_files(local_map, remote_map)

    def sync(
        self,
        dry_run: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> dict:
        """Upload local files that are new or newer than their remote copy.

        Sync never deletes anything.

        Args:
            dry_run: If True, only compute the plan
            progress_callback: Optional callback(done, total)

        Returns:
            Dictionary with sync statistics

        Raises:
            ShopSyncError: The first failure; remaining uploads are skipped
        """
        try:
            decisions = self.plan_sync()
        except ShopSyncError as e:
            self.notifier.notify(f"Error fetching asset list: {e}", is_error=True)
            raise

        uploads = [d for d in decisions if d.action == SyncAction.UPLOAD]
        stats = {
            "local_files": sum(1 for d in decisions if d.local_file is not None),
            "remote_assets": sum(1 for d in decisions if d.remote_asset is not None),
            "uploads": len(uploads),
            "skipped": len(decisions) - len(uploads),
            "planned": [d.key for d in uploads],
        }

        for decision in uploads:
            logger.debug(f"{decision.key}: {decision.reason}")

        if dry_run:
            return stats

        self._run(
            [d.local_file.path for d in uploads if d.local_file is not None],
            self.operations.upload_file,
            progress_callback,
        )
        self.notifier.notify("Sync complete")
        return stats

    def deploy(
        self,
        no_json: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> list[str]:
        """Upload every file under the theme directories.

        Args:
            no_json: Skip config/settings_data.json
            progress_callback: Optional callback(done, total)

        Returns:
            Keys of the uploaded assets
        """
        paths = [f.path for f in self.scanner.scan_local(exclude_settings=no_json)]
        keys = self._run(paths, self.operations.upload_file, progress_callback)
        self.notifier.notify("Deploy complete")
        return [k for k in keys if k]

    def download_theme(
        self, progress_callback: Optional[ProgressCallback] = None
    ) -> list[Path]:
        """Download every remote asset in listing order.

        Returns:
            Local destination of every asset
        """
        try:
            assets = self.scanner.scan_remote(self.client.list())
        except ShopSyncError as e:
            self.notifier.notify(f"Error fetching asset list: {e}", is_error=True)
            raise

        destinations = self._run(
            [a.key for a in assets], self.operations.download_asset, progress_callback
        )
        self.notifier.notify("Download complete")
        return destinations

    @staticmethod
    def _run(
        items: list,
        action: Callable,
        progress_callback: Optional[ProgressCallback],
    ) -> list:
        """Apply an action to each item in order, stopping at the first error."""
        results = []
        total = len(items)
        if progress_callback:
            progress_callback(0, total)
        for index, item in enumerate(items, start=1):
            results.append(action(item))
            if progress_callback:
                progress_callback(index, total)
        return results
