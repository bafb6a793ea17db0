"""CLI progress display for bulk theme operations.

This module provides a Rich-based progress bar that plugs into the
``progress_callback(done, total)`` hook of the theme engine.
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class BulkProgressDisplay:
    """Rich-based progress display for deploy, download and sync.

    Examples:
        >>> with BulkProgressDisplay("Uploading") as display:
        ...     engine.deploy(progress_callback=display.update)
    """

    def __init__(
        self,
        description: str,
        enabled: bool = True,
        console: Optional[Console] = None,
    ) -> None:
        """Initialize the progress display.

        Args:
            description: Label shown next to the bar
            enabled: If False, the display does nothing
            console: Console to render on (defaults to stderr)
        """
        self.description = description
        self.enabled = enabled
        self.console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def update(self, done: int, total: int) -> None:
        """Progress callback: ``done`` of ``total`` items finished."""
        if self._progress is None or self._task is None:
            return
        self._progress.update(self._task, completed=done, total=total)

    def __enter__(self) -> "BulkProgressDisplay":
        """Enter context manager - start progress display."""
        if not self.enabled:
            return self

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task(self.description, total=None)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None
