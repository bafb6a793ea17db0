"""Filesystem watch support: turns change events into queued tasks."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from watchfiles import Change, watch

from .notifier import Notifier
from .task_queue import Task, TaskAction, TaskQueue

logger = logging.getLogger(__name__)

UPLOAD_EVENTS = frozenset({"added", "changed", "modified", "renamed"})
REMOVE_EVENTS = frozenset({"removed", "deleted"})


class WatchHandler:
    """Hands watch events over to the task queue.

    Each batch yields at most one task per path. Batches are not coalesced
    with each other, so the remote ends up with whatever the last task did.
    """

    def __init__(
        self,
        tasks: TaskQueue,
        notifier: Notifier | None = None,
        base: Path | None = None,
    ):
        """Initialize the handler.

        Args:
            tasks: Queue receiving upload and remove tasks
            notifier: Receives unknown-event reports
            base: Theme root; its existing subdirectories are remembered so
                that deleting one does not queue a remove
        """
        self.tasks = tasks
        self.notifier = notifier or tasks.notifier
        self._directories: set[str] = set()
        if base is not None:
            self._directories.update(
                str(p) for p in Path(base).rglob("*") if p.is_dir()
            )

    def handle(self, event_type: str, path: str | Path) -> Task | None:
        """Queue the task for one event.

        Args:
            event_type: added, changed, renamed or removed
            path: Path of the file the event is about

        Returns:
            The queued task, or None for an unknown event type
        """
        event_type = event_type.lower()
        if event_type in UPLOAD_EVENTS:
            logger.debug(f"{event_type}: queueing upload of {path}")
            return self.tasks.push(TaskAction.UPLOAD, path)
        if event_type in REMOVE_EVENTS:
            logger.debug(f"{event_type}: queueing removal of {path}")
            return self.tasks.push(TaskAction.REMOVE, path)

        self.notifier.notify(
            f"Unknown watch event {event_type} for {path}", is_error=True
        )
        return None

    def handle_changes(self, changes: Iterable[tuple[Change, str]]) -> list[Task]:
        """Queue one task per changed path, in sorted path order.

        A batch is an unordered set and may hold several events for the same
        path (an atomic save shows up as deleted plus added). The path's
        state on disk decides: an existing file is uploaded, a missing one is
        removed. Directories are skipped.
        """
        queued = []
        for path in sorted({str(Path(p)) for _, p in changes}):
            local = Path(path)
            if local.is_dir():
                self._directories.add(path)
                continue
            if local.is_file():
                event_type = "changed"
            elif local.exists():
                logger.debug(f"Skipping non-regular file {path}")
                continue
            elif path in self._directories:
                self._directories.discard(path)
                continue
            else:
                event_type = "removed"

            task = self.handle(event_type, path)
            if task is not None:
                queued.append(task)
        return queued


def watch_theme(
    base: Path,
    handler: WatchHandler,
    debounce: int = 200,
    stop_event=None,
) -> None:
    """Watch the theme directory and feed every change into the queue.

    Runs until interrupted (or until ``stop_event`` is set).
    """
    logger.debug(f"Watching {base}")
    for changes in watch(base, debounce=debounce, stop_event=stop_event):
        handler.handle_changes(changes)
