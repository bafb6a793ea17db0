"""Rate-limited upload/remove queue fed by filesystem events.

All queued work runs on a single worker thread, strictly in the order it was
pushed. After every upload or remove task the worker sleeps for the
configured rate-limit delay before taking the next one, whether the task
succeeded or not. This bounds the outbound request rate to about one request
per delay interval regardless of how many events pile up.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from .exceptions import ShopSyncError, UnknownActionError
from .notifier import Notifier
from .sync.operations import ThemeOperations

logger = logging.getLogger(__name__)


class TaskAction(str, Enum):
    """Actions a queued task can perform."""

    UPLOAD = "upload"
    REMOVE = "remove"


class TaskState(str, Enum):
    """Lifecycle of a queued task."""

    ENQUEUED = "enqueued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DRAINED = "drained"


@dataclass
class Task:
    """One queued upload or remove of a local path.

    The asset key is derived from ``path`` only when the task runs.
    """

    action: str
    path: Path
    callback: Optional[Callable[["Task"], None]] = None
    state: TaskState = TaskState.ENQUEUED
    error: Optional[ShopSyncError] = None
    result: Optional[str] = None
    sequence: int = field(default=0, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.state in (
            TaskState.SUCCEEDED,
            TaskState.DRAINED,
        )


class TaskQueue:
    """Single-worker FIFO queue for upload and remove tasks.

    Examples:
        >>> with TaskQueue(operations, notifier, delay=0.5) as tasks:
        ...     tasks.push(TaskAction.UPLOAD, "shop/assets/site.css")
        ...     tasks.push(TaskAction.REMOVE, "shop/assets/old.css")
    """

    def __init__(
        self,
        operations: ThemeOperations,
        notifier: Optional[Notifier] = None,
        delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the queue.

        Args:
            operations: Per-file operations executed by the worker
            notifier: Receives unknown-action reports
                (defaults to the operations' notifier)
            delay: Seconds to wait after each task before the next one
            sleep: Sleep function (replaceable in tests)
        """
        self.operations = operations
        self.notifier = notifier or operations.notifier
        self.delay = delay
        self._sleep = sleep
        self._pending: "queue.Queue[Optional[Task]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._sequence = 0
        self._handlers: dict[str, Callable[[Path], Optional[str]]] = {
            TaskAction.UPLOAD.value: operations.upload_file,
            TaskAction.REMOVE.value: operations.remove_file,
        }

    def start(self) -> None:
        """Start the worker thread if it is not running."""
        with self._lock:
            if self._worker is not None and self._worker.is_alive():
                return
            self._worker = threading.Thread(
                target=self._run, name="shopsync-queue", daemon=True
            )
            self._worker.start()

    def push(
        self,
        action: Union[TaskAction, str],
        path: Union[str, Path],
        callback: Optional[Callable[[Task], None]] = None,
    ) -> Task:
        """Enqueue a task and make sure the worker is running.

        Args:
            action: "upload" or "remove"
            path: Local file path
            callback: Called with the finished task, before the delay

        Returns:
            The queued task
        """
        action_name = action.value if isinstance(action, TaskAction) else str(action)
        with self._lock:
            self._sequence += 1
            task = Task(
                action=action_name,
                path=Path(path),
                callback=callback,
                sequence=self._sequence,
            )
        logger.debug(f"Queued {action_name} #{task.sequence}: {path}")
        self._pending.put(task)
        self.start()
        return task

    def join(self) -> None:
        """Block until every pushed task has been drained."""
        self._pending.join()

    def stop(self) -> None:
        """Drain the queue and stop the worker."""
        worker = self._worker
        if worker is None or not worker.is_alive():
            return
        self._pending.put(None)
        worker.join()
        self._worker = None

    @property
    def pending(self) -> int:
        """Approximate number of tasks not yet finished."""
        return self._pending.unfinished_tasks

    def __enter__(self) -> "TaskQueue":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def _run(self) -> None:
        while True:
            task = self._pending.get()
            try:
                if task is None:
                    return
                self._execute(task)
            finally:
                self._pending.task_done()

    def _execute(self, task: Task) -> None:
        """Run one task, report it and observe the rate-limit delay."""
        handler = self._handlers.get(task.action)
        if handler is None:
            task.state = TaskState.FAILED
            task.error = UnknownActionError(task.action)
            self.notifier.notify(str(task.error), is_error=True)
            self._finish(task)
            task.state = TaskState.DRAINED
            return

        task.state = TaskState.RUNNING
        try:
            task.result = handler(task.path)
            task.state = TaskState.SUCCEEDED
        except ShopSyncError as e:
            # Already reported by the operation; the queue moves on
            task.error = e
            task.state = TaskState.FAILED
            logger.debug(f"Task #{task.sequence} failed: {e}")
        except Exception as e:
            task.error = ShopSyncError(f"Unexpected error during {task.action}", str(e))
            task.state = TaskState.FAILED
            self.notifier.notify(str(task.error), is_error=True)
            logger.exception(f"Task #{task.sequence} crashed")

        self._finish(task)
        self._sleep(self.delay)
        task.state = TaskState.DRAINED

    def _finish(self, task: Task) -> None:
        if task.callback is not None:
            try:
                task.callback(task)
            except Exception:
                logger.exception(f"Callback for task #{task.sequence} failed")
