"""User notifications for upload, delete and download results.

A :class:`Notifier` fans every message out to its sinks. Sinks are
independent: a failing desktop notification never stops the console line,
and no sink failure ever reaches the caller.
"""

import logging
import platform
import shutil
import subprocess
from typing import Optional, Protocol

from .config import ThemeConfig
from .output import OutputFormatter

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "shopsync"


class NotificationSink(Protocol):
    """Something that can display a message."""

    def send(self, message: str, is_error: bool = False) -> None: ...


class ConsoleSink:
    """Writes notifications to the console and the log."""

    def __init__(self, output: OutputFormatter):
        self.output = output

    def send(self, message: str, is_error: bool = False) -> None:
        logger.debug(f"notify: {message}")
        if is_error:
            self.output.error(message)
        else:
            self.output.success(message)


class DesktopSink:
    """Shows notifications through the platform notifier command.

    Uses ``notify-send`` on Linux and ``osascript`` on macOS. When neither
    is available the sink does nothing.
    """

    def __init__(self, title: str = NOTIFICATION_TITLE, timeout: float = 5.0):
        self.title = title
        self.timeout = timeout
        self._command = self._find_command()

    @staticmethod
    def _find_command() -> Optional[str]:
        if platform.system() == "Darwin":
            return shutil.which("osascript")
        return shutil.which("notify-send")

    @property
    def available(self) -> bool:
        return self._command is not None

    def _build_args(self, command: str, message: str, is_error: bool) -> list[str]:
        if command.endswith("osascript"):
            text = message.replace("\\", "\\\\").replace('"', '\\"')
            title = self.title.replace('"', '\\"')
            return [
                command,
                "-e",
                f'display notification "{text}" with title "{title}"',
            ]
        urgency = "critical" if is_error else "normal"
        return [command, "--urgency", urgency, self.title, message]

    def send(self, message: str, is_error: bool = False) -> None:
        if self._command is None:
            return
        subprocess.run(
            self._build_args(self._command, message, is_error),
            check=True,
            timeout=self.timeout,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )


class Notifier:
    """Dispatches messages to the configured sinks."""

    def __init__(self, sinks: Optional[list[NotificationSink]] = None):
        self.sinks: list[NotificationSink] = list(sinks or [])

    @classmethod
    def from_config(
        cls, config: ThemeConfig, output: Optional[OutputFormatter] = None
    ) -> "Notifier":
        """Build a notifier honouring the per-sink toggles in the config."""
        sinks: list[NotificationSink] = []
        if not config.disable_console_log:
            sinks.append(ConsoleSink(output or OutputFormatter()))
        if not config.disable_desktop_notifications:
            sinks.append(DesktopSink())
        return cls(sinks)

    def notify(self, message: str, is_error: bool = False) -> None:
        """Send a message to every sink. Never raises."""
        for sink in self.sinks:
            try:
                sink.send(message, is_error=is_error)
            except Exception as e:
                logger.warning(
                    f"Notification sink {type(sink).__name__} failed: {e}"
                )
