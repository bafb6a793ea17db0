"""shopsync - keep a local theme directory in sync with a shop's theme assets."""

from .api import ShopifyClient, build_asset_payload
from .config import ThemeConfig, load_config
from .exceptions import (
    ConfigError,
    InvalidPathError,
    LocalFileError,
    MalformedResponseError,
    RemoteRejectionError,
    ShopSyncError,
    TransportError,
    UnknownActionError,
)
from .keys import AssetKeyMapper
from .notifier import Notifier
from .task_queue import Task, TaskAction, TaskQueue, TaskState

__all__ = [
    "ShopifyClient",
    "build_asset_payload",
    "ThemeConfig",
    "load_config",
    "AssetKeyMapper",
    "Notifier",
    "Task",
    "TaskAction",
    "TaskQueue",
    "TaskState",
    "ConfigError",
    "InvalidPathError",
    "LocalFileError",
    "MalformedResponseError",
    "RemoteRejectionError",
    "ShopSyncError",
    "TransportError",
    "UnknownActionError",
]
