"""Theme sync engine - sync, deploy and download operations."""

from .comparator import FileComparator, SyncAction, SyncDecision
from .engine import ThemeEngine
from .operations import ThemeOperations
from .scanner import LocalFile, RemoteAsset, ThemeScanner

__all__ = [
    "ThemeEngine",
    "ThemeOperations",
    "ThemeScanner",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "LocalFile",
    "RemoteAsset",
]
