"""Utility functions for shopsync."""

import base64
from datetime import datetime
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Top-level directories the theme API accepts assets under
THEME_DIRECTORIES: tuple[str, ...] = (
    "assets",
    "config",
    "layout",
    "snippets",
    "templates",
    "locales",
)

# Theme settings file skipped by ``upload --no-json``
SETTINGS_DATA_KEY: str = "config/settings_data.json"

# Delay between queued tasks (milliseconds)
DEFAULT_RATE_LIMIT_DELAY: int = 500

# HTTP request timeout (seconds)
DEFAULT_TIMEOUT: float = 30.0


# =============================================================================
# Content helpers
# =============================================================================


def is_binary(data: bytes) -> bool:
    """Check whether content has to be sent as a base64 attachment.

    Anything containing a byte outside the 7-bit ASCII range counts as binary.

    Examples:
        >>> is_binary(b"body { color: red; }")
        False
        >>> is_binary(b"\\x89PNG\\r\\n")
        True
    """
    return any(byte > 127 for byte in data)


def encode_attachment(data: bytes) -> str:
    """Base64-encode binary content for the ``attachment`` field."""
    return base64.b64encode(data).decode("ascii")


def decode_attachment(value: str) -> bytes:
    """Decode an ``attachment`` field back to bytes.

    Raises:
        ValueError: If the value is not valid base64
    """
    return base64.b64decode(value, validate=True)


# =============================================================================
# Timestamp parsing utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[float]:
    """Parse an ISO 8601 timestamp from the API into a Unix timestamp.

    Args:
        timestamp_str: Timestamp such as "2013-05-01T10:00:00-04:00"

    Returns:
        Seconds since the epoch, or None if the value cannot be parsed
    """
    if not timestamp_str:
        return None

    try:
        # The 'Z' suffix indicates UTC time
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(timestamp_str)
        return dt.timestamp()
    except (ValueError, AttributeError, TypeError):
        return None

