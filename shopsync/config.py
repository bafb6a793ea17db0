"""Configuration loading for shopsync.

Settings come from a JSON file (``shopify.json`` in the working directory by
default) and are overridden by command line options or environment
variables. The result is an immutable :class:`ThemeConfig` that is passed to
every component explicitly.
"""

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional, Union

from .exceptions import ConfigError
from .utils import DEFAULT_RATE_LIMIT_DELAY, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "shopify.json"


@dataclass(frozen=True)
class ThemeConfig:
    """Settings for one run against a single shop."""

    url: str
    """Shop host, optionally prefixed with http:// or https://"""

    api_key: str
    """Basic-auth user (private app API key)"""

    password: str
    """Basic-auth password"""

    port: Optional[int] = None
    """Optional port appended to the host"""

    theme_id: Optional[str] = None
    """Theme to scope asset requests to (legacy unscoped API if unset)"""

    base: Path = Path(".")
    """Local theme root"""

    rate_limit_delay: int = DEFAULT_RATE_LIMIT_DELAY
    """Delay between queued tasks in milliseconds"""

    timeout: float = DEFAULT_TIMEOUT
    """HTTP timeout in seconds"""

    disable_desktop_notifications: bool = False
    disable_console_log: bool = False

    @property
    def base_url(self) -> str:
        """Scheme, host and port of the shop."""
        url = self.url.rstrip("/")
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        if self.port:
            url = f"{url}:{self.port}"
        return url

    @property
    def delay_seconds(self) -> float:
        """Rate-limit delay in seconds."""
        return self.rate_limit_delay / 1000.0

    @property
    def base_path(self) -> Path:
        """Absolute local theme root."""
        return self.base.expanduser().resolve()


_INT_FIELDS = {"port", "rate_limit_delay"}
_FLOAT_FIELDS = {"timeout"}
_BOOL_FIELDS = {"disable_desktop_notifications", "disable_console_log"}
_REQUIRED_FIELDS = ("url", "api_key", "password")


def read_config_file(path: Path) -> dict[str, Any]:
    """Read raw settings from a JSON config file.

    Args:
        path: Path to the JSON file

    Returns:
        Dictionary of settings (empty if the file does not exist)

    Raises:
        ConfigError: If the file cannot be parsed or is not a JSON object
    """
    if not path.exists():
        logger.debug(f"Config file {path} not found, using defaults")
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not read config file {path}", str(e)) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    # Accept the "theme" spelling used by older config files
    if "theme" in data and "theme_id" not in data:
        data["theme_id"] = data.pop("theme")

    return data


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw setting to the type ThemeConfig expects."""
    if value is None:
        return None
    try:
        if name in _INT_FIELDS:
            return int(value)
        if name in _FLOAT_FIELDS:
            return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for '{name}'", repr(value)) from e
    if name in _BOOL_FIELDS:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if name == "base":
        return Path(value)
    if name == "theme_id":
        return str(value)
    return value


def build_config(settings: dict[str, Any]) -> ThemeConfig:
    """Validate raw settings and build a ThemeConfig.

    Raises:
        ConfigError: On unknown keys, missing required values or bad types
    """
    known = {f.name for f in fields(ThemeConfig)}
    unknown = sorted(set(settings) - known)
    if unknown:
        raise ConfigError("Unknown configuration keys", ", ".join(unknown))

    values = {
        name: _coerce(name, value)
        for name, value in settings.items()
        if value is not None
    }

    missing = [name for name in _REQUIRED_FIELDS if not values.get(name)]
    if missing:
        raise ConfigError("Missing required configuration", ", ".join(missing))

    if values.get("rate_limit_delay", 0) < 0:
        raise ConfigError("rate_limit_delay must not be negative")

    return ThemeConfig(**values)


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> ThemeConfig:
    """Load configuration from a JSON file and apply overrides.

    Overrides with a value of None are ignored, so unset command line
    options fall through to the file.

    Args:
        config_file: JSON file to read (defaults to ./shopify.json)
        **overrides: Settings taking precedence over the file

    Returns:
        Immutable ThemeConfig

    Examples:
        >>> config = load_config(url="shop.myshopify.com", api_key="k", password="p")
        >>> config.base_url
        'https://shop.myshopify.com'
    """
    path = Path(config_file) if config_file else Path(DEFAULT_CONFIG_FILE)
    settings = read_config_file(path)
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return build_config(settings)
