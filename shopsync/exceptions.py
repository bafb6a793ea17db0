"""Exception hierarchy for shopsync."""

from typing import Optional


class ShopSyncError(Exception):
    """Base exception for all shopsync errors."""

    error_type = "ShopSyncError"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class ConfigError(ShopSyncError):
    """Configuration is missing or invalid."""

    error_type = "ConfigError"


class InvalidPathError(ShopSyncError):
    """Local path is outside the theme base or the directory whitelist."""

    error_type = "InvalidPathError"

    def __init__(self, path: str, reason: str = "not a theme asset path"):
        super().__init__(f"Invalid theme path {path}", reason)
        self.path = path


class RemoteRejectionError(ShopSyncError):
    """The API answered with an HTTP status >= 400."""

    def __init__(
        self,
        status_code: int,
        error_type: str = "ShopifyAPIError",
        detail: Optional[str] = None,
    ):
        super().__init__(
            f"{error_type} (Status Code: {status_code})",
            detail,
        )
        self.status_code = status_code
        self.error_type = error_type


class TransportError(ShopSyncError):
    """Connection, DNS or timeout failure before a response arrived."""

    error_type = "TransportError"


class MalformedResponseError(ShopSyncError):
    """Response body is not JSON or lacks a required field."""

    PARSE_ERROR = "ParseError"
    INCOMPLETE_RESPONSE = "IncompleteResponse"

    def __init__(
        self,
        message: str,
        error_type: str = "ParseError",
        detail: Optional[str] = None,
    ):
        super().__init__(message, detail)
        self.error_type = error_type


class UnknownActionError(ShopSyncError):
    """A queued task names an action the queue does not know."""

    error_type = "UnknownActionError"

    def __init__(self, action: str):
        super().__init__(f"Unknown queue action '{action}'")
        self.action = action


class LocalFileError(ShopSyncError):
    """Reading or writing a local theme file failed."""

    error_type = "LocalFileError"
