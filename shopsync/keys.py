"""Mapping between local theme file paths and remote asset keys."""

import logging
import os
from pathlib import Path
from typing import Union
from urllib.parse import quote, unquote

from .exceptions import InvalidPathError
from .utils import THEME_DIRECTORIES

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def encode_key(key: str) -> str:
    """URI-encode a plain asset key, keeping the slashes."""
    return quote(key, safe="/")


def decode_key(key: str) -> str:
    """Turn an encoded asset key back into the plain key the API stores."""
    return unquote(key)


class AssetKeyMapper:
    """Converts local paths under the theme root into asset keys.

    A local path such as ``shop/assets/site.css`` maps to the asset key
    ``assets/site.css`` when ``shop`` is the base directory. Only paths
    whose first segment is one of the theme directories are accepted.

    Examples:
        >>> mapper = AssetKeyMapper(Path("/work/shop"))
        >>> mapper.make_asset_key("/work/shop/assets/my logo.png")
        'assets/my%20logo.png'
        >>> mapper.is_valid_path("/work/shop/random/z.txt")
        False
    """

    def __init__(
        self,
        base: Path,
        directories: tuple[str, ...] = THEME_DIRECTORIES,
    ):
        self.base = Path(base).expanduser().resolve()
        self.directories = tuple(d.lower() for d in directories)

    def _relative(self, path: PathLike) -> str:
        """Return the forward-slash path relative to the base.

        Raises:
            InvalidPathError: If the path is not strictly inside the base
        """
        resolved = Path(path).expanduser().resolve()
        try:
            relative = resolved.relative_to(self.base)
        except ValueError:
            raise InvalidPathError(
                str(path), f"outside of theme directory {self.base}"
            ) from None

        relative_path = relative.as_posix().lstrip("/")
        if relative_path in ("", "."):
            raise InvalidPathError(str(path), "is the theme directory itself")
        return relative_path

    def is_valid_path(self, path: PathLike) -> bool:
        """Check that a path is inside the base and under a theme directory."""
        try:
            relative_path = self._relative(path)
        except InvalidPathError:
            return False

        top = relative_path.split("/", 1)[0].lower()
        return top in self.directories and "/" in relative_path

    def make_asset_key(self, path: PathLike) -> str:
        """Derive the URI-encoded asset key for a local path.

        Args:
            path: Absolute or relative (to the working directory) local path

        Returns:
            Asset key such as ``templates/customers/login.liquid``

        Raises:
            InvalidPathError: If ``is_valid_path`` rejects the path
        """
        if not self.is_valid_path(path):
            logger.debug(f"Rejecting non-theme path: {path}")
            raise InvalidPathError(str(path))
        return encode_key(self._relative(path))

    def local_path_for_key(self, key: str) -> Path:
        """Return the local destination for a remote asset key.

        Raises:
            InvalidPathError: If the key would land outside the base
        """
        plain = decode_key(key).lstrip("/")
        destination = Path(os.path.normpath(self.base / plain))
        try:
            destination.relative_to(self.base)
        except ValueError:
            raise InvalidPathError(
                key, "asset key escapes the theme directory"
            ) from None
        if destination == self.base:
            raise InvalidPathError(key, "empty asset key")
        return destination
