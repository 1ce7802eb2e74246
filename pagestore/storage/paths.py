"""
Path resolution for page ids.

A page id becomes ``<storage_dir>/<id>.json`` only after two independent
checks: a format whitelist on the id, and a canonical-containment check on
the resulting path.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Union

from pagestore.engine.errors import InvalidIdentifierError, PathTraversalError
from pagestore.engine.logging import log, log_security_event

logger = logging.getLogger("pagestore.storage.paths")

PAGE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MAX_PAGE_ID_LENGTH = 100
PAGE_EXTENSION = ".json"


class PathResolver:
    """Maps page ids to confined absolute file paths."""

    def __init__(
        self,
        storage_dir: Union[str, Path],
        max_id_length: int = MAX_PAGE_ID_LENGTH,
    ):
        self._storage_dir = Path(storage_dir)
        self._max_id_length = max_id_length

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def validate_id(self, page_id: Any) -> str:
        """Return the trimmed id, or raise InvalidIdentifierError."""
        if not page_id or not isinstance(page_id, str):
            raise InvalidIdentifierError("Page ID must be a non-empty string", page_id=page_id)

        trimmed = page_id.strip()
        if not trimmed or len(trimmed) > self._max_id_length:
            raise InvalidIdentifierError(
                f"Page ID must be between 1 and {self._max_id_length} characters",
                page_id=page_id,
            )

        if not PAGE_ID_PATTERN.match(trimmed):
            raise InvalidIdentifierError(
                "Page ID can only contain letters, numbers, hyphens, and underscores",
                page_id=page_id,
            )
        return trimmed

    def resolve(self, page_id: Any) -> Path:
        """
        Resolve a page id to its absolute file path.

        Raises:
            InvalidIdentifierError: id fails the format or length rules.
            PathTraversalError: canonical path is not inside the storage dir.
        """
        trimmed = self.validate_id(page_id)
        candidate = os.path.realpath(os.path.join(self._storage_dir, trimmed + PAGE_EXTENSION))
        self.ensure_contained(candidate, page_id=trimmed)
        return Path(candidate)

    def ensure_contained(self, path: Union[str, Path], page_id: Any = None) -> None:
        """Raise PathTraversalError unless ``path`` lies strictly inside the storage dir."""
        root = os.path.realpath(self._storage_dir)
        resolved = os.path.realpath(path)
        # Prefix match on root + separator so "/data/pages-evil" never passes for "/data/pages"
        if not resolved.startswith(root + os.sep):
            logger.warning(f"Path traversal rejected: id={page_id!r} resolved={resolved}")
            log(log_security_event("path_traversal", page_id, detail=resolved))
            raise PathTraversalError(
                "Invalid page ID: path traversal detected",
                page_id=page_id,
                resolved_path=resolved,
            )

    def page_id_for(self, path: Union[str, Path]) -> str:
        """Inverse of resolve() for a file found by directory scan."""
        name = Path(path).name
        return name[: -len(PAGE_EXTENSION)] if name.endswith(PAGE_EXTENSION) else name

    def __repr__(self) -> str:
        return f"<PathResolver dir='{self._storage_dir}'>"
