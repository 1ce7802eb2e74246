"""
PageStore Models — Pydantic projections of stored pages.

Page documents themselves stay plain dicts (open JSON) so caller-defined
keys round-trip untouched. These models cover the derived shapes:

PageSummary: list/search projection.
FileStats: on-disk file statistics.
BackupBundle: full-store export envelope.
RestoreResult: per-batch restore outcome.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

BACKUP_VERSION = "1.0"
_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class PageSummary(BaseModel):
    """Reduced view of a page returned by list() and search()."""

    id: str
    title: str
    slug: Optional[str] = None
    status: str = "draft"
    created: Optional[str] = None
    updated: Optional[str] = None
    generator: Optional[str] = None

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "PageSummary":
        """
        Project a stored page. Never fails on value types: id and title are
        stringified, other non-string values become None (status: draft).
        """
        metadata = document.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        return cls(
            id=str(document["id"]),
            title=str(document["title"]),
            slug=_text(document.get("slug")),
            status=_text(document.get("status")) or "draft",
            created=_text(metadata.get("created")),
            updated=_text(metadata.get("updated")),
            generator=_text(document.get("generator")),
        )

    def updated_sort_key(self) -> datetime:
        """Parsed ``updated``; missing or unparseable values sort as the epoch."""
        if not self.updated:
            return _EPOCH
        try:
            value = datetime.fromisoformat(self.updated.replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match on id, title and slug; ``needle`` is lowercase."""
        return any(
            needle in str(value).lower()
            for value in (self.id, self.title, self.slug)
            if value
        )


class FileStats(BaseModel):
    page_id: str
    size: int
    size_formatted: str
    created: str
    modified: str
    accessed: str
    is_file: bool
    permissions: str


class BackupBundle(BaseModel):
    """Envelope produced by backup_all() and consumed by restore()."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = BACKUP_VERSION
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    page_count: int = Field(default=0, alias="pageCount")
    pages: List[Dict[str, Any]] = Field(default_factory=list)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class RestoreError(BaseModel):
    id: Optional[Any] = None
    message: str


class RestoreResult(BaseModel):
    total: int = 0
    restored: int = 0
    skipped: int = 0
    errors: List[RestoreError] = Field(default_factory=list)
