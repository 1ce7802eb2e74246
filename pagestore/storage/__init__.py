"""
PageStore storage engine.

One JSON file per page under the storage directory, written atomically.
"""

from pagestore.storage.aio import AsyncPageStore
from pagestore.storage.atomic import write_atomically
from pagestore.storage.backup import BackupEngine
from pagestore.storage.models import BackupBundle, FileStats, PageSummary, RestoreError, RestoreResult
from pagestore.storage.paths import PathResolver
from pagestore.storage.store import PageStore, format_bytes

__all__ = [
    "AsyncPageStore",
    "BackupBundle",
    "BackupEngine",
    "FileStats",
    "PageStore",
    "PageSummary",
    "PathResolver",
    "RestoreError",
    "RestoreResult",
    "format_bytes",
    "write_atomically",
]
