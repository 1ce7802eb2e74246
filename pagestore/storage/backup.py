"""
PageStore Backup/Restore — whole-store export into one JSON bundle and
best-effort restore back into the store.

Bundle format:
    {"version": "1.0", "timestamp": ..., "pageCount": n, "pages": [...]}

Restore never aborts on a single bad page: conflicts are counted as
skipped, other failures are recorded per page and the batch continues.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from pagestore.engine.errors import (
    InvalidBackupFormatError,
    PageExistsError,
    PageStoreError,
    StorageFailureError,
)
from pagestore.engine.logging import log, log_page_operation
from pagestore.storage import codec
from pagestore.storage.atomic import write_atomically
from pagestore.storage.models import BACKUP_VERSION, BackupBundle, RestoreError, RestoreResult
from pagestore.storage.store import PageStore

logger = logging.getLogger("pagestore.storage.backup")


class BackupEngine:
    """Batch client of a PageStore for backup and restore."""

    def __init__(self, store: PageStore):
        self._store = store

    def build_bundle(self) -> BackupBundle:
        pages = [document for _, document in self._store.read_all()]
        return BackupBundle(
            version=BACKUP_VERSION,
            timestamp=datetime.now(timezone.utc).isoformat(),
            page_count=len(pages),
            pages=pages,
        )

    def backup_all(self) -> str:
        """Serialize every readable page into a pretty-printed bundle."""
        bundle = self.build_bundle()
        logger.info(f"Backup created: {bundle.page_count} page(s)")
        return codec.dumps(bundle.to_json_dict())

    def restore(self, bundle_text: Union[str, bytes], overwrite: bool = False) -> RestoreResult:
        """
        Import every page in a bundle.

        Raises InvalidBackupFormatError if the bundle does not parse or lacks
        ``version`` / a ``pages`` list. Per-page failures go into the result.
        """
        try:
            raw = json.loads(bundle_text)
        except ValueError as e:
            raise InvalidBackupFormatError("Invalid backup JSON data", cause=e)

        if not isinstance(raw, dict) or not raw.get("version") or not isinstance(raw.get("pages"), list):
            raise InvalidBackupFormatError("Invalid backup format: missing version or pages array")

        pages = raw["pages"]
        result = RestoreResult(total=len(pages))

        for page in pages:
            page_id = page.get("id") if isinstance(page, dict) else None
            try:
                self._store.import_page(page, overwrite=overwrite)
                result.restored += 1
            except PageExistsError:
                result.skipped += 1
            except PageStoreError as e:
                logger.warning(f"Restore failed for page {page_id!r}: {e.message}")
                result.errors.append(RestoreError(id=page_id, message=e.message))

        logger.info(
            f"Restore complete: {result.restored} restored, {result.skipped} skipped, "
            f"{len(result.errors)} error(s) of {result.total}"
        )
        log(log_page_operation(
            "restore", None, not result.errors,
            total=result.total, restored=result.restored,
            skipped=result.skipped, errors=len(result.errors),
        ))
        return result

    # -------------------------------------------------------------------
    # File helpers
    # -------------------------------------------------------------------

    def write_backup_file(self, path: Union[str, Path, None] = None, directory: Optional[str] = None) -> Path:
        """
        Write a backup bundle to ``path`` (or a timestamped file in
        ``directory``) atomically. Returns the path written.
        """
        if path is None:
            if directory is None:
                raise ValueError("either path or directory is required")
            stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            path = Path(directory) / f"pages_backup_{stamp}.json"
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailureError(f"Failed to create backup directory: {e}", cause=e) from e
        write_atomically(path, (self.backup_all() + "\n").encode("utf-8"))
        return path

    def restore_file(self, path: Union[str, Path], overwrite: bool = False) -> RestoreResult:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise InvalidBackupFormatError(f"Backup file is not UTF-8 text: {path}", cause=e) from e
        except OSError as e:
            raise StorageFailureError(f"Failed to read backup file: {e}", cause=e, path=str(path)) from e
        return self.restore(text, overwrite=overwrite)

    def __repr__(self) -> str:
        return f"<BackupEngine store={self._store!r}>"
