"""
PageStore Document Store — JSON-file persistence for pages.

Handles:
- Read/write/delete of one ``<id>.json`` file per page
- created/updated timestamp bookkeeping
- Full-scan list and search
- File stats, single-page export/import
- Secure wipe on delete

Physical storage:
    {storage.directory}/{page_id}.json

Writes go through write_atomically(); readers never see a partial file.
Within one process, writes to the same id are serialized by a per-id lock
held across the read-merge-write sequence. Across processes the last rename
wins.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from pagestore.engine.config import StorageConfig
from pagestore.engine.errors import (
    IdentifierMismatchError,
    InvalidDocumentError,
    MalformedJsonError,
    PageExistsError,
    PageNotFoundError,
    PageStoreError,
    StorageFailureError,
)
from pagestore.engine.logging import log, log_page_operation
from pagestore.storage import codec
from pagestore.storage.atomic import write_atomically
from pagestore.storage.models import FileStats, PageSummary
from pagestore.storage.paths import PAGE_EXTENSION, PathResolver

logger = logging.getLogger("pagestore.storage.store")

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_bytes(size: int) -> str:
    """Human-readable size: 0 -> '0 Bytes', 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    i = 0
    while value >= 1024 and i < len(_SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[i]}"


def _iso_from_timestamp(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class PageStore:
    """
    File-backed page store.

    Instantiated per storage directory. The sole persistence API for the
    route layer, PageService and BackupEngine.
    """

    def __init__(self, config: Union[StorageConfig, str, Path, None] = None):
        if config is None:
            config = StorageConfig()
        elif not isinstance(config, StorageConfig):
            config = StorageConfig(directory=str(config))
        self._config = config
        self._dir = Path(config.directory)
        self._resolver = PathResolver(self._dir, max_id_length=config.max_id_length)
        # resolved path -> [RLock, holders]; entries go away with their last holder
        self._locks: Dict[str, List[Any]] = {}
        self._locks_guard = threading.Lock()

    @property
    def storage_dir(self) -> Path:
        return self._dir

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    # -------------------------------------------------------------------
    # Directory management
    # -------------------------------------------------------------------

    def ensure_storage_dir(self) -> None:
        """Create the storage directory; concurrent callers all succeed."""
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailureError(
                f"Failed to create pages directory: {e}", cause=e, path=str(self._dir)
            ) from e

    @contextmanager
    def locked(self, page_id: str) -> Iterator[None]:
        """
        Hold the page's lock for a read-modify-write sequence.

        Reentrant, so store methods called inside the block take it again
        without deadlocking. Serializes this process only.
        """
        key = str(self._resolver.resolve(page_id))
        with self._locks_guard:
            entry = self._locks.setdefault(key, [threading.RLock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def _iter_page_files(self) -> Iterator[Path]:
        """Yield ``*.json`` files in the storage dir, sorted by name."""
        try:
            names = sorted(os.listdir(self._dir))
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageFailureError(f"Failed to list pages: {e}", cause=e) from e
        for name in names:
            if name.endswith(PAGE_EXTENSION):
                yield self._dir / name

    # -------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------

    def read(self, page_id: str) -> Dict[str, Any]:
        """
        Read and decode a page.

        Raises PageNotFoundError, MalformedJsonError, MissingFieldError,
        or StorageFailureError for any other I/O failure.
        """
        path = self._resolver.resolve(page_id)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            raise PageNotFoundError(f"Page not found: {page_id}", page_id=page_id)
        except OSError as e:
            raise StorageFailureError(f"Failed to read page: {e}", cause=e, page_id=page_id) from e
        return codec.decode(data, page_id=page_id)

    def write(
        self,
        page_id: str,
        document: Dict[str, Any],
        must_not_exist: bool = False,
    ) -> Dict[str, Any]:
        """
        Persist a full page, replacing any previous version.

        With ``must_not_exist`` a page already on disk raises PageExistsError;
        the check and the write happen under the page lock.

        metadata.updated is always set to now; metadata.created is carried
        over from the stored page, else taken from ``document``, else now.

        Returns the document actually written.
        """
        if not isinstance(document, dict):
            raise InvalidDocumentError("Page data must be an object", page_id=page_id)
        codec.validate_required(document, page_id=page_id)
        if document["id"] != page_id:
            raise IdentifierMismatchError(
                f"Page ID mismatch: expected '{page_id}', got '{document['id']}'",
                page_id=page_id,
                expected=page_id,
                actual=document["id"],
            )

        path = self._resolver.resolve(page_id)
        started = time.perf_counter()

        with self.locked(page_id):
            if must_not_exist and path.exists():
                raise PageExistsError(
                    f"Page already exists: {page_id}. Set overwrite=true to replace.",
                    page_id=page_id,
                )
            existing: Optional[Dict[str, Any]] = None
            try:
                existing = self.read(page_id)
            except PageNotFoundError:
                pass

            self.ensure_storage_dir()

            now = utc_now_iso()
            supplied = document.get("metadata")
            metadata = dict(supplied) if isinstance(supplied, dict) else {}
            metadata["updated"] = now
            prior = existing.get("metadata") if existing else None
            if isinstance(prior, dict) and prior.get("created"):
                metadata["created"] = prior["created"]
            elif not metadata.get("created"):
                metadata["created"] = now

            final = {**document, "metadata": metadata}
            try:
                write_atomically(
                    path,
                    codec.encode(final),
                    mode=self._config.file_mode,
                    temp_suffix=self._config.temp_suffix,
                )
            except PageStoreError as e:
                log(log_page_operation("write", page_id, False, error=e.message))
                raise

        elapsed = (time.perf_counter() - started) * 1000
        logger.debug(f"Wrote page '{page_id}' ({'new' if existing is None else 'update'}, {elapsed:.1f}ms)")
        log(log_page_operation("write", page_id, True, duration_ms=elapsed, created=existing is None))
        return final

    def delete(self, page_id: str, secure_wipe: bool = False) -> Dict[str, str]:
        """
        Delete a page file.

        With ``secure_wipe`` the file's bytes are first overwritten in place
        with random data and synced. This is best effort only: journaling
        filesystems and SSD wear-levelling can keep older copies.
        """
        path = self._resolver.resolve(page_id)
        with self.locked(page_id):
            try:
                if secure_wipe:
                    self._wipe(path)
                path.unlink()
            except FileNotFoundError:
                raise PageNotFoundError(f"Page not found: {page_id}", page_id=page_id)
            except OSError as e:
                log(log_page_operation("delete", page_id, False, error=str(e)))
                raise StorageFailureError(f"Failed to delete page: {e}", cause=e, page_id=page_id) from e

        logger.info(f"Deleted page '{page_id}'{' (secure wipe)' if secure_wipe else ''}")
        log(log_page_operation("delete", page_id, True, secure_wipe=secure_wipe))
        return {"id": page_id}

    @staticmethod
    def _wipe(path: Path) -> None:
        with open(path, "r+b") as f:
            size = os.fstat(f.fileno()).st_size
            f.write(secrets.token_bytes(size))
            f.flush()
            os.fsync(f.fileno())

    def exists(self, page_id: Any) -> bool:
        """True if the page file exists. Never raises."""
        try:
            return self._resolver.resolve(page_id).is_file()
        except (PageStoreError, OSError):
            return False

    # -------------------------------------------------------------------
    # Listing and search
    # -------------------------------------------------------------------

    def read_all(self) -> List[Tuple[str, Dict[str, Any]]]:
        """
        Read every decodable page in the storage dir.

        Unreadable files are skipped with a warning.
        """
        pages: List[Tuple[str, Dict[str, Any]]] = []
        for path in self._iter_page_files():
            page_id = self._resolver.page_id_for(path)
            try:
                pages.append((page_id, self.read(page_id)))
            except PageStoreError as e:
                logger.warning(f"Could not read page file {path.name}: {e.message}")
        return pages

    def list(self) -> List[PageSummary]:
        """Summaries of all pages, newest ``updated`` first."""
        summaries = [PageSummary.from_document(document) for _, document in self.read_all()]
        summaries.sort(key=PageSummary.updated_sort_key, reverse=True)
        return summaries

    def search(self, query: Optional[str]) -> List[PageSummary]:
        """Case-insensitive substring search over id, title and slug."""
        if not query or not isinstance(query, str):
            return self.list()
        needle = query.strip().lower()
        if not needle:
            return self.list()
        return [s for s in self.list() if s.matches(needle)]

    # -------------------------------------------------------------------
    # Utilities
    # -------------------------------------------------------------------

    def stats(self, page_id: str) -> FileStats:
        path = self._resolver.resolve(page_id)
        try:
            st = path.stat()
        except FileNotFoundError:
            raise PageNotFoundError(f"Page not found: {page_id}", page_id=page_id)
        except OSError as e:
            raise StorageFailureError(f"Failed to get page stats: {e}", cause=e, page_id=page_id) from e

        # st_birthtime only exists on some platforms; fall back to ctime
        born = getattr(st, "st_birthtime", st.st_ctime)
        return FileStats(
            page_id=page_id,
            size=st.st_size,
            size_formatted=format_bytes(st.st_size),
            created=_iso_from_timestamp(born),
            modified=_iso_from_timestamp(st.st_mtime),
            accessed=_iso_from_timestamp(st.st_atime),
            is_file=path.is_file(),
            permissions=format(st.st_mode & 0o777, "o"),
        )

    def cleanup_temp_files(self, older_than_seconds: float = 3600) -> int:
        """
        Remove temp files left behind by abandoned writes.

        Only files older than ``older_than_seconds`` are removed so in-flight
        writes are not disturbed. Returns the number removed.
        """
        suffix = self._config.temp_suffix
        cutoff = time.time() - older_than_seconds
        removed = 0
        try:
            names = os.listdir(self._dir)
        except FileNotFoundError:
            return 0
        for name in names:
            if not (name.endswith(suffix) and PAGE_EXTENSION + "." in name):
                continue
            path = self._dir / name
            try:
                if path.stat().st_mtime <= cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Could not remove temp file {name}: {e}")
        if removed:
            logger.info(f"Removed {removed} stale temp file(s) from {self._dir}")
        return removed

    # -------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------

    def export(self, page_id: str) -> str:
        return codec.dumps(self.read(page_id))

    def import_page(self, data: Union[str, Dict[str, Any]], overwrite: bool = False) -> Dict[str, Any]:
        """
        Import a page from JSON text or a dict.

        Raises PageExistsError when the id is taken and ``overwrite`` is False.
        """
        if isinstance(data, (str, bytes)):
            try:
                document = json.loads(data)
            except ValueError as e:
                raise MalformedJsonError("Invalid JSON data provided", cause=e)
        else:
            document = data

        if not isinstance(document, dict):
            raise InvalidDocumentError("Import data must be a JSON string or object")

        codec.validate_required(document, source="Import data")

        page_id = document["id"]
        saved = self.write(page_id, document, must_not_exist=not overwrite)
        log(log_page_operation("import", page_id, True, overwrite=overwrite))
        return saved

    def __repr__(self) -> str:
        return f"<PageStore dir='{self._dir}'>"
