"""
Async façade over PageStore and BackupEngine.

Each call runs the blocking file I/O in a worker thread via
asyncio.to_thread(), so only the awaiting task suspends. Usage:

    store = AsyncPageStore(PageStore("data/pages"))
    page = await store.read("home")
    results = await asyncio.gather(*(store.read(i) for i in ids))
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Union

from pagestore.storage.backup import BackupEngine
from pagestore.storage.models import FileStats, PageSummary, RestoreResult
from pagestore.storage.store import PageStore


class AsyncPageStore:
    def __init__(self, store: PageStore):
        self._store = store
        self._backup = BackupEngine(store)

    @property
    def store(self) -> PageStore:
        return self._store

    async def read(self, page_id: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self._store.read, page_id)

    async def write(
        self, page_id: str, document: Dict[str, Any], must_not_exist: bool = False
    ) -> Dict[str, Any]:
        return await asyncio.to_thread(self._store.write, page_id, document, must_not_exist)

    async def delete(self, page_id: str, secure_wipe: bool = False) -> Dict[str, str]:
        return await asyncio.to_thread(self._store.delete, page_id, secure_wipe)

    async def exists(self, page_id: Any) -> bool:
        return await asyncio.to_thread(self._store.exists, page_id)

    async def list(self) -> List[PageSummary]:
        return await asyncio.to_thread(self._store.list)

    async def search(self, query: Optional[str]) -> List[PageSummary]:
        return await asyncio.to_thread(self._store.search, query)

    async def stats(self, page_id: str) -> FileStats:
        return await asyncio.to_thread(self._store.stats, page_id)

    async def export(self, page_id: str) -> str:
        return await asyncio.to_thread(self._store.export, page_id)

    async def import_page(self, data: Union[str, Dict[str, Any]], overwrite: bool = False) -> Dict[str, Any]:
        return await asyncio.to_thread(self._store.import_page, data, overwrite)

    async def backup_all(self) -> str:
        return await asyncio.to_thread(self._backup.backup_all)

    async def restore(self, bundle_text: str, overwrite: bool = False) -> RestoreResult:
        return await asyncio.to_thread(self._backup.restore, bundle_text, overwrite)
