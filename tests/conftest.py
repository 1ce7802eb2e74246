"""
PageStore Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset the global event log queue between tests."""
    import pagestore.engine.logging as log_mod

    monkeypatch.delenv("PAGESTORE_STORAGE_DIR", raising=False)
    log_mod.shutdown_logging()
    yield
    log_mod.shutdown_logging()


@pytest.fixture
def storage_dir(tmp_path) -> Path:
    """Storage directory path (not created — the store creates it on demand)."""
    return tmp_path / "data" / "pages"


@pytest.fixture
def store(storage_dir):
    from pagestore.storage.store import PageStore

    return PageStore(storage_dir)


@pytest.fixture
def backup_engine(store):
    from pagestore.storage.backup import BackupEngine

    return BackupEngine(store)


@pytest.fixture
def page_service(store):
    from pagestore.pages.service import PageService

    return PageService(store)


@pytest.fixture
def write_raw(storage_dir):
    """Write a file straight into the storage dir, bypassing the store."""

    def _write(name: str, content: Any) -> Path:
        storage_dir.mkdir(parents=True, exist_ok=True)
        path = storage_dir / name
        if isinstance(content, (dict, list)):
            content = json.dumps(content)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def project_root(tmp_path):
    """
    Create a minimal project tree with pagestore.yaml.
    Returns the root Path.
    """
    root = tmp_path / "project"
    root.mkdir()
    (root / "pagestore.yaml").write_text(
        "storage:\n"
        "  directory: content/pages\n"
        "  file_mode: '0600'\n"
        "  max_id_length: 64\n"
        "logging:\n"
        "  level: debug\n"
        "  directory: logs\n"
        "backup:\n"
        "  directory: backups\n",
        encoding="utf-8",
    )
    return root
