"""
Integration test fixtures — a configured project tree on the real filesystem.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: cross-module workflows on a real filesystem")


@pytest.fixture
def integration_project(tmp_path):
    """Project tree with pagestore.yaml and the event log enabled."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "pagestore.yaml").write_text(
        "storage:\n"
        "  directory: data/pages\n"
        "logging:\n"
        "  level: info\n"
        "  directory: .pagestore/logs\n"
        "  flush_interval_ms: 10\n"
        "backup:\n"
        "  directory: data/backups\n",
        encoding="utf-8",
    )
    return root
