"""
PageStore — JSON-file page storage for a small CMS backend.

Each page is one ``<id>.json`` file, written atomically. The public entry
points:

    from pagestore.storage import PageStore, BackupEngine, AsyncPageStore
    from pagestore.pages import PageService
"""

__version__ = "1.0.0"
__all__ = ["engine", "storage", "pages", "cli"]
