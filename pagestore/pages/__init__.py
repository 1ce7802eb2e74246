"""
PageStore page editing.

PageService performs the read-merge-write edits (create, update,
sections, attachments) over a PageStore.
"""

from pagestore.pages.service import PageService
from pagestore.pages.validators import PAGE_STATUSES, generate_slug

__all__ = [
    "PAGE_STATUSES",
    "PageService",
    "generate_slug",
]
