"""
PageStore Page Service — page-level edits on top of the document store.

The store only does full-document replace. This service performs the
read-merge-write steps that callers (route handlers, the upload layer)
need:
- create with defaults (status draft, empty sections, generated slug)
- field update with metadata merge
- section append/remove with order renumbering
- attachment append/remove
"""

from __future__ import annotations

import copy
import logging
import secrets
import time
from typing import Any, Dict, List, Optional, Tuple

from pagestore.engine.errors import InvalidDocumentError, PageNotFoundError
from pagestore.pages.validators import (
    DEFAULT_STATUS,
    generate_slug,
    validate_slug,
    validate_status,
    validate_title,
)
from pagestore.storage.store import PageStore, utc_now_iso

logger = logging.getLogger("pagestore.pages.service")

ANONYMOUS = "anonymous"


def new_section_id() -> str:
    return f"section-{int(time.time() * 1000)}-{secrets.token_hex(5)}"


def _sections(page: Dict[str, Any]) -> List[Dict[str, Any]]:
    content = page.get("content")
    if not isinstance(content, dict):
        content = {}
        page["content"] = content
    sections = content.get("sections")
    if not isinstance(sections, list):
        sections = []
        content["sections"] = sections
    return sections


class PageService:
    """Page editing operations. Every mutation is one PageStore.write()."""

    def __init__(self, store: PageStore):
        self._store = store

    @property
    def store(self) -> PageStore:
        return self._store

    def create_page(
        self,
        page_id: str,
        title: str,
        slug: Optional[str] = None,
        generator: Optional[str] = None,
        content: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        author: str = ANONYMOUS,
    ) -> Dict[str, Any]:
        """
        Create a new draft page.

        Raises PageExistsError if ``page_id`` is taken.
        """
        title = validate_title(title)
        page = {
            "id": page_id,
            "title": title,
            "slug": validate_slug(slug) or generate_slug(title) or None,
            "generator": generator,
            "status": DEFAULT_STATUS,
            "content": copy.deepcopy(content) if content is not None else {"sections": []},
            "metadata": {**(metadata or {}), "author": author},
            "attachments": [],
        }
        saved = self._store.write(page_id, page, must_not_exist=True)
        logger.info(f"Created page '{page_id}'")
        return saved

    def update_page(
        self,
        page_id: str,
        title: Optional[str] = None,
        slug: Optional[str] = None,
        content: Optional[Dict[str, Any]] = None,
        status: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        updated_by: str = ANONYMOUS,
    ) -> Dict[str, Any]:
        """Apply the given fields to an existing page; metadata is shallow-merged."""
        if title is not None:
            title = validate_title(title)
        if slug is not None:
            slug = validate_slug(slug)
        if status is not None:
            status = validate_status(status)

        with self._store.locked(page_id):
            page = self._store.read(page_id)
            if title is not None:
                page["title"] = title
            if slug is not None:
                page["slug"] = slug
            if content is not None:
                page["content"] = copy.deepcopy(content)
            if status is not None:
                page["status"] = status

            current = page.get("metadata") if isinstance(page.get("metadata"), dict) else {}
            page["metadata"] = {**current, **(metadata or {}), "updatedBy": updated_by}
            return self._store.write(page_id, page)

    # -------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------

    def add_section(
        self,
        page_id: str,
        section_type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Append a section; returns (section, saved page)."""
        if not section_type or not isinstance(section_type, str):
            raise InvalidDocumentError("Section type is required", page_id=page_id)

        with self._store.locked(page_id):
            page = self._store.read(page_id)
            sections = _sections(page)
            section = {
                "id": new_section_id(),
                "type": section_type,
                "data": data or {},
                "order": len(sections),
                "createdAt": utc_now_iso(),
            }
            sections.append(section)
            return section, self._store.write(page_id, page)

    def remove_section(self, page_id: str, section_id: str) -> Dict[str, Any]:
        """Remove a section and renumber the remaining ``order`` values."""
        with self._store.locked(page_id):
            page = self._store.read(page_id)
            sections = _sections(page)
            remaining = [s for s in sections if not (isinstance(s, dict) and s.get("id") == section_id)]
            if len(remaining) == len(sections):
                raise PageNotFoundError(f"Section '{section_id}' not found", page_id=page_id, section_id=section_id)

            for index, section in enumerate(remaining):
                if isinstance(section, dict):
                    section["order"] = index
            page["content"]["sections"] = remaining
            return self._store.write(page_id, page)

    # -------------------------------------------------------------------
    # Attachments (metadata supplied by the upload layer, stored as-is)
    # -------------------------------------------------------------------

    def add_attachment(self, page_id: str, attachment: Dict[str, Any]) -> Dict[str, Any]:
        with self._store.locked(page_id):
            page = self._store.read(page_id)
            attachments = page.get("attachments")
            if not isinstance(attachments, list):
                attachments = []
            page["attachments"] = [*attachments, attachment]
            return self._store.write(page_id, page)

    def remove_attachment(self, page_id: str, filename: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Remove the attachment with ``filename``; returns (attachment, saved page)."""
        with self._store.locked(page_id):
            page = self._store.read(page_id)
            attachments = page.get("attachments")
            if not isinstance(attachments, list):
                attachments = []

            for index, attachment in enumerate(attachments):
                if isinstance(attachment, dict) and attachment.get("filename") == filename:
                    removed = attachments.pop(index)
                    page["attachments"] = attachments
                    return removed, self._store.write(page_id, page)

        raise PageNotFoundError(
            f"File '{filename}' not found in page attachments",
            page_id=page_id,
            filename=filename,
        )

    def __repr__(self) -> str:
        return f"<PageService store={self._store!r}>"
