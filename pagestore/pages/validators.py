"""Field rules for page titles, slugs and status values."""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Optional

from pagestore.engine.errors import ValidationError

PAGE_STATUSES = ("draft", "published", "archived")
DEFAULT_STATUS = "draft"

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
MAX_TITLE_LENGTH = 200
MAX_SLUG_LENGTH = 150


def generate_slug(title: str) -> str:
    """'Hello, World!' -> 'hello-world'."""
    text = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return text.strip("-")[:MAX_SLUG_LENGTH].rstrip("-")


def validate_title(title: Any, max_length: int = MAX_TITLE_LENGTH) -> str:
    if not title or not isinstance(title, str):
        raise ValidationError("Title is required", field="title")
    trimmed = title.strip()
    if not trimmed:
        raise ValidationError("Title cannot be empty", field="title")
    if len(trimmed) > max_length:
        raise ValidationError(f"Title must not exceed {max_length} characters", field="title")
    return trimmed


def validate_slug(slug: Any) -> Optional[str]:
    """Normalize a slug; empty values become None."""
    if not slug:
        return None
    if not isinstance(slug, str):
        raise ValidationError("Slug must be a string", field="slug")
    trimmed = slug.strip().lower()
    if len(trimmed) > MAX_SLUG_LENGTH:
        raise ValidationError(f"Slug must not exceed {MAX_SLUG_LENGTH} characters", field="slug")
    if not SLUG_PATTERN.match(trimmed):
        raise ValidationError("Slug must be lowercase with hyphens only", field="slug")
    return trimmed


def validate_status(status: Any) -> str:
    if status not in PAGE_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(PAGE_STATUSES)}",
            field="status",
        )
    return status
