"""Page document JSON codec."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Union

from pagestore.engine.errors import MalformedJsonError, MissingFieldError

REQUIRED_FIELDS = ("id", "title")


def validate_required(document: Dict[str, Any], page_id: Optional[str] = None, source: str = "Page data") -> None:
    """Raise MissingFieldError for the first required field that is absent or falsy."""
    for field in REQUIRED_FIELDS:
        if not document.get(field):
            raise MissingFieldError(
                f"{source} missing required field: {field}",
                field=field,
                page_id=page_id or document.get("id"),
            )


def dumps(value: Any) -> str:
    """Pretty-print a JSON value the way pages are stored on disk."""
    return json.dumps(value, indent=2, ensure_ascii=False)


def encode(document: Dict[str, Any]) -> bytes:
    return (dumps(document) + "\n").encode("utf-8")


def decode(data: Union[bytes, str], page_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Parse stored page bytes into a document dict.

    Raises:
        MalformedJsonError: not valid JSON, or not a JSON object.
        MissingFieldError: ``id`` or ``title`` is absent or empty.
    """
    try:
        document = json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedJsonError(f"Invalid JSON in page file: {page_id}", page_id=page_id, cause=e)

    if not isinstance(document, dict):
        raise MalformedJsonError(
            f"Page file does not contain a JSON object: {page_id}",
            page_id=page_id,
        )

    validate_required(document, page_id=page_id, source="Invalid page data")
    return document
