"""
PageStore Error Hierarchy — Kinded exceptions for the page storage engine.

Every error carries an ``ErrorKind`` so callers can choose a response
(HTTP status, CLI exit code) without inspecting message text. Messages stay
human-readable for logs.

Hierarchy:
    PageStoreError
    ├── InvalidIdentifierError   — id fails format/length rules
    ├── PathTraversalError       — resolved path escapes the storage dir
    ├── PageNotFoundError        — target page does not exist
    ├── PageExistsError          — create/import without overwrite hits an existing id
    ├── IdentifierMismatchError  — body id differs from target id
    ├── MalformedJsonError       — stored or supplied JSON does not parse
    ├── MissingFieldError        — required field absent or empty
    ├── InvalidDocumentError     — document is not a JSON object
    ├── InvalidBackupFormatError — bundle lacks version/pages
    ├── WriteFailedError         — atomic write failed
    ├── StorageFailureError      — other filesystem failure
    ├── PageStoreConfigError     — invalid pagestore.yaml
    └── ValidationError          — page field rule violated (slug, status, title)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    INVALID_IDENTIFIER = "invalid_identifier"
    PATH_TRAVERSAL = "path_traversal"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    IDENTIFIER_MISMATCH = "identifier_mismatch"
    MALFORMED_JSON = "malformed_json"
    MISSING_FIELD = "missing_field"
    INVALID_DOCUMENT = "invalid_document"
    INVALID_BACKUP_FORMAT = "invalid_backup_format"
    WRITE_FAILED = "write_failed"
    STORAGE_FAILURE = "storage_failure"
    CONFIG = "config"
    VALIDATION = "validation"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_IDENTIFIER: 400,
    ErrorKind.PATH_TRAVERSAL: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_EXISTS: 409,
    ErrorKind.IDENTIFIER_MISMATCH: 400,
    ErrorKind.MALFORMED_JSON: 400,
    ErrorKind.MISSING_FIELD: 400,
    ErrorKind.INVALID_DOCUMENT: 400,
    ErrorKind.INVALID_BACKUP_FORMAT: 400,
    ErrorKind.WRITE_FAILED: 500,
    ErrorKind.STORAGE_FAILURE: 500,
    ErrorKind.CONFIG: 500,
    ErrorKind.VALIDATION: 400,
}


class PageStoreError(Exception):
    """
    Base error for all PageStore failures.
    Structured for logging — all context serializable to JSON.
    """

    kind: ErrorKind = ErrorKind.STORAGE_FAILURE

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.page_id: Optional[str] = context.get("page_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for structured logs."""
        return {
            "error_type": self.error_type,
            "kind": self.kind.value,
            "message": self.message,
            "page_id": self.page_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k != "page_id"
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.page_id:
            parts.append(f"page_id={self.page_id}")
        return " | ".join(parts)


class InvalidIdentifierError(PageStoreError):
    """Page id is empty, too long, not a string, or has disallowed characters."""
    kind = ErrorKind.INVALID_IDENTIFIER


class PathTraversalError(PageStoreError):
    """
    Resolved path is not strictly inside the storage directory.
    Logged to the security event category.
    """
    kind = ErrorKind.PATH_TRAVERSAL

    def __init__(self, message: str, **context: Any):
        self.resolved_path: Optional[str] = context.get("resolved_path")
        super().__init__(message, **context)


class PageNotFoundError(PageStoreError):
    kind = ErrorKind.NOT_FOUND


class PageExistsError(PageStoreError):
    kind = ErrorKind.ALREADY_EXISTS


class IdentifierMismatchError(PageStoreError):
    kind = ErrorKind.IDENTIFIER_MISMATCH

    def __init__(self, message: str, **context: Any):
        self.expected: Optional[str] = context.get("expected")
        self.actual: Optional[Any] = context.get("actual")
        super().__init__(message, **context)


class MalformedJsonError(PageStoreError):
    kind = ErrorKind.MALFORMED_JSON


class MissingFieldError(PageStoreError):
    """A required page field is absent or empty. ``field`` names it."""
    kind = ErrorKind.MISSING_FIELD

    def __init__(self, message: str, **context: Any):
        self.field: Optional[str] = context.get("field")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        return d


class InvalidDocumentError(PageStoreError):
    kind = ErrorKind.INVALID_DOCUMENT


class InvalidBackupFormatError(PageStoreError):
    kind = ErrorKind.INVALID_BACKUP_FORMAT


class _CausedError(PageStoreError):
    """Wraps a lower-level I/O error, kept as ``cause``."""

    def __init__(self, message: str, **context: Any):
        self.cause: Optional[BaseException] = context.get("cause")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["cause"] = repr(self.cause) if self.cause is not None else None
        return d


class WriteFailedError(_CausedError):
    kind = ErrorKind.WRITE_FAILED


class StorageFailureError(_CausedError):
    kind = ErrorKind.STORAGE_FAILURE


class PageStoreConfigError(PageStoreError):
    """Configuration error — invalid pagestore.yaml."""
    kind = ErrorKind.CONFIG


class ValidationError(PageStoreError):
    """
    Page field rule violated (slug format, status value, title length).
    Includes field-level error details.
    """
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, **context: Any):
        self.field: Optional[str] = context.get("field")
        super().__init__(message, **context)
