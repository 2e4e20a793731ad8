"""Exception hierarchy for the easy-read API.

Every error carries the HTTP status it maps to so the API layer can render it
without per-route branching.
"""

from __future__ import annotations

from typing import Any


class EasyReadError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class DocumentNotFoundError(EasyReadError):
    """Raised when no document exists for the requested id."""

    status_code = 404

    def __init__(self, document_id: str) -> None:
        super().__init__("Document not found", {"document_id": document_id})
        self.document_id = document_id


class DuplicateDocumentError(EasyReadError):
    """Raised when an id factory hands out an id that is already stored."""

    status_code = 500

    def __init__(self, document_id: str) -> None:
        super().__init__("Document id already in use", {"document_id": document_id})


class MissingUploadError(EasyReadError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("No file uploaded")


class UnsupportedUploadTypeError(EasyReadError):
    """Raised when an upload's MIME type is outside the endpoint's allow-list."""

    status_code = 400

    def __init__(self, message: str, content_type: str | None) -> None:
        super().__init__(message, {"content_type": content_type})
        self.content_type = content_type


class PayloadTooLargeError(EasyReadError):
    status_code = 413

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(
            f"Payload exceeds the {limit_bytes} byte limit",
            {"limit_bytes": limit_bytes},
        )


class RateLimitExceededError(EasyReadError):
    status_code = 429

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(
            "Too many requests, please try again later.",
            {"retry_after_seconds": retry_after_seconds},
        )
        self.retry_after_seconds = retry_after_seconds


class ExtractionError(EasyReadError):
    """Raised when a wrapped PDF or OCR library fails.

    `message` is the generic text shown to clients; the underlying exception is
    chained as `__cause__` and logged server-side.
    """

    status_code = 500


class InvalidInputError(EasyReadError):
    """Raised when a request passes schema parsing but breaks a configured limit."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(f"{field}: {message}" if field else message, {"field": field})
        self.field = field
