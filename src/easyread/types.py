"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class DocumentType(str, Enum):
    """Where a document's text came from."""

    TEXT = "text"
    PDF = "pdf"
    IMAGE = "image"


@dataclass(slots=True, frozen=True)
class DocumentRecord:
    """A stored library entry. Records are never mutated after creation."""

    id: str
    title: str
    type: DocumentType
    text: str
    note: str | None
    snippet: str
    created_at: datetime
    size_bytes: int | None = None

    def to_summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "createdAt": self.created_at.isoformat(),
            "sizeBytes": self.size_bytes,
            "note": self.note,
            "snippet": self.snippet,
        }

    def to_full(self) -> dict[str, Any]:
        payload = self.to_summary()
        payload["text"] = self.text
        return payload


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """Text recovered by an ingestion adapter plus an optional user-facing note."""

    text: str
    note: str | None


@dataclass(slots=True, frozen=True)
class Upload:
    """An uploaded file held fully in memory for one request."""

    filename: str | None
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)
