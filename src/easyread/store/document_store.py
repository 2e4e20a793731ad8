"""Document store interfaces and the in-memory implementation."""

from __future__ import annotations

import itertools
import logging
import re
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from easyread.config import StoreConfig
from easyread.errors import DocumentNotFoundError, DuplicateDocumentError
from easyread.types import DocumentRecord, DocumentType

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

_DEFAULT_TITLE_PREFIX = {
    DocumentType.TEXT: "Note",
    DocumentType.PDF: "Document",
    DocumentType.IMAGE: "Image",
}


class DocumentStore(Protocol):
    """Minimal document store contract used by the API and ingestion layers."""

    def create(
        self,
        *,
        type: DocumentType,
        text: str | None,
        title: str | None = None,
        note: str | None = None,
        size_bytes: int | None = None,
    ) -> DocumentRecord:
        """Insert a new record and return it."""

    def list(self) -> list[DocumentRecord]:
        """Return all records, newest first."""

    def get(self, document_id: str) -> DocumentRecord:
        """Return one record or raise `DocumentNotFoundError`."""

    def delete(self, document_id: str) -> None:
        """Remove one record or raise `DocumentNotFoundError`."""


@dataclass(slots=True)
class _StoredDocument:
    record: DocumentRecord
    sequence: int


class InMemoryDocumentStore:
    """Process-lifetime document store backed by a dict.

    Inserts and deletes are single dict operations under a lock, so readers
    never see a half-written record. Nothing survives a restart.
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.config = config or StoreConfig()
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _new_id
        self._store: dict[str, _StoredDocument] = {}
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    def create(
        self,
        *,
        type: DocumentType,
        text: str | None,
        title: str | None = None,
        note: str | None = None,
        size_bytes: int | None = None,
    ) -> DocumentRecord:
        document_type = DocumentType(type)
        document_id = self._id_factory()
        body = clamp(text or "", self.config.max_text_chars)

        record = DocumentRecord(
            id=document_id,
            title=(title or "").strip() or default_title(document_type, document_id),
            type=document_type,
            text=body,
            note=note or ("Added manually." if document_type is DocumentType.TEXT else None),
            snippet=to_snippet(body, self.config.snippet_chars) if body else "",
            created_at=self._clock(),
            size_bytes=size_bytes if isinstance(size_bytes, int) else None,
        )

        with self._lock:
            if document_id in self._store:
                raise DuplicateDocumentError(document_id)
            self._store[document_id] = _StoredDocument(record=record, sequence=next(self._sequence))

        logger.info(
            "Stored document id=%s type=%s chars=%d",
            record.id,
            record.type.value,
            len(record.text),
        )
        return record

    def list(self) -> list[DocumentRecord]:
        with self._lock:
            stored = list(self._store.values())
        ranked = sorted(
            stored,
            key=lambda item: (item.record.created_at, item.sequence),
            reverse=True,
        )
        return [item.record for item in ranked]

    def get(self, document_id: str) -> DocumentRecord:
        stored = self._store.get(document_id)
        if stored is None:
            raise DocumentNotFoundError(document_id)
        return stored.record

    def delete(self, document_id: str) -> None:
        with self._lock:
            if self._store.pop(document_id, None) is None:
                raise DocumentNotFoundError(document_id)
        logger.info("Deleted document id=%s", document_id)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._store


def clamp(value: str, max_chars: int) -> str:
    if len(value) <= max_chars:
        return value
    return value[:max_chars]


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def to_snippet(text: str, max_chars: int = 280) -> str:
    """Whitespace-normalised preview, ellipsis-terminated when truncated."""
    clean = collapse_whitespace(text)
    if len(clean) <= max_chars:
        return clean
    return clean[: max_chars - 1] + "…"


def default_title(document_type: DocumentType, document_id: str) -> str:
    return f"{_DEFAULT_TITLE_PREFIX[document_type]} {document_id[:6]}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())
