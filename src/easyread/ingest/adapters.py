"""Ingestion adapters that turn uploads into stored documents."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import PurePath

from easyread.config import UploadConfig
from easyread.errors import (
    ExtractionError,
    MissingUploadError,
    PayloadTooLargeError,
    UnsupportedUploadTypeError,
)
from easyread.ingest.ocr import OcrEngine
from easyread.store.document_store import DocumentStore
from easyread.types import DocumentRecord, DocumentType, ExtractionResult, Upload

logger = logging.getLogger(__name__)


class UploadKind(str, Enum):
    PDF = "pdf"
    IMAGE = "image"


class IngestionAdapter(ABC):
    """Base adapter interface used by the registry."""

    kind: UploadKind
    document_type: DocumentType
    mime_types: frozenset[str] = frozenset()
    fallback_title: str = "Document"
    type_error_message: str = "Unsupported file type"
    failure_message: str = "Failed to extract text"

    @abstractmethod
    def extract(self, data: bytes) -> ExtractionResult:
        """Recover text from raw upload bytes."""

    def accepts(self, content_type: str | None) -> bool:
        return (content_type or "").lower() in self.mime_types


class PdfAdapter(IngestionAdapter):
    """Reads the embedded text layer of a PDF with PyMuPDF."""

    kind = UploadKind.PDF
    document_type = DocumentType.PDF
    mime_types = frozenset({"application/pdf"})
    fallback_title = "PDF document"
    type_error_message = "Please upload a PDF (application/pdf)"
    failure_message = "Failed to parse PDF"

    no_text_note = "No embedded text found (likely a scanned PDF). Use Image OCR instead."

    def extract(self, data: bytes) -> ExtractionResult:
        import fitz  # PyMuPDF

        with fitz.open(stream=data, filetype="pdf") as doc:
            pages = [page.get_text("text") for page in doc]
        text = "\n".join(pages).strip()
        return ExtractionResult(text=text, note=None if text else self.no_text_note)


class ImageOcrAdapter(IngestionAdapter):
    """Runs OCR over a raster image."""

    kind = UploadKind.IMAGE
    document_type = DocumentType.IMAGE
    mime_types = frozenset({"image/jpeg", "image/png", "image/jpg", "image/webp"})
    fallback_title = "Image document"
    type_error_message = "Please upload an image (jpeg/png/webp)"
    failure_message = "Failed to OCR image"

    def __init__(self, engine: OcrEngine, *, language: str = "eng") -> None:
        self.engine = engine
        self.language = language

    def extract(self, data: bytes) -> ExtractionResult:
        text = self.engine.recognize(data, language=self.language).strip()
        note = "Extracted from image using OCR." if text else "No text recognised."
        return ExtractionResult(text=text, note=note)


class AdapterRegistry:
    """Maps an upload kind to its adapter and stores the extracted document."""

    def __init__(
        self,
        store: DocumentStore,
        adapters: list[IngestionAdapter],
        config: UploadConfig | None = None,
    ) -> None:
        self._store = store
        self.config = config or UploadConfig()
        self._adapters: dict[UploadKind, IngestionAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: IngestionAdapter) -> None:
        if adapter.kind in self._adapters:
            raise ValueError(f"Adapter already registered for: {adapter.kind.value}")
        self._adapters[adapter.kind] = adapter

    def adapter_for(self, kind: UploadKind) -> IngestionAdapter:
        adapter = self._adapters.get(kind)
        if adapter is None:
            raise KeyError(f"No adapter registered for upload kind: {kind.value}")
        return adapter

    def ingest(self, kind: UploadKind, upload: Upload | None) -> DocumentRecord:
        adapter = self.adapter_for(kind)
        if upload is None:
            raise MissingUploadError()
        if not adapter.accepts(upload.content_type):
            raise UnsupportedUploadTypeError(adapter.type_error_message, upload.content_type)
        if upload.size > self.config.max_upload_bytes:
            raise PayloadTooLargeError(self.config.max_upload_bytes)

        try:
            result = adapter.extract(upload.data)
        except Exception as exc:
            logger.exception(
                "%s adapter failed filename=%s size=%d",
                kind.value,
                upload.filename,
                upload.size,
            )
            raise ExtractionError(
                adapter.failure_message,
                {"filename": upload.filename, "error_type": type(exc).__name__},
            ) from exc

        return self._store.create(
            type=adapter.document_type,
            title=_basename(upload.filename) or adapter.fallback_title,
            text=result.text,
            note=result.note,
            size_bytes=upload.size,
        )


def _basename(filename: str | None) -> str:
    if not filename:
        return ""
    return PurePath(filename.replace("\\", "/")).name
