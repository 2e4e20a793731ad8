import fitz
import pytest

from easyread.config import UploadConfig
from easyread.errors import (
    ExtractionError,
    MissingUploadError,
    PayloadTooLargeError,
    UnsupportedUploadTypeError,
)
from easyread.ingest.adapters import AdapterRegistry, ImageOcrAdapter, PdfAdapter, UploadKind
from easyread.ingest.ocr import OcrEngine, VisionLLMOcrEngine
from easyread.store.document_store import InMemoryDocumentStore
from easyread.types import DocumentType, Upload


class _FakeOcrEngine(OcrEngine):
    def __init__(self, text: str = "", *, error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[tuple[bytes, str]] = []

    def recognize(self, image: bytes, *, language: str = "eng") -> str:
        self.calls.append((image, language))
        if self.error is not None:
            raise self.error
        return self.text


def _make_pdf(text: str | None) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def _registry(engine: OcrEngine, config: UploadConfig | None = None):
    store = InMemoryDocumentStore()
    registry = AdapterRegistry(store, [PdfAdapter(), ImageOcrAdapter(engine)], config)
    return store, registry


def test_pdf_text_is_extracted_into_pdf_record() -> None:
    store, registry = _registry(_FakeOcrEngine())
    data = _make_pdf("Hello from a PDF page")

    record = registry.ingest(
        UploadKind.PDF,
        Upload(filename="reports/summary.pdf", content_type="application/pdf", data=data),
    )

    assert record.type is DocumentType.PDF
    assert "Hello from a PDF page" in record.text
    assert record.text == record.text.strip()
    assert record.title == "summary.pdf"
    assert record.note is None
    assert record.size_bytes == len(data)
    assert record.id in store


def test_pdf_without_text_layer_gets_scanned_note() -> None:
    _, registry = _registry(_FakeOcrEngine())

    record = registry.ingest(
        UploadKind.PDF,
        Upload(filename=None, content_type="application/pdf", data=_make_pdf(None)),
    )

    assert record.type is DocumentType.PDF
    assert record.text == ""
    assert record.title == "PDF document"
    assert record.note == PdfAdapter.no_text_note


def test_image_ocr_notes_reflect_recognition() -> None:
    engine = _FakeOcrEngine("  Exit on the left  ")
    _, registry = _registry(engine)

    found = registry.ingest(
        UploadKind.IMAGE,
        Upload(filename="sign.png", content_type="image/png", data=b"png-bytes"),
    )
    engine.text = "   "
    empty = registry.ingest(
        UploadKind.IMAGE,
        Upload(filename="blank.webp", content_type="image/webp", data=b"webp"),
    )

    assert found.text == "Exit on the left"
    assert found.note == "Extracted from image using OCR."
    assert empty.text == ""
    assert empty.note == "No text recognised."
    assert engine.calls[0] == (b"png-bytes", "eng")


def test_wrong_mime_type_is_rejected_before_extraction() -> None:
    engine = _FakeOcrEngine("never")
    store, registry = _registry(engine)

    with pytest.raises(UnsupportedUploadTypeError) as exc_info:
        registry.ingest(
            UploadKind.IMAGE,
            Upload(filename="notes.txt", content_type="text/plain", data=b"hello"),
        )

    assert exc_info.value.status_code == 400
    assert engine.calls == []
    assert len(store) == 0


def test_missing_and_oversized_uploads_are_rejected() -> None:
    store, registry = _registry(_FakeOcrEngine("x"), UploadConfig(max_upload_bytes=4))

    with pytest.raises(MissingUploadError):
        registry.ingest(UploadKind.PDF, None)
    with pytest.raises(PayloadTooLargeError):
        registry.ingest(
            UploadKind.IMAGE,
            Upload(filename="big.jpg", content_type="image/jpeg", data=b"12345"),
        )

    assert len(store) == 0


def test_adapter_failure_is_wrapped_and_nothing_is_stored() -> None:
    cause = RuntimeError("tesseract crashed")
    store, registry = _registry(_FakeOcrEngine(error=cause))

    with pytest.raises(ExtractionError) as exc_info:
        registry.ingest(
            UploadKind.IMAGE,
            Upload(filename="a.jpg", content_type="image/jpg", data=b"jpg"),
        )

    assert exc_info.value.message == "Failed to OCR image"
    assert exc_info.value.__cause__ is cause
    assert len(store) == 0


def test_corrupt_pdf_raises_extraction_error() -> None:
    _, registry = _registry(_FakeOcrEngine())

    with pytest.raises(ExtractionError) as exc_info:
        registry.ingest(
            UploadKind.PDF,
            Upload(filename="broken.pdf", content_type="application/pdf", data=b"not a pdf"),
        )

    assert exc_info.value.message == "Failed to parse PDF"


def test_duplicate_adapter_registration_rejected() -> None:
    _, registry = _registry(_FakeOcrEngine())

    with pytest.raises(ValueError):
        registry.register(PdfAdapter())


def test_vision_engine_sends_base64_image_to_llm() -> None:
    class _RecordingLLM:
        def __init__(self) -> None:
            self.messages = []

        def invoke(self, messages):
            self.messages.extend(messages)

            class _Reply:
                content = "VISIBLE TEXT"

            return _Reply()

    llm = _RecordingLLM()
    engine = VisionLLMOcrEngine(llm, mime_type="image/jpeg")

    assert engine.recognize(b"abc") == "VISIBLE TEXT"
    image_part = llm.messages[0].content[1]
    assert image_part["image_url"]["url"] == "data:image/jpeg;base64,YWJj"
