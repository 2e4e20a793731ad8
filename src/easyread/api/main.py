"""FastAPI entrypoint for document library and easy-read rewrite endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, File, Query, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from easyread.api.middleware import (
    FixedWindowRateLimiter,
    JsonBodyLimitMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    error_response,
)
from easyread.config import Settings
from easyread.errors import EasyReadError, InvalidInputError
from easyread.ingest.adapters import AdapterRegistry, ImageOcrAdapter, PdfAdapter, UploadKind
from easyread.ingest.ocr import OcrEngine, create_ocr_engine
from easyread.rewrite.heuristic import EasyReadRewriter
from easyread.store.document_store import DocumentStore, InMemoryDocumentStore
from easyread.types import DocumentType, Upload

logger = logging.getLogger(__name__)


class RewriteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sentence: str = Field(min_length=1, max_length=1500)
    keep_terms: list[str] = Field(default_factory=list, alias="keepTerms")


class TextDocumentRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=120)
    text: str = Field(min_length=1)
    note: str | None = Field(default=None, min_length=1, max_length=240)
    source: str | None = Field(default=None, min_length=1, max_length=200)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_rewriter(request: Request) -> EasyReadRewriter:
    return request.app.state.rewriter


def get_adapters(request: Request) -> AdapterRegistry:
    return request.app.state.adapters


router = APIRouter()


@router.get("/health")
def health() -> dict[str, Any]:
    return {"ok": True}


@router.post("/ai/rewrite")
def rewrite(
    request: RewriteRequest,
    rewriter: EasyReadRewriter = Depends(get_rewriter),
) -> dict[str, Any]:
    return {"candidates": rewriter.rewrite(request.sentence, request.keep_terms)}


@router.post("/documents/text", status_code=201)
def create_text_document(
    request: TextDocumentRequest,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    max_chars = settings.store_config().max_text_chars
    if len(request.text) > max_chars:
        raise InvalidInputError(f"String should have at most {max_chars} characters", field="text")
    note = request.note or (
        f"Imported from {request.source}." if request.source else "Added manually."
    )
    document = store.create(
        type=DocumentType.TEXT,
        title=request.title,
        text=request.text,
        note=note,
        size_bytes=None,
    )
    return {"document": document.to_full()}


@router.get("/documents")
def list_documents(
    include_text: bool = Query(default=False, alias="includeText"),
    store: DocumentStore = Depends(get_store),
) -> dict[str, Any]:
    records = store.list()
    return {
        "documents": [
            record.to_full() if include_text else record.to_summary() for record in records
        ]
    }


@router.get("/documents/{document_id}")
def get_document(document_id: str, store: DocumentStore = Depends(get_store)) -> dict[str, Any]:
    return {"document": store.get(document_id).to_full()}


@router.delete("/documents/{document_id}", status_code=204)
def delete_document(document_id: str, store: DocumentStore = Depends(get_store)) -> Response:
    store.delete(document_id)
    return Response(status_code=204)


@router.post("/upload/pdf")
def upload_pdf(
    file: UploadFile | None = File(default=None),
    adapters: AdapterRegistry = Depends(get_adapters),
) -> dict[str, Any]:
    document = adapters.ingest(UploadKind.PDF, _read_upload(file, adapters.config.max_upload_bytes))
    return {"document": document.to_full()}


@router.post("/upload/image")
def upload_image(
    file: UploadFile | None = File(default=None),
    adapters: AdapterRegistry = Depends(get_adapters),
) -> dict[str, Any]:
    document = adapters.ingest(UploadKind.IMAGE, _read_upload(file, adapters.config.max_upload_bytes))
    return {"document": document.to_full()}


def _read_upload(file: UploadFile | None, max_bytes: int) -> Upload | None:
    """Read at most one byte past `max_bytes` so oversized uploads are never fully buffered."""
    if file is None:
        return None
    data = file.file.read(max_bytes + 1)
    return Upload(filename=file.filename, content_type=file.content_type, data=data)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Bad request"


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(EasyReadError)
    async def _domain_error(_: Request, exc: EasyReadError) -> JSONResponse:
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _format_validation_errors(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )


def create_app(
    settings: Settings | None = None,
    *,
    store: DocumentStore | None = None,
    ocr_engine: OcrEngine | None = None,
) -> FastAPI:
    """Build the API with its own store, rewriter and ingestion adapters."""

    settings = settings or Settings()
    upload_config = settings.upload_config()

    app = FastAPI(title="Easy Read Library API", version="0.1.0")
    app.state.settings = settings
    app.state.store = store if store is not None else InMemoryDocumentStore(settings.store_config())
    app.state.rewriter = EasyReadRewriter(settings.rewrite_config())
    app.state.adapters = AdapterRegistry(
        app.state.store,
        [
            PdfAdapter(),
            ImageOcrAdapter(
                ocr_engine if ocr_engine is not None else create_ocr_engine(settings),
                language=upload_config.ocr_language,
            ),
        ],
        upload_config,
    )

    # Last added runs first.
    app.add_middleware(JsonBodyLimitMiddleware, max_bytes=settings.max_json_bytes)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=FixedWindowRateLimiter(settings.rate_limit_config()),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    _register_error_handlers(app)
    app.include_router(router)

    logger.info(
        "API configured origins=%s rate_limit=%d/min ocr_engine=%s",
        ",".join(settings.allowed_origins),
        settings.rate_limit_per_minute,
        settings.ocr_engine,
    )
    return app


app = create_app()
