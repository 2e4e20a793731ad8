"""Thin HTTP client for the easy-read API, used by app frontends and scripts."""

from __future__ import annotations

import json
import os
from typing import Any

import httpx

DEFAULT_BASE_URL = "http://localhost:5000"


class ApiError(Exception):
    """Raised for any non-2xx API response."""

    def __init__(self, message: str, status_code: int, payload: dict[str, Any]) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


def resolve_base_url(base_url: str | None = None) -> str:
    return (base_url or os.getenv("EASYREAD_API_URL") or DEFAULT_BASE_URL).rstrip("/")


def parse_json_safely(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON body; empty bodies give `{}` and non-JSON gives `{"raw": text}`."""
    text = response.text
    if not text:
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return {"raw": text}
    return payload if isinstance(payload, dict) else {"raw": payload}


class EasyReadClient:
    """Synchronous client mirroring the API surface one call per endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = resolve_base_url(base_url)
        self._client = httpx.Client(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    def __enter__(self) -> "EasyReadClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def health(self) -> bool:
        return bool(self._request("GET", "/health").get("ok"))

    def fetch_documents(self) -> list[dict[str, Any]]:
        return self._request("GET", "/documents").get("documents") or []

    def fetch_document(self, document_id: str) -> dict[str, Any]:
        return self._request("GET", f"/documents/{document_id}")["document"]

    def delete_document(self, document_id: str) -> None:
        self._request("DELETE", f"/documents/{document_id}", expects_json=False)

    def create_text_document(
        self,
        text: str,
        *,
        title: str | None = None,
        note: str | None = None,
        source: str | None = None,
    ) -> dict[str, Any]:
        body = {
            key: value
            for key, value in {"title": title, "text": text, "note": note, "source": source}.items()
            if value is not None
        }
        return self._request("POST", "/documents/text", json=body)["document"]

    def upload_document(self, filename: str, content: bytes, mime_type: str) -> dict[str, Any]:
        endpoint = "/upload/pdf" if "pdf" in mime_type else "/upload/image"
        payload = self._request(
            "POST",
            endpoint,
            files={"file": (filename, content, mime_type)},
        )
        return payload["document"]

    def rewrite_sentence(self, sentence: str, keep_terms: list[str] | None = None) -> list[str]:
        payload = self._request(
            "POST",
            "/ai/rewrite",
            json={"sentence": sentence, "keepTerms": keep_terms or []},
        )
        return payload.get("candidates") or []

    def _request(
        self,
        method: str,
        path: str,
        *,
        expects_json: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        response = self._client.request(method, path, **kwargs)

        if response.is_error:
            payload = parse_json_safely(response)
            message = payload.get("error") or payload.get("message") or response.reason_phrase
            raise ApiError(message or "Request failed", response.status_code, payload)

        if not expects_json:
            return {}
        return parse_json_safely(response)
