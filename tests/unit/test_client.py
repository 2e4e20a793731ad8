import json

import httpx
import pytest

from easyread.client import ApiError, EasyReadClient


def _client(handler) -> EasyReadClient:
    return EasyReadClient("https://api.example.test/", transport=httpx.MockTransport(handler))


def test_fetch_documents_returns_list_and_tolerates_missing_key() -> None:
    responses = iter(
        [
            {"documents": [{"id": "1", "title": "Note 1"}]},
            {},
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/documents"
        assert request.headers["accept"] == "application/json"
        return httpx.Response(200, json=next(responses), request=request)

    with _client(handler) as client:
        assert client.fetch_documents() == [{"id": "1", "title": "Note 1"}]
        assert client.fetch_documents() == []


def test_error_payload_message_is_raised_as_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Document not found"}, request=request)

    with _client(handler) as client:
        with pytest.raises(ApiError) as exc_info:
            client.fetch_document("missing")

    error = exc_info.value
    assert error.status_code == 404
    assert error.message == "Document not found"
    assert error.payload == {"error": "Document not found"}


def test_non_json_error_falls_back_to_reason_phrase() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>", request=request)

    with _client(handler) as client:
        with pytest.raises(ApiError) as exc_info:
            client.health()

    assert exc_info.value.message == "Bad Gateway"
    assert exc_info.value.payload == {"raw": "<html>bad gateway</html>"}


def test_delete_accepts_empty_no_content_response() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(204, request=request)

    with _client(handler) as client:
        assert client.delete_document("abc") is None

    assert seen == [("DELETE", "/documents/abc")]


def test_upload_routes_by_mime_type() -> None:
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="file"' in request.content
        return httpx.Response(200, json={"document": {"id": "d"}}, request=request)

    with _client(handler) as client:
        client.upload_document("scan.pdf", b"%PDF-1.4", "application/pdf")
        client.upload_document("photo.png", b"\x89PNG", "image/png")

    assert paths == ["/upload/pdf", "/upload/image"]


def test_text_document_and_rewrite_payloads() -> None:
    bodies = {}

    def handler(request: httpx.Request) -> httpx.Response:
        bodies[request.url.path] = json.loads(request.content)
        if request.url.path == "/ai/rewrite":
            return httpx.Response(200, json={"candidates": ["Start now."]}, request=request)
        return httpx.Response(201, json={"document": {"id": "n1"}}, request=request)

    with _client(handler) as client:
        document = client.create_text_document("Body", source="clipboard")
        candidates = client.rewrite_sentence("Commence now.")

    assert document == {"id": "n1"}
    assert candidates == ["Start now."]
    assert bodies["/documents/text"] == {"text": "Body", "source": "clipboard"}
    assert bodies["/ai/rewrite"] == {"sentence": "Commence now.", "keepTerms": []}


def test_base_url_comes_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("EASYREAD_API_URL", "http://10.0.2.2:5000/")

    with EasyReadClient() as client:
        assert client.base_url == "http://10.0.2.2:5000"
