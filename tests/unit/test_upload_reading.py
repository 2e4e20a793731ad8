import io

from starlette.datastructures import Headers, UploadFile

from easyread.api.main import _read_upload


def test_oversized_stream_is_read_only_one_byte_past_limit() -> None:
    stream = io.BytesIO(b"x" * (3 * 1024 * 1024))
    upload = UploadFile(
        stream,
        filename="huge.png",
        headers=Headers({"content-type": "image/png"}),
    )

    result = _read_upload(upload, 1024)

    assert result is not None
    assert result.size == 1025
    assert stream.tell() == 1025
    assert result.content_type == "image/png"


def test_small_upload_is_read_whole_and_missing_file_is_none() -> None:
    upload = UploadFile(io.BytesIO(b"tiny"), filename="t.jpg")

    result = _read_upload(upload, 1024)

    assert result is not None
    assert result.data == b"tiny"
    assert _read_upload(None, 1024) is None
