"""Tests for image upload."""

import io
import re
import uuid

import pytest
from fastapi import UploadFile
from httpx import AsyncClient
from starlette.datastructures import Headers

from bookclub.core.config import settings
from bookclub.routers.upload import read_part
from bookclub.services import upload_service
from conftest import auth_headers


def test_storage_key_layout():
    user_id = uuid.uuid4()
    key = upload_service.build_storage_key(user_id, "Photo.JPG", "image/jpeg")
    assert re.fullmatch(rf"{user_id}/\d+-[0-9a-f]{{8}}\.jpg", key)


def test_storage_key_falls_back_to_content_type():
    key = upload_service.build_storage_key(uuid.uuid4(), "no-extension", "image/png")
    assert key.endswith(".png")


@pytest.mark.parametrize(
    "content_type,size,ok",
    [
        ("image/png", 100, True),
        ("image/webp", 10 * 1024 * 1024, True),
        ("image/png", 10 * 1024 * 1024 + 1, False),
        ("application/pdf", 100, False),
        (None, 100, False),
    ],
)
def test_validate_image(content_type, size, ok):
    assert upload_service.validate_image(content_type, size)[0] is ok


@pytest.fixture
def stored(monkeypatch) -> dict:
    """Capture store_file calls instead of writing anywhere."""
    calls: dict[str, bytes] = {}

    def _fake_store(storage_key, file, content_type):  # noqa: ANN001
        file.seek(0)
        calls[storage_key] = file.read()

    monkeypatch.setattr(upload_service, "store_file", _fake_store)
    return calls


@pytest.mark.asyncio
async def test_upload_returns_public_urls(client: AsyncClient, member, stored):
    response = await client.post(
        "/upload",
        files=[
            ("files", ("a.png", b"\x89PNG...", "image/png")),
            ("files", ("b.jpg", b"\xff\xd8...", "image/jpeg")),
        ],
        headers=auth_headers(member),
    )

    assert response.status_code == 200
    urls = response.json()["urls"]
    assert len(urls) == 2
    base = settings.PUBLIC_STORAGE_BASE_URL.rstrip("/")
    for url in urls:
        assert url.startswith(f"{base}/{member.id}/")
    assert sorted(stored.values()) == sorted([b"\x89PNG...", b"\xff\xd8..."])


@pytest.mark.asyncio
async def test_one_bad_part_rejects_whole_upload(client: AsyncClient, member, stored):
    response = await client.post(
        "/upload",
        files=[
            ("files", ("a.png", b"png", "image/png")),
            ("files", ("notes.pdf", b"%PDF", "application/pdf")),
        ],
        headers=auth_headers(member),
    )
    assert response.status_code == 400
    assert stored == {}


@pytest.mark.asyncio
async def test_oversized_upload_returns_413(client: AsyncClient, member, stored, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    response = await client.post(
        "/upload",
        files=[("files", ("a.png", b"too large", "image/png"))],
        headers=auth_headers(member),
    )
    assert response.status_code == 413
    assert stored == {}


def test_local_backend_writes_file(tmp_path, monkeypatch, member):
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(tmp_path))
    monkeypatch.setattr(settings, "PUBLIC_STORAGE_BASE_URL", "https://cdn.test/uploads/")

    urls = upload_service.upload_images(
        member.id,
        [
            upload_service.IncomingFile(
                filename="a.gif", content_type="image/gif", size=3, file=io.BytesIO(b"GIF")
            )
        ],
    )

    key = urls[0].removeprefix("https://cdn.test/uploads/")
    assert key.startswith(f"{member.id}/")
    assert (tmp_path / key).read_bytes() == b"GIF"


def test_s3_backend_uploads_with_content_type(monkeypatch):
    captured = {}

    class _FakeS3:
        def upload_fileobj(self, file, bucket, key, ExtraArgs=None):  # noqa: N803
            captured.update(bucket=bucket, key=key, body=file.read(), extra=ExtraArgs)

    monkeypatch.setattr(settings, "STORAGE_BACKEND", "s3")
    monkeypatch.setattr(settings, "S3_BUCKET", "gallery")
    monkeypatch.setattr(upload_service, "get_s3_client", lambda: _FakeS3())

    upload_service.store_file("u/1-abc.png", io.BytesIO(b"png"), "image/png")

    assert captured["bucket"] == "gallery"
    assert captured["key"] == "u/1-abc.png"
    assert captured["body"] == b"png"
    assert captured["extra"]["ContentType"] == "image/png"


def _part(content: bytes, size: int | None) -> UploadFile:
    return UploadFile(
        io.BytesIO(content),
        size=size,
        filename="a.png",
        headers=Headers({"content-type": "image/png"}),
    )


@pytest.mark.asyncio
async def test_part_over_declared_limit_is_not_read(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    upload = _part(b"0123456789", size=10)

    incoming = await read_part(upload)

    assert upload.file.tell() == 0
    assert incoming.size == 10
    assert incoming.file.read() == b""


@pytest.mark.asyncio
async def test_part_without_declared_size_is_read_up_to_cap(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)

    incoming = await read_part(_part(b"0123456789", size=None))

    assert incoming.size == 5
    with pytest.raises(upload_service.UploadTooLargeError):
        upload_service.upload_images(uuid.uuid4(), [incoming])


@pytest.mark.asyncio
async def test_part_within_limit_is_buffered_whole():
    incoming = await read_part(_part(b"png-bytes", size=9))

    assert incoming.size == 9
    assert incoming.content_type == "image/png"
    assert incoming.file.read() == b"png-bytes"
