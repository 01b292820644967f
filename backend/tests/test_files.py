"""
Upload reading and the public file route.
"""
import asyncio

import pytest


class ChunkedUpload:
    """Minimal UploadFile stand-in that serves ``total`` bytes in requested sizes."""

    def __init__(self, total, filename="clip.mp3", content_type="audio/mpeg"):
        self.remaining = total
        self.filename = filename
        self.content_type = content_type
        self.reads = 0
        self.closed = False

    async def read(self, size=-1):
        self.reads += 1
        n = self.remaining if size < 0 else min(size, self.remaining)
        self.remaining -= n
        return b"x" * n

    async def close(self):
        self.closed = True


def test_read_upload_stops_past_limit(monkeypatch):
    from fastapi import HTTPException

    from avatarhub import files

    monkeypatch.setattr(files, "MAX_UPLOAD_MB", 1)
    upload = ChunkedUpload(total=8 * 1024 * 1024)
    with pytest.raises(HTTPException) as exc:
        asyncio.run(files.read_upload(upload))
    assert exc.value.status_code == 413
    # 1 MB fits in four 256 KB chunks; the fifth crosses the limit
    assert upload.reads == 5
    assert upload.remaining > 0
    assert upload.closed


def test_read_upload_returns_data_and_type():
    from avatarhub import files

    upload = ChunkedUpload(total=600 * 1024, filename="Take.WAV", content_type="")
    data, ext, mime = asyncio.run(files.read_upload(upload))
    assert len(data) == 600 * 1024
    assert ext == "wav"
    assert mime.startswith("audio/")
    assert upload.closed


def test_empty_upload():
    from fastapi import HTTPException

    from avatarhub import files

    with pytest.raises(HTTPException) as exc:
        asyncio.run(files.read_upload(ChunkedUpload(total=0)))
    assert exc.value.status_code == 400


def test_oversized_upload_endpoint(client, user_headers, monkeypatch):
    from avatarhub import files

    monkeypatch.setattr(files, "MAX_UPLOAD_MB", 0)
    r = client.post("/v1/voices/samples", files={"file": ("me.mp3", b"ID3data", "audio/mpeg")}, headers=user_headers)
    assert r.status_code == 413
    assert r.json()["error"] == "File too large (max 0MB)"


def test_unknown_file(client):
    assert client.get("/files/memories/nobody/missing.jpg").status_code == 404
    assert client.get("/files/secrets/x").status_code == 404
