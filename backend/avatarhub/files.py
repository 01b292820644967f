"""
Local object storage.

Generated media, memory photos, voice samples and TTS audio are written
under ``UPLOAD_DIR/<bucket>/<user_id>/<name>`` and indexed in file_objects.
Objects are public by URL, served via GET /files/{bucket}/{path}.
"""
from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, HTTPException, UploadFile
from fastapi.responses import FileResponse

from .config import MAX_UPLOAD_MB, PUBLIC_BASE_URL, UPLOAD_DIR
from .errors import AvatarHubError
from .providers.http import download
from .storage import db, now

logger = logging.getLogger("avatarhub.files")

router = APIRouter(tags=["files"])

BUCKETS = ("memories", "voice-samples", "generated-videos", "generated-images", "tts-audio")

_CHUNK_BYTES = 256 * 1024


def _upload_root() -> Path:
    """Resolve the absolute upload root directory."""
    p = Path(UPLOAD_DIR)
    if not p.is_absolute():
        p = Path(__file__).resolve().parents[1] / "data" / "uploads"
    p.mkdir(parents=True, exist_ok=True)
    return p


def _object_path(bucket: str, path: str) -> Path:
    if bucket not in BUCKETS:
        raise ValueError(f"Unknown bucket: {bucket}")
    root = (_upload_root() / bucket).resolve()
    full = (root / path).resolve()
    # Refuse traversal outside the bucket
    if root not in full.parents:
        raise ValueError(f"Invalid object path: {path}")
    return full


def public_url(bucket: str, path: str) -> str:
    return f"{PUBLIC_BASE_URL}/files/{bucket}/{path}"


def put_object(bucket: str, user_id: str, name: str, data: bytes, mime: Optional[str] = None) -> Dict[str, Any]:
    """Write bytes and return ``{"path", "url", "size"}``. Overwrites an existing object."""
    path = f"{user_id}/{name}"
    full = _object_path(bucket, path)
    full.parent.mkdir(parents=True, exist_ok=True)
    full.write_bytes(data)

    mime = mime or mimetypes.guess_type(name)[0] or "application/octet-stream"
    con = db()
    con.execute(
        """
        INSERT OR REPLACE INTO file_objects(bucket, path, user_id, mime, size_bytes, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (bucket, path, user_id, mime, len(data), now()),
    )
    con.commit()
    con.close()
    return {"path": path, "url": public_url(bucket, path), "size": len(data)}


def delete_object(bucket: str, path: Optional[str]) -> bool:
    """Remove an object. Missing objects are not an error."""
    if not path:
        return False
    try:
        full = _object_path(bucket, path)
    except ValueError:
        return False
    removed = False
    if full.exists():
        full.unlink()
        removed = True
    con = db()
    con.execute("DELETE FROM file_objects WHERE bucket = ? AND path = ?", (bucket, path))
    con.commit()
    con.close()
    return removed


def read_object(bucket: str, path: str) -> bytes:
    return _object_path(bucket, path).read_bytes()


async def mirror_remote(bucket: str, user_id: str, name: str, url: str) -> Optional[Dict[str, Any]]:
    """Copy a provider-hosted asset into the bucket. Returns None when the download fails."""
    try:
        resp = await download(url)
    except AvatarHubError as exc:
        logger.warning("Could not mirror %s into %s: %s", url, bucket, exc)
        return None
    mime = (resp.headers.get("content-type") or "").split(";")[0].strip() or None
    return put_object(bucket, user_id, name, resp.content, mime)


async def read_upload(file: UploadFile) -> Tuple[bytes, str, str]:
    """Read an upload into memory. Returns ``(data, ext, mime)``; 400 on empty, 413 when too large.

    Reading stops at the first chunk past MAX_UPLOAD_MB.
    """
    max_bytes = int(MAX_UPLOAD_MB) * 1024 * 1024
    chunks = []
    size = 0
    try:
        while True:
            chunk = await file.read(_CHUNK_BYTES)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                raise HTTPException(413, f"File too large (max {MAX_UPLOAD_MB}MB)")
            chunks.append(chunk)
    finally:
        await file.close()
    if not size:
        raise HTTPException(400, "Empty file")
    data = b"".join(chunks)

    original_name = file.filename or ""
    content_type = (file.content_type or "").lower()
    ext = ""
    if "." in original_name:
        ext = original_name.rsplit(".", 1)[1].lower()
    if not ext:
        ext = (mimetypes.guess_extension(content_type) or "").lstrip(".") or "bin"
    mime = content_type or mimetypes.guess_type(original_name)[0] or "application/octet-stream"
    return data, ext, mime


@router.get("/files/{bucket}/{path:path}")
def serve_file(bucket: str, path: str):
    try:
        full = _object_path(bucket, path)
    except ValueError:
        raise HTTPException(404, "File not found")
    if not full.is_file():
        raise HTTPException(404, "File not found")

    con = db()
    row = con.execute("SELECT mime FROM file_objects WHERE bucket = ? AND path = ?", (bucket, path)).fetchone()
    con.close()
    media_type = row["mime"] if row else (mimetypes.guess_type(full.name)[0] or "application/octet-stream")
    return FileResponse(full, media_type=media_type)
