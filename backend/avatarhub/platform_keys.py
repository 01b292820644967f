"""
Platform API keys for external automations (n8n, Zapier, custom bots).

Keys look like ``ak_<random>`` and are shown once on creation; only a
SHA-256 hash is kept. Each key carries scopes and an optional avatar
restriction. Every authenticated call is appended to api_request_logs.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from .crypto import hash_token
from .storage import db, dumps, now, row_to_dict
from .users import require_user

logger = logging.getLogger("avatarhub.platform_keys")

router = APIRouter(prefix="/v1/platform-keys", tags=["platform-keys"])

Scope = Literal["chat", "config", "conversations", "prompt"]
ALL_SCOPES = ["chat", "config", "conversations", "prompt"]


def _row(row) -> Optional[Dict[str, Any]]:
    return row_to_dict(row, json_fields=("scopes",), bool_fields=("is_active",))


def create_platform_key(user_id: str, name: str, scopes: List[str], avatar_id: Optional[str] = None) -> Dict[str, Any]:
    """Insert a key and return it with the plaintext ``api_key`` (never stored)."""
    plaintext = "ak_" + secrets.token_urlsafe(32)
    key_id = str(uuid.uuid4())
    con = db()
    con.execute(
        """
        INSERT INTO platform_api_keys(id, user_id, name, key_hash, key_prefix, scopes_json, avatar_id, is_active, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?)
        """,
        (key_id, user_id, name.strip(), hash_token(plaintext), plaintext[:10], dumps(scopes or ALL_SCOPES), avatar_id, now()),
    )
    con.commit()
    row = con.execute("SELECT * FROM platform_api_keys WHERE id = ?", (key_id,)).fetchone()
    con.close()

    key = _row(row)
    key.pop("key_hash", None)
    key["api_key"] = plaintext
    return key


def list_platform_keys(user_id: str) -> List[Dict[str, Any]]:
    con = db()
    rows = con.execute(
        "SELECT * FROM platform_api_keys WHERE user_id = ? ORDER BY created_at DESC, rowid DESC", (user_id,)
    ).fetchall()
    con.close()
    out = []
    for r in rows:
        key = _row(r)
        key.pop("key_hash", None)
        out.append(key)
    return out


def revoke_platform_key(user_id: str, key_id: str) -> bool:
    con = db()
    cur = con.execute(
        "UPDATE platform_api_keys SET is_active = 0 WHERE id = ? AND user_id = ?", (key_id, user_id)
    )
    con.commit()
    con.close()
    return cur.rowcount > 0


def verify_platform_key(plaintext: str) -> Optional[Dict[str, Any]]:
    """Active key matching the plaintext, or None."""
    if not plaintext:
        return None
    con = db()
    row = con.execute(
        "SELECT * FROM platform_api_keys WHERE key_hash = ? AND is_active = 1", (hash_token(plaintext),)
    ).fetchone()
    con.close()
    return _row(row)


def log_api_request(key: Dict[str, Any], endpoint: str, method: str, status_code: int) -> None:
    """Append to api_request_logs and bump the key's usage counters."""
    ts = now()
    con = db()
    con.execute(
        "INSERT INTO api_request_logs(api_key_id, user_id, endpoint, method, status_code, created_at) VALUES (?, ?, ?, ?, ?, ?)",
        (key["id"], key["user_id"], endpoint, method, status_code, ts),
    )
    con.execute(
        "UPDATE platform_api_keys SET usage_count = usage_count + 1, last_used_at = ? WHERE id = ?",
        (ts, key["id"]),
    )
    con.commit()
    con.close()


def list_request_logs(user_id: str, limit: int = 100) -> List[Dict[str, Any]]:
    con = db()
    rows = con.execute(
        "SELECT * FROM api_request_logs WHERE user_id = ? ORDER BY id DESC LIMIT ?", (user_id, limit)
    ).fetchall()
    con.close()
    return [dict(r) for r in rows]


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def require_platform_key(scope: str):
    """Dependency factory: 401 without a valid X-API-Key, 403 without ``scope``."""

    def _dep(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")) -> Dict[str, Any]:
        if not x_api_key:
            raise HTTPException(401, "Missing API key. Include x-api-key header.")
        key = verify_platform_key(x_api_key)
        if not key:
            raise HTTPException(401, "Invalid or inactive API key")
        if scope not in (key.get("scopes") or []):
            raise HTTPException(403, f"API key does not have {scope} permission")
        return key

    return _dep


def check_avatar_access(key: Dict[str, Any], avatar_id: str) -> None:
    if key.get("avatar_id") and key["avatar_id"] != avatar_id:
        raise HTTPException(403, "API key does not have access to this avatar")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class PlatformKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    scopes: List[Scope] = Field(default_factory=lambda: list(ALL_SCOPES))
    avatar_id: Optional[str] = None


@router.get("")
def get_platform_keys(user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "keys": list_platform_keys(user["id"])}


@router.post("")
def post_platform_key(body: PlatformKeyCreate, user: Dict[str, Any] = Depends(require_user)):
    if body.avatar_id:
        con = db()
        owned = con.execute(
            "SELECT 1 FROM avatars WHERE id = ? AND user_id = ?", (body.avatar_id, user["id"])
        ).fetchone()
        con.close()
        if not owned:
            raise HTTPException(404, "Avatar not found")
    key = create_platform_key(user["id"], body.name, list(body.scopes), body.avatar_id)
    logger.info("Created platform key %s for user %s", key["id"], user["id"])
    return {"success": True, "key": key}


@router.delete("/{key_id}")
def delete_platform_key(key_id: str, user: Dict[str, Any] = Depends(require_user)):
    if not revoke_platform_key(user["id"], key_id):
        raise HTTPException(404, "API key not found")
    return {"success": True}


@router.get("/logs")
def get_request_logs(limit: int = 100, user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "logs": list_request_logs(user["id"], limit=min(max(limit, 1), 500))}
