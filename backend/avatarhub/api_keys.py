"""
Provider API key vault.

Stores each user's keys for the third-party services the platform proxies:
- OpenAI (chat, DALL-E 3, vision)
- KIE.AI (image, video and music generation)
- HeyGen (avatar videos, translation)
- ElevenLabs (voice cloning, text-to-speech)

Keys are Fernet-encrypted at rest and only ever returned masked.
At call time the newest active user key wins; otherwise the platform
key from the environment is used.
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .config import PLATFORM_KEY_ENV
from .crypto import InvalidToken, decrypt_secret, encrypt_secret
from .providers.errors import ProviderKeyMissing
from .storage import db, now
from .users import require_user

logger = logging.getLogger("avatarhub.api_keys")

router = APIRouter(prefix="/v1/api-keys", tags=["api-keys"])

ProviderService = Literal["openai", "kie-ai", "heygen", "elevenlabs"]
SERVICES = tuple(PLATFORM_KEY_ENV.keys())

_MASK = "•" * 48


def _mask_key(key: str) -> str:
    """Mask an API key for display (first 6 and last 4 characters visible)."""
    if not key or len(key) <= 10:
        return "•" * 10
    return f"{key[:6]}{_MASK}{key[-4:]}"


def platform_key(service: str) -> Optional[str]:
    """Platform-wide key from the environment (read at call time)."""
    env_name = PLATFORM_KEY_ENV.get(service)
    if not env_name:
        return None
    value = os.getenv(env_name, "").strip()
    return value or None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

def list_user_keys(user_id: str, include_inactive: bool = False) -> List[Dict[str, Any]]:
    con = db()
    sql = "SELECT * FROM user_api_keys WHERE user_id = ?"
    if not include_inactive:
        sql += " AND status = 'active'"
    rows = con.execute(sql + " ORDER BY created_at DESC, rowid DESC", (user_id,)).fetchall()
    con.close()

    out = []
    for r in rows:
        try:
            masked = _mask_key(decrypt_secret(r["api_key_encrypted"]))
        except InvalidToken:
            masked = "•" * 10
        out.append({
            "id": r["id"],
            "name": r["name"],
            "service": r["service"],
            "key": masked,
            "lastUsed": r["last_used_at"] or "Never",
            "status": r["status"],
            "created_at": r["created_at"],
        })
    return out


def add_user_key(user_id: str, name: str, service: str, api_key: str) -> str:
    key_id = str(uuid.uuid4())
    ts = now()
    con = db()
    con.execute(
        """
        INSERT INTO user_api_keys(id, user_id, name, service, api_key_encrypted, status, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, 'active', ?, ?)
        """,
        (key_id, user_id, name.strip(), service, encrypt_secret(api_key.strip()), ts, ts),
    )
    con.commit()
    con.close()
    logger.info("Stored %s key %s for user %s", service, key_id, user_id)
    return key_id


def delete_user_key(user_id: str, key_id: str) -> bool:
    con = db()
    cur = con.execute("DELETE FROM user_api_keys WHERE id = ? AND user_id = ?", (key_id, user_id))
    con.commit()
    con.close()
    return cur.rowcount > 0


def set_user_key_status(user_id: str, key_id: str, status: str) -> bool:
    con = db()
    cur = con.execute(
        "UPDATE user_api_keys SET status = ?, updated_at = ? WHERE id = ? AND user_id = ?",
        (status, now(), key_id, user_id),
    )
    con.commit()
    con.close()
    return cur.rowcount > 0


def get_decrypted_user_key(user_id: str, service: str) -> Optional[str]:
    """Newest active key for the service; stamps last_used_at. None when absent or undecryptable."""
    con = db()
    row = con.execute(
        """
        SELECT id, api_key_encrypted FROM user_api_keys
        WHERE user_id = ? AND service = ? AND status = 'active'
        ORDER BY created_at DESC, rowid DESC LIMIT 1
        """,
        (user_id, service),
    ).fetchone()
    if not row:
        con.close()
        return None

    con.execute("UPDATE user_api_keys SET last_used_at = ? WHERE id = ?", (now(), row["id"]))
    con.commit()
    con.close()

    try:
        return decrypt_secret(row["api_key_encrypted"])
    except InvalidToken:
        logger.warning("Stored %s key %s could not be decrypted; falling back", service, row["id"])
        return None


def resolve_provider_key(user_id: Optional[str], service: str) -> str:
    """User key, else platform key, else ProviderKeyMissing."""
    if user_id:
        key = get_decrypted_user_key(user_id, service)
        if key:
            return key
    key = platform_key(service)
    if key:
        return key
    raise ProviderKeyMissing(service)


def get_api_keys_status(user_id: str) -> Dict[str, Dict[str, Any]]:
    """Per-service status: where the effective key would come from."""
    con = db()
    rows = con.execute(
        "SELECT DISTINCT service FROM user_api_keys WHERE user_id = ? AND status = 'active'",
        (user_id,),
    ).fetchall()
    con.close()
    user_services = {r["service"] for r in rows}

    status = {}
    for service in SERVICES:
        if service in user_services:
            status[service] = {"configured": True, "source": "user"}
        elif platform_key(service):
            status[service] = {"configured": True, "source": "platform"}
        else:
            status[service] = {"configured": False, "source": None}
    return status


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class ApiKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    service: ProviderService
    api_key: str = Field(..., min_length=1, max_length=512)


class ApiKeyStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]


@router.get("")
def get_keys(include_inactive: bool = False, user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "keys": list_user_keys(user["id"], include_inactive=include_inactive)}


@router.get("/status")
def get_keys_status(user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "services": get_api_keys_status(user["id"])}


@router.post("")
def create_key(body: ApiKeyCreate, user: Dict[str, Any] = Depends(require_user)):
    key_id = add_user_key(user["id"], body.name, body.service, body.api_key)
    return {"success": True, "id": key_id, "key": _mask_key(body.api_key.strip())}


@router.patch("/{key_id}")
def update_key_status(key_id: str, body: ApiKeyStatusUpdate, user: Dict[str, Any] = Depends(require_user)):
    if not set_user_key_status(user["id"], key_id, body.status):
        raise HTTPException(404, "API key not found")
    return {"success": True, "id": key_id, "status": body.status}


@router.delete("/{key_id}")
def remove_key(key_id: str, user: Dict[str, Any] = Depends(require_user)):
    if not delete_user_key(user["id"], key_id):
        raise HTTPException(404, "API key not found")
    return {"success": True}
