"""
Photo memories.

Users upload 1-10 photos of an event in the avatar's "life". The first photo
is described by an OpenAI vision model and the description becomes the
memory's metadata, which chat later injects into the system prompt so the
avatar can bring the memory up naturally.
"""
from __future__ import annotations

import base64
import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from . import files
from .api_keys import resolve_provider_key
from .avatars.repo import get_avatar
from .config import MAX_MEMORY_PHOTOS, VISION_MODEL
from .errors import AvatarHubError
from .providers import openai
from .storage import db, dumps, now, row_to_dict
from .users import require_user

logger = logging.getLogger("avatarhub.memories")

router = APIRouter(prefix="/v1/avatars/{avatar_id}/memories", tags=["memories"])

BUCKET = "memories"
LIST_FIELDS = ("people_present", "activities", "food_items", "conversational_hooks")
TEXT_FIELDS = ("title", "memory_date", "memory_summary", "memory_description", "location", "mood")

ANALYSIS_INSTRUCTIONS = (
    "You are helping an AI avatar remember a moment from its life. Describe this photo as a memory and "
    "answer with a JSON object with keys: title (short), memory_summary (one sentence), "
    "memory_description (a vivid paragraph in first person), location, people_present (array), "
    "activities (array), food_items (array), mood (one or two words), conversational_hooks "
    "(array of 3 short ways to bring this memory up in conversation)."
)


def _memory(row) -> Optional[Dict[str, Any]]:
    memory = row_to_dict(row, json_fields=LIST_FIELDS, bool_fields=("is_favorite", "is_private"))
    if memory:
        for field in LIST_FIELDS:
            memory[field] = memory.get(field) or []
    return memory


def _images_for(con, memory_ids: List[str]) -> Dict[str, List[Dict[str, Any]]]:
    out: Dict[str, List[Dict[str, Any]]] = {mid: [] for mid in memory_ids}
    if not memory_ids:
        return out
    marks = ", ".join("?" for _ in memory_ids)
    rows = con.execute(
        f"SELECT * FROM memory_images WHERE memory_id IN ({marks}) ORDER BY image_order, rowid",
        memory_ids,
    ).fetchall()
    for r in rows:
        out[r["memory_id"]].append(row_to_dict(r, bool_fields=("is_primary",)))
    return out


def list_memories(avatar_id: str, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Memories newest ``memory_date`` first, each with its images."""
    sql = """
        SELECT * FROM avatar_memories WHERE avatar_id = ? AND user_id = ?
        ORDER BY memory_date DESC, created_at DESC, rowid DESC
    """
    params: List[Any] = [avatar_id, user_id]
    if limit:
        sql += " LIMIT ?"
        params.append(limit)
    con = db()
    memories = [_memory(r) for r in con.execute(sql, params).fetchall()]
    images = _images_for(con, [m["id"] for m in memories])
    con.close()
    for m in memories:
        m["images"] = images[m["id"]]
    return memories


def get_memory(user_id: str, memory_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    memory = _memory(
        con.execute("SELECT * FROM avatar_memories WHERE id = ? AND user_id = ?", (memory_id, user_id)).fetchone()
    )
    if memory:
        memory["images"] = _images_for(con, [memory_id])[memory_id]
    con.close()
    return memory


def fallback_analysis(title: Optional[str], memory_date: str) -> Dict[str, Any]:
    return {
        "title": title or f"Memory from {memory_date}",
        "memory_summary": "",
        "memory_description": "",
        "location": "",
        "people_present": [],
        "activities": [],
        "food_items": [],
        "mood": "",
        "conversational_hooks": [],
    }


async def analyze_memory_photo(user_id: str, data: bytes, mime: str, title: Optional[str], memory_date: str) -> Dict[str, Any]:
    """Vision analysis of one photo; any failure yields the fallback metadata."""
    analysis = fallback_analysis(title, memory_date)
    try:
        api_key = resolve_provider_key(user_id, "openai")
        data_url = f"data:{mime};base64,{base64.b64encode(data).decode()}"
        raw = await openai.analyze_image(api_key, data_url, ANALYSIS_INSTRUCTIONS, model=VISION_MODEL, max_tokens=800)
    except AvatarHubError as exc:
        logger.warning("Memory photo analysis failed, using fallback: %s", exc)
        return analysis

    for field in ("memory_summary", "memory_description", "location", "mood"):
        if raw.get(field):
            analysis[field] = str(raw[field])
    for field in LIST_FIELDS:
        value = raw.get(field)
        if isinstance(value, list):
            analysis[field] = [str(x) for x in value]
    if not title and raw.get("title"):
        analysis["title"] = str(raw["title"])
    return analysis


async def create_memory_from_photos(
    user_id: str,
    avatar_id: str,
    photos: List[Dict[str, Any]],
    *,
    title: Optional[str] = None,
    memory_date: Optional[str] = None,
) -> Dict[str, Any]:
    """Store photos, analyse the first, and insert one memory with one image row per photo.

    ``photos`` items are ``{"data", "ext", "mime"}``.
    """
    if not photos:
        raise HTTPException(400, "At least one photo is required")
    if len(photos) > MAX_MEMORY_PHOTOS:
        raise HTTPException(400, f"At most {MAX_MEMORY_PHOTOS} photos per memory")

    memory_date = memory_date or date.today().isoformat()
    first = photos[0]
    analysis = await analyze_memory_photo(user_id, first["data"], first["mime"], title, memory_date)

    stored = []
    for photo in photos:
        name = f"{avatar_id}/{uuid.uuid4().hex}.{photo['ext']}"
        stored.append(files.put_object(BUCKET, user_id, name, photo["data"], photo["mime"]))

    memory_id = str(uuid.uuid4())
    ts = now()
    con = db()
    con.execute(
        """
        INSERT INTO avatar_memories(
            id, avatar_id, user_id, title, memory_date, memory_summary, memory_description, location,
            people_present_json, activities_json, food_items_json, mood, conversational_hooks_json,
            is_favorite, is_private, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, 0, ?, ?)
        """,
        (
            memory_id, avatar_id, user_id, analysis["title"], memory_date,
            analysis["memory_summary"], analysis["memory_description"], analysis["location"],
            dumps(analysis["people_present"]), dumps(analysis["activities"]),
            dumps(analysis["food_items"]), analysis["mood"], dumps(analysis["conversational_hooks"]),
            ts, ts,
        ),
    )
    for order, obj in enumerate(stored):
        con.execute(
            """
            INSERT INTO memory_images(id, memory_id, image_url, image_path, caption, is_primary, image_order, created_at)
            VALUES (?, ?, ?, ?, '', ?, ?, ?)
            """,
            (str(uuid.uuid4()), memory_id, obj["url"], obj["path"], 1 if order == 0 else 0, order, ts),
        )
    con.commit()
    con.close()
    logger.info("Created memory %s with %d photo(s) for avatar %s", memory_id, len(stored), avatar_id)
    return get_memory(user_id, memory_id)


def update_memory(user_id: str, memory_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not get_memory(user_id, memory_id):
        return None
    cols: Dict[str, Any] = {}
    for key, value in fields.items():
        if key in TEXT_FIELDS:
            cols[key] = value
        elif key in LIST_FIELDS:
            cols[f"{key}_json"] = dumps(list(value or []))
        elif key in ("is_favorite", "is_private"):
            cols[key] = 1 if value else 0
    if cols:
        cols["updated_at"] = now()
        assignments = ", ".join(f"{k} = ?" for k in cols)
        con = db()
        con.execute(f"UPDATE avatar_memories SET {assignments} WHERE id = ? AND user_id = ?", (*cols.values(), memory_id, user_id))
        con.commit()
        con.close()
    return get_memory(user_id, memory_id)


def delete_memory(user_id: str, memory_id: str) -> bool:
    memory = get_memory(user_id, memory_id)
    if not memory:
        return False
    con = db()
    con.execute("DELETE FROM avatar_memories WHERE id = ? AND user_id = ?", (memory_id, user_id))
    con.commit()
    con.close()
    for image in memory["images"]:
        files.delete_object(BUCKET, image["image_path"])
    return True


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class MemoryUpdate(BaseModel):
    title: Optional[str] = None
    memory_date: Optional[str] = None
    memory_summary: Optional[str] = None
    memory_description: Optional[str] = None
    location: Optional[str] = None
    people_present: Optional[List[str]] = None
    activities: Optional[List[str]] = None
    food_items: Optional[List[str]] = None
    mood: Optional[str] = None
    conversational_hooks: Optional[List[str]] = None
    is_private: Optional[bool] = None


def _owned_avatar(avatar_id: str, user: Dict[str, Any]) -> None:
    if not get_avatar(user["id"], avatar_id):
        raise HTTPException(404, "Avatar not found")


def _owned_memory(avatar_id: str, memory_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
    memory = get_memory(user["id"], memory_id)
    if not memory or memory["avatar_id"] != avatar_id:
        raise HTTPException(404, "Memory not found")
    return memory


@router.get("")
def memories_list(avatar_id: str, user: Dict[str, Any] = Depends(require_user)):
    _owned_avatar(avatar_id, user)
    return {"success": True, "memories": list_memories(avatar_id, user["id"])}


@router.post("")
async def memory_upload(
    avatar_id: str,
    photos: List[UploadFile] = File(...),
    title: Optional[str] = Form(default=None),
    memory_date: Optional[str] = Form(default=None),
    user: Dict[str, Any] = Depends(require_user),
):
    """Create a memory from 1-10 uploaded photos."""
    _owned_avatar(avatar_id, user)
    if len(photos) > MAX_MEMORY_PHOTOS:
        raise HTTPException(400, f"At most {MAX_MEMORY_PHOTOS} photos per memory")

    items = []
    for upload in photos:
        data, ext, mime = await files.read_upload(upload)
        if not mime.startswith("image/"):
            raise HTTPException(400, f"Not an image: {upload.filename}")
        items.append({"data": data, "ext": ext, "mime": mime})

    memory = await create_memory_from_photos(user["id"], avatar_id, items, title=title, memory_date=memory_date)
    return {"success": True, "memory": memory}


@router.get("/{memory_id}")
def memory_detail(avatar_id: str, memory_id: str, user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "memory": _owned_memory(avatar_id, memory_id, user)}


@router.patch("/{memory_id}")
def memory_update(avatar_id: str, memory_id: str, body: MemoryUpdate, user: Dict[str, Any] = Depends(require_user)):
    _owned_memory(avatar_id, memory_id, user)
    return {"success": True, "memory": update_memory(user["id"], memory_id, body.model_dump(exclude_unset=True))}


@router.post("/{memory_id}/favorite")
def memory_favorite(avatar_id: str, memory_id: str, user: Dict[str, Any] = Depends(require_user)):
    memory = _owned_memory(avatar_id, memory_id, user)
    updated = update_memory(user["id"], memory_id, {"is_favorite": not memory["is_favorite"]})
    return {"success": True, "memory": updated}


@router.delete("/{memory_id}")
def memory_delete(avatar_id: str, memory_id: str, user: Dict[str, Any] = Depends(require_user)):
    _owned_memory(avatar_id, memory_id, user)
    delete_memory(user["id"], memory_id)
    return {"success": True}
