"""
Repository layer for avatars.

Every query is scoped by ``user_id`` except ``get_avatar_by_id``, which the
platform-key endpoints use after the key itself has been verified.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from .. import files
from ..storage import db, dumps, now, row_to_dict

logger = logging.getLogger("avatarhub.avatars")

JSON_FIELDS = ("secondary_languages", "personality_traits", "favorites", "lifestyle")

# Plain text/number columns accepted on create and update
SCALAR_FIELDS = (
    "name",
    "description",
    "age",
    "gender",
    "origin_country",
    "primary_language",
    "mbti_type",
    "backstory",
    "hidden_rules",
    "voice_description",
    "system_prompt",
    "fine_tuned_model_id",
    "avatar_image_url",
    "status",
)


def _row(row) -> Optional[Dict[str, Any]]:
    avatar = row_to_dict(row, json_fields=JSON_FIELDS)
    if avatar:
        for field in JSON_FIELDS:
            if avatar.get(field) is None:
                avatar[field] = []
    return avatar


def _columns(fields: Dict[str, Any]) -> Dict[str, Any]:
    cols: Dict[str, Any] = {}
    for key, value in fields.items():
        if key in SCALAR_FIELDS:
            cols[key] = value
        elif key in JSON_FIELDS:
            cols[f"{key}_json"] = dumps(list(value or []))
    return cols


def list_avatars(user_id: str) -> List[Dict[str, Any]]:
    con = db()
    rows = con.execute(
        "SELECT * FROM avatars WHERE user_id = ? ORDER BY created_at DESC, rowid DESC", (user_id,)
    ).fetchall()
    con.close()
    return [_row(r) for r in rows]


def get_avatar(user_id: str, avatar_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM avatars WHERE id = ? AND user_id = ?", (avatar_id, user_id)).fetchone()
    con.close()
    return _row(row)


def get_avatar_by_id(avatar_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM avatars WHERE id = ?", (avatar_id,)).fetchone()
    con.close()
    return _row(row)


def count_avatars(user_id: str) -> int:
    con = db()
    count = con.execute("SELECT COUNT(*) FROM avatars WHERE user_id = ?", (user_id,)).fetchone()[0]
    con.close()
    return count


def max_avatars_for(user: Dict[str, Any]) -> int:
    """Avatar limit of the user's subscription tier (free tier limit when unknown)."""
    con = db()
    row = con.execute(
        "SELECT max_avatars FROM subscription_tiers WHERE id = ?",
        (user.get("subscription_tier_id") or "free",),
    ).fetchone()
    if not row:
        row = con.execute("SELECT max_avatars FROM subscription_tiers WHERE id = 'free'").fetchone()
    con.close()
    return int(row["max_avatars"]) if row else 1


def create_avatar(user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    avatar_id = str(uuid.uuid4())
    ts = now()
    cols = _columns(fields)
    cols.update({"id": avatar_id, "user_id": user_id, "created_at": ts, "updated_at": ts})

    names = ", ".join(cols)
    marks = ", ".join("?" for _ in cols)
    con = db()
    con.execute(f"INSERT INTO avatars({names}) VALUES ({marks})", tuple(cols.values()))
    con.commit()
    con.close()
    logger.info("Created avatar %s for user %s", avatar_id, user_id)
    return get_avatar(user_id, avatar_id)


def update_avatar(user_id: str, avatar_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    cols = _columns(fields)
    if not get_avatar(user_id, avatar_id):
        return None
    if cols:
        cols["updated_at"] = now()
        assignments = ", ".join(f"{k} = ?" for k in cols)
        con = db()
        con.execute(
            f"UPDATE avatars SET {assignments} WHERE id = ? AND user_id = ?",
            (*cols.values(), avatar_id, user_id),
        )
        con.commit()
        con.close()
    return get_avatar(user_id, avatar_id)


def delete_avatar(user_id: str, avatar_id: str) -> bool:
    """Delete the avatar; versions, memories and conversations cascade, memory photos are removed."""
    con = db()
    row = con.execute("SELECT id FROM avatars WHERE id = ? AND user_id = ?", (avatar_id, user_id)).fetchone()
    if not row:
        con.close()
        return False

    image_paths = [
        r["image_path"]
        for r in con.execute(
            """
            SELECT mi.image_path FROM memory_images mi
            JOIN avatar_memories m ON m.id = mi.memory_id
            WHERE m.avatar_id = ?
            """,
            (avatar_id,),
        ).fetchall()
    ]
    con.execute("DELETE FROM avatars WHERE id = ? AND user_id = ?", (avatar_id, user_id))
    con.execute("DELETE FROM training_logs WHERE avatar_id = ?", (avatar_id,))
    con.commit()
    con.close()

    for path in image_paths:
        files.delete_object("memories", path)
    logger.info("Deleted avatar %s (%d memory photos)", avatar_id, len(image_paths))
    return True
