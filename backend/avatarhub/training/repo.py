"""
Repository layer for prompt versions and training logs.

Versions are append-only history. The only mutable state besides metadata
is ``is_active``, and activation goes through ``activate_version`` so at
most one version per avatar is active at a time.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from ..errors import Conflict, NotFound
from ..storage import db, dumps, now, row_to_dict

logger = logging.getLogger("avatarhub.training")

JSON_FIELDS = ("personality_traits", "behavior_rules", "response_style", "changes_from_parent")
BOOL_FIELDS = ("is_active", "is_published")

# Metadata that may change after creation
EDITABLE_FIELDS = ("version_name", "description", "rating", "feedback_notes", "is_published")


def _row(row) -> Optional[Dict[str, Any]]:
    version = row_to_dict(row, json_fields=JSON_FIELDS, bool_fields=BOOL_FIELDS)
    if version:
        version["personality_traits"] = version.get("personality_traits") or []
        version["behavior_rules"] = version.get("behavior_rules") or []
        version["response_style"] = version.get("response_style") or {}
        version["changes_from_parent"] = version.get("changes_from_parent") or {}
    return version


def list_versions(user_id: str, avatar_id: str) -> List[Dict[str, Any]]:
    """All versions of an avatar, newest first."""
    con = db()
    rows = con.execute(
        """
        SELECT * FROM avatar_prompt_versions
        WHERE avatar_id = ? AND user_id = ?
        ORDER BY created_at DESC, rowid DESC
        """,
        (avatar_id, user_id),
    ).fetchall()
    con.close()
    return [_row(r) for r in rows]


def get_version(user_id: str, version_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute(
        "SELECT * FROM avatar_prompt_versions WHERE id = ? AND user_id = ?", (version_id, user_id)
    ).fetchone()
    con.close()
    return _row(row)


def get_active_version(avatar_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    sql = "SELECT * FROM avatar_prompt_versions WHERE avatar_id = ? AND is_active = 1"
    params: List[Any] = [avatar_id]
    if user_id:
        sql += " AND user_id = ?"
        params.append(user_id)
    con = db()
    row = con.execute(sql + " ORDER BY created_at DESC, rowid DESC LIMIT 1", params).fetchone()
    con.close()
    return _row(row)


def next_version_number(avatar_id: str, user_id: str) -> str:
    con = db()
    count = con.execute(
        "SELECT COUNT(*) FROM avatar_prompt_versions WHERE avatar_id = ? AND user_id = ?", (avatar_id, user_id)
    ).fetchone()[0]
    con.close()
    return f"v{count + 1}.0"


def create_version(
    user_id: str,
    avatar_id: str,
    *,
    system_prompt: str,
    version_name: str = "",
    description: str = "",
    personality_traits: Optional[List[str]] = None,
    behavior_rules: Optional[List[str]] = None,
    response_style: Optional[Dict[str, Any]] = None,
    changes_from_parent: Optional[Dict[str, Any]] = None,
    parent_version_id: Optional[str] = None,
    inheritance_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Insert a new inactive version numbered ``v{count+1}.0``."""
    version_id = str(uuid.uuid4())
    number = next_version_number(avatar_id, user_id)
    if inheritance_type is None:
        inheritance_type = "incremental" if parent_version_id else "full"

    con = db()
    con.execute(
        """
        INSERT INTO avatar_prompt_versions(
            id, avatar_id, user_id, parent_version_id, version_number, version_name, description,
            system_prompt, personality_traits_json, behavior_rules_json, response_style_json,
            changes_from_parent_json, inheritance_type, is_active, is_published, usage_count, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, 0, 0, ?)
        """,
        (
            version_id, avatar_id, user_id, parent_version_id, number,
            version_name or f"Version {number}", description, system_prompt,
            dumps(personality_traits or []), dumps(behavior_rules or []),
            dumps(response_style or {}), dumps(changes_from_parent or {}),
            inheritance_type, now(),
        ),
    )
    con.commit()
    con.close()
    logger.info("Created prompt version %s (%s) for avatar %s", number, version_id, avatar_id)
    return get_version(user_id, version_id)


def activate_version(user_id: str, avatar_id: str, version_id: str) -> Dict[str, Any]:
    """Deactivate every version of the avatar, then activate ``version_id``."""
    version = get_version(user_id, version_id)
    if not version or version["avatar_id"] != avatar_id:
        raise NotFound("Prompt version not found")

    con = db()
    con.execute(
        "UPDATE avatar_prompt_versions SET is_active = 0, activated_at = NULL WHERE avatar_id = ? AND user_id = ?",
        (avatar_id, user_id),
    )
    con.execute(
        "UPDATE avatar_prompt_versions SET is_active = 1, activated_at = ? WHERE id = ? AND user_id = ?",
        (now(), version_id, user_id),
    )
    con.commit()
    con.close()
    logger.info("Activated prompt version %s for avatar %s", version["version_number"], avatar_id)
    return get_version(user_id, version_id)


def update_version(user_id: str, version_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    cols = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    if not get_version(user_id, version_id):
        raise NotFound("Prompt version not found")
    if "is_published" in cols:
        cols["is_published"] = 1 if cols["is_published"] else 0
    if cols:
        assignments = ", ".join(f"{k} = ?" for k in cols)
        con = db()
        con.execute(
            f"UPDATE avatar_prompt_versions SET {assignments} WHERE id = ? AND user_id = ?",
            (*cols.values(), version_id, user_id),
        )
        con.commit()
        con.close()
    return get_version(user_id, version_id)


def delete_version(user_id: str, version_id: str) -> None:
    """Delete an inactive leaf version."""
    version = get_version(user_id, version_id)
    if not version:
        raise NotFound("Version not found or you do not have permission to delete it.")
    if version["is_active"]:
        raise Conflict(
            f"Cannot delete the active version ({version['version_number']}). "
            "Please activate a different version first."
        )

    con = db()
    children = con.execute(
        "SELECT version_number FROM avatar_prompt_versions WHERE parent_version_id = ? AND user_id = ? ORDER BY rowid",
        (version_id, user_id),
    ).fetchall()
    if children:
        con.close()
        numbers = ", ".join(r["version_number"] for r in children)
        raise Conflict(
            f"Cannot delete this version as it has dependent child versions: {numbers}. "
            "Please delete child versions first."
        )
    con.execute("DELETE FROM avatar_prompt_versions WHERE id = ? AND user_id = ?", (version_id, user_id))
    con.commit()
    con.close()
    logger.info("Deleted prompt version %s", version_id)


def increment_usage(version_id: str) -> None:
    con = db()
    con.execute("UPDATE avatar_prompt_versions SET usage_count = usage_count + 1 WHERE id = ?", (version_id,))
    con.commit()
    con.close()


# ---------------------------------------------------------------------------
# Lineage
# ---------------------------------------------------------------------------

def get_lineage(user_id: str, version_id: str) -> List[Dict[str, Any]]:
    """The version followed by its ancestors up to the root."""
    chain: List[Dict[str, Any]] = []
    seen = set()
    current = get_version(user_id, version_id)
    if not current:
        raise NotFound("Prompt version not found")
    while current and current["id"] not in seen:
        seen.add(current["id"])
        chain.append(current)
        parent_id = current.get("parent_version_id")
        current = get_version(user_id, parent_id) if parent_id else None
    return chain


def get_descendants(user_id: str, version_id: str) -> List[Dict[str, Any]]:
    """Transitive children, breadth first."""
    if not get_version(user_id, version_id):
        raise NotFound("Prompt version not found")

    con = db()
    out: List[Dict[str, Any]] = []
    seen = {version_id}
    frontier = [version_id]
    while frontier:
        marks = ", ".join("?" for _ in frontier)
        rows = con.execute(
            f"""
            SELECT * FROM avatar_prompt_versions
            WHERE user_id = ? AND parent_version_id IN ({marks})
            ORDER BY created_at, rowid
            """,
            (user_id, *frontier),
        ).fetchall()
        frontier = []
        for r in rows:
            if r["id"] in seen:
                continue
            seen.add(r["id"])
            frontier.append(r["id"])
            out.append(_row(r))
    con.close()
    return out


# ---------------------------------------------------------------------------
# Training logs
# ---------------------------------------------------------------------------

def log_training_event(
    avatar_id: str,
    user_id: str,
    log_type: str,
    message: str,
    *,
    version_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    con = db()
    con.execute(
        """
        INSERT INTO training_logs(avatar_id, user_id, version_id, log_type, message, details_json, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (avatar_id, user_id, version_id, log_type, message, dumps(details or {}), now()),
    )
    con.commit()
    con.close()


def list_training_logs(user_id: str, avatar_id: str, limit: int = 100) -> List[Dict[str, Any]]:
    con = db()
    rows = con.execute(
        "SELECT * FROM training_logs WHERE avatar_id = ? AND user_id = ? ORDER BY id DESC LIMIT ?",
        (avatar_id, user_id, limit),
    ).fetchall()
    con.close()
    return [row_to_dict(r, json_fields=("details",)) for r in rows]
