"""
Admin panel: platform overview, user management, admin roles and the audit trail.

Every admin mutation writes an admin_audit_logs row through ``record_audit``.
Granting and revoking admin roles is reserved to ``super_admin``.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .storage import db, dumps, now, row_to_dict
from .users import ACCOUNT_STATUSES, get_admin_role, get_user_by_id, list_users_brief, public_user, require_user

logger = logging.getLogger("avatarhub.admin")

router = APIRouter(prefix="/v1/admin", tags=["admin"])

ADMIN_ROLES = ("super_admin", "admin", "moderator", "support", "analyst")


# ---------------------------------------------------------------------------
# Dependencies and shared helpers
# ---------------------------------------------------------------------------

def require_admin(user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    """FastAPI dependency: 403 unless the caller holds an active admin role."""
    role = get_admin_role(user["id"])
    if not role:
        raise HTTPException(403, "Admin access required")
    return {**user, "admin_role": role}


def require_super_admin(admin: Dict[str, Any] = Depends(require_admin)) -> Dict[str, Any]:
    if admin["admin_role"] != "super_admin":
        raise HTTPException(403, "Super admin access required")
    return admin


def record_audit(
    admin_id: str,
    action: str,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    con = db()
    con.execute(
        """
        INSERT INTO admin_audit_logs(id, admin_id, action, target_type, target_id, details_json, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (str(uuid.uuid4()), admin_id, action, target_type, target_id, dumps(details or {}), now()),
    )
    con.commit()
    con.close()
    logger.info("Admin %s: %s %s %s", admin_id, action, target_type or "", target_id or "")


def tier_exists(tier_id: str) -> bool:
    con = db()
    row = con.execute("SELECT 1 FROM subscription_tiers WHERE id = ?", (tier_id,)).fetchone()
    con.close()
    return row is not None


def set_user_tier(user_id: str, tier_id: str, billing_cycle: str = "monthly") -> None:
    """Move a user onto a tier and upsert their active subscription."""
    ts = now()
    con = db()
    con.execute("UPDATE users SET subscription_tier_id = ?, updated_at = ? WHERE id = ?", (tier_id, ts, user_id))
    con.execute(
        """
        INSERT INTO user_subscriptions(id, user_id, tier_id, status, billing_cycle, started_at, created_at, updated_at)
        VALUES (?, ?, ?, 'active', ?, ?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET
            tier_id = excluded.tier_id,
            status = 'active',
            billing_cycle = excluded.billing_cycle,
            started_at = excluded.started_at,
            updated_at = excluded.updated_at
        """,
        (str(uuid.uuid4()), user_id, tier_id, billing_cycle, ts, ts, ts),
    )
    con.commit()
    con.close()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _since(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def platform_overview() -> Dict[str, Any]:
    con = db()

    def scalar(sql: str, params=()) -> Any:
        return con.execute(sql, params).fetchone()[0]

    overview = {
        "total_users": scalar("SELECT COUNT(*) FROM users"),
        "active_users_7d": scalar("SELECT COUNT(*) FROM users WHERE last_login >= ?", (_since(7),)),
        "active_users_30d": scalar("SELECT COUNT(*) FROM users WHERE last_login >= ?", (_since(30),)),
        "total_avatars": scalar("SELECT COUNT(*) FROM avatars"),
        "total_images": scalar("SELECT COUNT(*) FROM generated_images"),
        "total_videos": scalar("SELECT COUNT(*) FROM generated_videos"),
        "mrr": round(
            scalar(
                """
                SELECT COALESCE(SUM(t.price_monthly), 0) FROM user_subscriptions s
                JOIN subscription_tiers t ON t.id = s.tier_id
                WHERE s.status = 'active'
                """
            ),
            2,
        ),
    }
    con.close()
    return overview


def user_details(user_id: str) -> Optional[Dict[str, Any]]:
    user = get_user_by_id(user_id)
    if not user:
        return None
    con = db()
    counts = {
        key: con.execute(f"SELECT COUNT(*) FROM {table} WHERE user_id = ?", (user_id,)).fetchone()[0]
        for key, table in (
            ("avatars", "avatars"),
            ("images", "generated_images"),
            ("videos", "generated_videos"),
            ("memories", "avatar_memories"),
            ("voice_clones", "voice_clones"),
            ("api_keys", "user_api_keys"),
        )
    }
    tier = con.execute("SELECT * FROM subscription_tiers WHERE id = ?", (user.get("subscription_tier_id"),)).fetchone()
    subscription = con.execute("SELECT * FROM user_subscriptions WHERE user_id = ?", (user_id,)).fetchone()
    con.close()
    return {
        "user": {**public_user(user), "banned_at": user.get("banned_at"), "banned_reason": user.get("banned_reason")},
        "counts": counts,
        "tier": row_to_dict(tier, bool_fields=("priority_support", "custom_branding", "is_active", "is_featured")),
        "subscription": dict(subscription) if subscription else None,
    }


def list_admin_users() -> List[Dict[str, Any]]:
    con = db()
    rows = con.execute(
        """
        SELECT a.user_id, a.role, a.is_active, a.granted_by, a.created_at, u.email, u.name
        FROM admin_users a JOIN users u ON u.id = a.user_id
        ORDER BY a.created_at
        """
    ).fetchall()
    con.close()
    return [row_to_dict(r, bool_fields=("is_active",)) for r in rows]


def list_audit_logs(limit: int = 100) -> List[Dict[str, Any]]:
    con = db()
    rows = con.execute(
        "SELECT * FROM admin_audit_logs ORDER BY created_at DESC, rowid DESC LIMIT ?", (limit,)
    ).fetchall()
    con.close()
    return [row_to_dict(r, json_fields=("details",)) for r in rows]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class AccountStatusUpdate(BaseModel):
    account_status: str
    reason: str = ""


class TierChange(BaseModel):
    tier_id: str = Field(..., min_length=1)


class AdminGrant(BaseModel):
    user_id: str = Field(..., min_length=1)
    role: str = "admin"


@router.get("/overview")
def get_overview(admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "overview": platform_overview()}


@router.get("/users")
def get_users(search: str = "", limit: int = 100, admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "users": list_users_brief(search, min(max(limit, 1), 500))}


@router.get("/users/{user_id}")
def get_user_details(user_id: str, admin: Dict[str, Any] = Depends(require_admin)):
    details = user_details(user_id)
    if not details:
        raise HTTPException(404, "User not found")
    return {"success": True, **details}


@router.patch("/users/{user_id}/status")
def update_account_status(user_id: str, body: AccountStatusUpdate, admin: Dict[str, Any] = Depends(require_admin)):
    if body.account_status not in ACCOUNT_STATUSES:
        raise HTTPException(400, f"Invalid account status. Must be one of: {', '.join(ACCOUNT_STATUSES)}")
    if user_id == admin["id"]:
        raise HTTPException(400, "You cannot change your own account status")
    if not get_user_by_id(user_id):
        raise HTTPException(404, "User not found")

    ts = now()
    banned = body.account_status == "banned"
    con = db()
    con.execute(
        "UPDATE users SET account_status = ?, banned_at = ?, banned_reason = ?, updated_at = ? WHERE id = ?",
        (body.account_status, ts if banned else None, body.reason if banned else None, ts, user_id),
    )
    if body.account_status != "active":
        con.execute("DELETE FROM user_sessions WHERE user_id = ?", (user_id,))
    con.commit()
    con.close()

    record_audit(admin["id"], "user.status", "user", user_id, {"account_status": body.account_status, "reason": body.reason})
    return {"success": True, "user": public_user(get_user_by_id(user_id))}


@router.patch("/users/{user_id}/tier")
def change_user_tier(user_id: str, body: TierChange, admin: Dict[str, Any] = Depends(require_admin)):
    user = get_user_by_id(user_id)
    if not user:
        raise HTTPException(404, "User not found")
    if not tier_exists(body.tier_id):
        raise HTTPException(404, "Tier not found")

    set_user_tier(user_id, body.tier_id)
    record_audit(admin["id"], "user.tier", "user", user_id, {"from": user.get("subscription_tier_id"), "to": body.tier_id})
    return {"success": True, "user": public_user(get_user_by_id(user_id))}


@router.get("/admins")
def get_admins(admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "admins": list_admin_users()}


@router.post("/admins")
def grant_admin(body: AdminGrant, admin: Dict[str, Any] = Depends(require_super_admin)):
    if body.role not in ADMIN_ROLES:
        raise HTTPException(400, f"Invalid role. Must be one of: {', '.join(ADMIN_ROLES)}")
    if not get_user_by_id(body.user_id):
        raise HTTPException(404, "User not found")

    con = db()
    con.execute(
        """
        INSERT INTO admin_users(user_id, role, is_active, granted_by, created_at) VALUES (?, ?, 1, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET role = excluded.role, is_active = 1, granted_by = excluded.granted_by
        """,
        (body.user_id, body.role, admin["id"], now()),
    )
    con.commit()
    con.close()

    record_audit(admin["id"], "admin.grant", "user", body.user_id, {"role": body.role})
    return {"success": True, "admins": list_admin_users()}


@router.delete("/admins/{user_id}")
def revoke_admin(user_id: str, admin: Dict[str, Any] = Depends(require_super_admin)):
    if user_id == admin["id"]:
        raise HTTPException(400, "You cannot revoke your own admin role")
    con = db()
    cur = con.execute("DELETE FROM admin_users WHERE user_id = ?", (user_id,))
    con.commit()
    con.close()
    if not cur.rowcount:
        raise HTTPException(404, "Admin user not found")

    record_audit(admin["id"], "admin.revoke", "user", user_id)
    return {"success": True}


@router.get("/audit-logs")
def get_audit_logs(limit: int = 100, admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "logs": list_audit_logs(min(max(limit, 1), 1000))}
