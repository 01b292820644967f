"""
Subscription tiers and tier upgrade requests.

Users browse the active tiers and ask for an upgrade; an admin approves
(which moves the user onto the tier) or rejects the request. Payment
collection happens outside the platform.
"""
from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .admin import record_audit, require_admin, set_user_tier, tier_exists
from .avatars.repo import count_avatars, max_avatars_for
from .storage import db, now, row_to_dict
from .users import require_user

logger = logging.getLogger("avatarhub.billing")

router = APIRouter(prefix="/v1/billing", tags=["billing"])
admin_router = APIRouter(prefix="/v1/admin", tags=["admin"])

TIER_FLAGS = ("priority_support", "custom_branding", "is_active", "is_featured")
TIER_FIELDS = (
    "display_name", "description", "price_monthly", "price_yearly", "trial_days", "max_avatars",
    "priority_support", "custom_branding", "is_active", "is_featured", "sort_order",
)


def _tier(row) -> Optional[Dict[str, Any]]:
    return row_to_dict(row, bool_fields=TIER_FLAGS)


def list_tiers(include_inactive: bool = False) -> List[Dict[str, Any]]:
    sql = "SELECT * FROM subscription_tiers"
    if not include_inactive:
        sql += " WHERE is_active = 1"
    con = db()
    rows = con.execute(sql + " ORDER BY sort_order, price_monthly").fetchall()
    con.close()
    return [_tier(r) for r in rows]


def get_tier(tier_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM subscription_tiers WHERE id = ?", (tier_id,)).fetchone()
    con.close()
    return _tier(row)


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")


def create_tier(fields: Dict[str, Any]) -> Dict[str, Any]:
    tier_id = _slug(fields["name"])
    if not tier_id:
        raise HTTPException(400, "Tier name must contain letters or digits")
    if tier_exists(tier_id):
        raise HTTPException(409, f"Tier '{tier_id}' already exists")

    ts = now()
    values = {k: fields[k] for k in TIER_FIELDS if k in fields}
    columns = ["id", "name", *values.keys(), "created_at", "updated_at"]
    con = db()
    con.execute(
        f"INSERT INTO subscription_tiers({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
        (tier_id, tier_id, *values.values(), ts, ts),
    )
    con.commit()
    con.close()
    return get_tier(tier_id)


def update_tier(tier_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    updates = {k: v for k, v in fields.items() if k in TIER_FIELDS}
    if not get_tier(tier_id):
        return None
    if updates:
        updates["updated_at"] = now()
        con = db()
        con.execute(
            f"UPDATE subscription_tiers SET {', '.join(f'{k} = ?' for k in updates)} WHERE id = ?",
            (*updates.values(), tier_id),
        )
        con.commit()
        con.close()
    return get_tier(tier_id)


def delete_tier(tier_id: str) -> bool:
    con = db()
    users = con.execute("SELECT COUNT(*) FROM users WHERE subscription_tier_id = ?", (tier_id,)).fetchone()[0]
    if users:
        con.close()
        raise HTTPException(409, f"Cannot delete a tier with {users} subscribed user(s). Deactivate it instead.")
    cur = con.execute("DELETE FROM subscription_tiers WHERE id = ?", (tier_id,))
    con.commit()
    con.close()
    return cur.rowcount > 0


# ---------------------------------------------------------------------------
# Upgrade requests
# ---------------------------------------------------------------------------

def get_request(request_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM tier_upgrade_requests WHERE id = ?", (request_id,)).fetchone()
    con.close()
    return row_to_dict(row)


def create_upgrade_request(user: Dict[str, Any], tier_id: str, message: str = "") -> Dict[str, Any]:
    tier = get_tier(tier_id)
    if not tier or not tier["is_active"]:
        raise HTTPException(404, "Tier not found")
    if tier_id == user.get("subscription_tier_id"):
        raise HTTPException(400, "You are already on this tier")

    con = db()
    pending = con.execute(
        "SELECT id FROM tier_upgrade_requests WHERE user_id = ? AND status = 'pending'", (user["id"],)
    ).fetchone()
    if pending:
        con.close()
        raise HTTPException(409, "You already have a pending upgrade request. Please wait for admin review.")

    request_id = str(uuid.uuid4())
    con.execute(
        """
        INSERT INTO tier_upgrade_requests(id, user_id, requested_tier_id, current_tier_id, message, status, created_at)
        VALUES (?, ?, ?, ?, ?, 'pending', ?)
        """,
        (request_id, user["id"], tier_id, user.get("subscription_tier_id"), message or "", now()),
    )
    con.commit()
    con.close()
    logger.info("User %s requested upgrade to %s", user["id"], tier_id)
    return get_request(request_id)


def list_requests(status: Optional[str] = None, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Requests newest first, with the user's email/name and both tier display names."""
    sql = """
        SELECT r.*, u.email AS user_email, u.name AS user_name,
               rt.display_name AS requested_tier_name, ct.display_name AS current_tier_name
        FROM tier_upgrade_requests r
        LEFT JOIN users u ON u.id = r.user_id
        LEFT JOIN subscription_tiers rt ON rt.id = r.requested_tier_id
        LEFT JOIN subscription_tiers ct ON ct.id = r.current_tier_id
        WHERE 1 = 1
    """
    params: List[Any] = []
    if status:
        sql += " AND r.status = ?"
        params.append(status)
    if user_id:
        sql += " AND r.user_id = ?"
        params.append(user_id)
    con = db()
    rows = con.execute(sql + " ORDER BY r.created_at DESC, r.rowid DESC", params).fetchall()
    con.close()
    return [dict(r) for r in rows]


def review_request(request_id: str, admin_id: str, approve: bool, notes: str = "") -> Dict[str, Any]:
    request = get_request(request_id)
    if not request:
        raise HTTPException(404, "Upgrade request not found")
    if request["status"] != "pending":
        raise HTTPException(409, f"Upgrade request is already {request['status']}")

    if approve:
        set_user_tier(request["user_id"], request["requested_tier_id"])
    con = db()
    con.execute(
        "UPDATE tier_upgrade_requests SET status = ?, reviewed_by = ?, reviewed_at = ?, review_notes = ? WHERE id = ?",
        ("approved" if approve else "rejected", admin_id, now(), notes or "", request_id),
    )
    con.commit()
    con.close()
    return get_request(request_id)


# ---------------------------------------------------------------------------
# User endpoints
# ---------------------------------------------------------------------------

class UpgradeRequestCreate(BaseModel):
    tier_id: str = Field(..., min_length=1)
    message: str = ""


@router.get("/tiers")
def get_tiers():
    return {"success": True, "tiers": list_tiers()}


@router.get("/subscription")
def get_subscription(user: Dict[str, Any] = Depends(require_user)):
    """Current tier, subscription row and avatar usage against the tier limit."""
    con = db()
    subscription = con.execute("SELECT * FROM user_subscriptions WHERE user_id = ?", (user["id"],)).fetchone()
    con.close()
    return {
        "success": True,
        "tier": get_tier(user.get("subscription_tier_id") or "free"),
        "subscription": dict(subscription) if subscription else None,
        "usage": {"avatars": count_avatars(user["id"]), "max_avatars": max_avatars_for(user)},
    }


@router.post("/upgrade-requests")
def post_upgrade_request(body: UpgradeRequestCreate, user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "request": create_upgrade_request(user, body.tier_id, body.message)}


@router.get("/upgrade-requests")
def get_my_upgrade_requests(user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "requests": list_requests(user_id=user["id"])}


# ---------------------------------------------------------------------------
# Admin endpoints
# ---------------------------------------------------------------------------

class TierFields(BaseModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    price_monthly: Optional[float] = Field(default=None, ge=0)
    price_yearly: Optional[float] = Field(default=None, ge=0)
    trial_days: Optional[int] = Field(default=None, ge=0)
    max_avatars: Optional[int] = Field(default=None, ge=0)
    priority_support: Optional[bool] = None
    custom_branding: Optional[bool] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    sort_order: Optional[int] = None


class TierCreate(TierFields):
    name: str = Field(..., min_length=1, max_length=64)
    display_name: str = Field(..., min_length=1)


class ReviewRequest(BaseModel):
    notes: str = ""


@admin_router.get("/tiers")
def admin_get_tiers(admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "tiers": list_tiers(include_inactive=True)}


@admin_router.post("/tiers")
def admin_create_tier(body: TierCreate, admin: Dict[str, Any] = Depends(require_admin)):
    tier = create_tier(body.model_dump(exclude_none=True))
    record_audit(admin["id"], "tier.create", "tier", tier["id"], body.model_dump(exclude_none=True))
    return {"success": True, "tier": tier}


@admin_router.patch("/tiers/{tier_id}")
def admin_update_tier(tier_id: str, body: TierFields, admin: Dict[str, Any] = Depends(require_admin)):
    changes = body.model_dump(exclude_unset=True)
    tier = update_tier(tier_id, changes)
    if not tier:
        raise HTTPException(404, "Tier not found")
    record_audit(admin["id"], "tier.update", "tier", tier_id, changes)
    return {"success": True, "tier": tier}


@admin_router.delete("/tiers/{tier_id}")
def admin_delete_tier(tier_id: str, admin: Dict[str, Any] = Depends(require_admin)):
    if not delete_tier(tier_id):
        raise HTTPException(404, "Tier not found")
    record_audit(admin["id"], "tier.delete", "tier", tier_id)
    return {"success": True}


@admin_router.get("/upgrade-requests")
def admin_get_requests(status: Optional[str] = None, admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "requests": list_requests(status=status)}


@admin_router.post("/upgrade-requests/{request_id}/approve")
def admin_approve_request(request_id: str, body: Optional[ReviewRequest] = None, admin: Dict[str, Any] = Depends(require_admin)):
    request = review_request(request_id, admin["id"], approve=True, notes=body.notes if body else "")
    record_audit(admin["id"], "upgrade.approve", "upgrade_request", request_id, {"tier_id": request["requested_tier_id"]})
    return {"success": True, "request": request}


@admin_router.post("/upgrade-requests/{request_id}/reject")
def admin_reject_request(request_id: str, body: Optional[ReviewRequest] = None, admin: Dict[str, Any] = Depends(require_admin)):
    request = review_request(request_id, admin["id"], approve=False, notes=body.notes if body else "")
    record_audit(admin["id"], "upgrade.reject", "upgrade_request", request_id, {"notes": body.notes if body else ""})
    return {"success": True, "request": request}
