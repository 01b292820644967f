"""
User accounts.

Provides registration, login, bearer session tokens and the FastAPI
dependencies every user-scoped router relies on.

Storage: SQLite (same DB as everything else).
Passwords: bcrypt-hashed.
Tokens: random bearer tokens stored in user_sessions table.
"""
from __future__ import annotations

import logging
import secrets
import uuid
from typing import Any, Dict, List, Optional

import bcrypt
from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from .config import SESSION_TTL_DAYS
from .storage import db, expires_in, init_db, now

logger = logging.getLogger("avatarhub.users")

router = APIRouter(prefix="/v1/auth", tags=["auth"])

ACCOUNT_STATUSES = ("active", "suspended", "banned", "deleted")
_BLOCKED_STATUSES = ("suspended", "banned", "deleted")


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def _hash_password(password: str) -> str:
    return "bcrypt:" + bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def _verify_password(password: str, stored_hash: str) -> bool:
    if not password or not stored_hash.startswith("bcrypt:"):
        return False
    return bcrypt.checkpw(password.encode(), stored_hash[7:].encode())


# ---------------------------------------------------------------------------
# Token management
# ---------------------------------------------------------------------------

def _create_token(user_id: str) -> str:
    """Create a new session token for a user."""
    token = secrets.token_urlsafe(48)
    con = db()
    con.execute(
        "INSERT INTO user_sessions(token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
        (token, user_id, now(), expires_in(SESSION_TTL_DAYS * 86400)),
    )
    con.commit()
    con.close()
    return token


def _validate_token(token: str) -> Optional[Dict[str, Any]]:
    """Validate a bearer token. Checks expiry. Returns user dict or None."""
    if not token:
        return None

    con = db()
    row = con.execute("""
        SELECT u.* FROM users u
        JOIN user_sessions s ON s.user_id = u.id
        WHERE s.token = ?
          AND (s.expires_at IS NULL OR s.expires_at > ?)
    """, (token, now())).fetchone()
    con.close()
    return dict(row) if row else None


def _invalidate_token(token: str) -> None:
    con = db()
    con.execute("DELETE FROM user_sessions WHERE token = ?", (token,))
    con.commit()
    con.close()


def _bearer(authorization: str) -> str:
    return (authorization or "").replace("Bearer ", "").strip()


# ---------------------------------------------------------------------------
# User CRUD
# ---------------------------------------------------------------------------

def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM users WHERE email = ? COLLATE NOCASE", (email.strip(),)).fetchone()
    con.close()
    return dict(row) if row else None


def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    con.close()
    return dict(row) if row else None


def count_users() -> int:
    con = db()
    count = con.execute("SELECT COUNT(*) FROM users").fetchone()[0]
    con.close()
    return count


def get_admin_role(user_id: str) -> Optional[str]:
    """Return the active admin role for a user, or None."""
    con = db()
    row = con.execute(
        "SELECT role FROM admin_users WHERE user_id = ? AND is_active = 1", (user_id,)
    ).fetchone()
    con.close()
    return row["role"] if row else None


def create_user(email: str, password: str, name: str = "") -> Dict[str, Any]:
    """Create a new user on the free tier. The very first account becomes super_admin."""
    user_id = str(uuid.uuid4())
    ts = now()
    first = count_users() == 0

    con = db()
    con.execute("""
        INSERT INTO users(id, email, name, password_hash, account_status, subscription_tier_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, 'active', 'free', ?, ?)
    """, (user_id, email.strip(), name.strip(), _hash_password(password), ts, ts))
    if first:
        con.execute(
            "INSERT INTO admin_users(user_id, role, is_active, granted_by, created_at) VALUES (?, 'super_admin', 1, NULL, ?)",
            (user_id, ts),
        )
    con.commit()
    con.close()

    if first:
        logger.info("Bootstrapped super_admin %s", email)
    return get_user_by_id(user_id)


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Strip secrets and attach the admin role."""
    return {
        "id": user["id"],
        "email": user["email"],
        "name": user.get("name", ""),
        "account_status": user.get("account_status", "active"),
        "subscription_tier_id": user.get("subscription_tier_id"),
        "last_login": user.get("last_login"),
        "created_at": user.get("created_at"),
        "admin_role": get_admin_role(user["id"]),
    }


# ---------------------------------------------------------------------------
# Auth dependencies (for protecting endpoints)
# ---------------------------------------------------------------------------

def get_current_user(authorization: str = Header(default="")) -> Optional[Dict[str, Any]]:
    """
    FastAPI dependency: extract user from Authorization header.
    Returns user dict or None. Does NOT raise, for optional auth.
    """
    token = _bearer(authorization)
    if not token:
        return None
    return _validate_token(token)


def require_user(user: Optional[Dict[str, Any]] = Depends(get_current_user)) -> Dict[str, Any]:
    """FastAPI dependency: 401 unless a valid session belongs to an active account."""
    if not user:
        raise HTTPException(401, "Not authenticated")
    if user.get("account_status") in _BLOCKED_STATUSES:
        raise HTTPException(403, f"Account is {user['account_status']}")
    return user


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=256)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(default="", max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=256)
    password: str = Field(..., max_length=128)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/register")
def register(body: RegisterRequest):
    """Create a new user account."""
    init_db()

    email = body.email.strip()
    if "@" not in email:
        raise HTTPException(400, "A valid email address is required")
    if get_user_by_email(email):
        raise HTTPException(409, "Email already registered")

    user = create_user(email=email, password=body.password, name=body.name or email.split("@")[0])
    token = _create_token(user["id"])
    return {"success": True, "user": public_user(user), "token": token}


@router.post("/login")
def login(body: LoginRequest):
    """Authenticate and get a session token."""
    init_db()

    user = get_user_by_email(body.email)
    if not user or not _verify_password(body.password, user.get("password_hash", "")):
        raise HTTPException(401, "Invalid email or password")
    if user.get("account_status") in _BLOCKED_STATUSES:
        reason = user.get("banned_reason") or ""
        raise HTTPException(403, f"Account is {user['account_status']}" + (f": {reason}" if reason else ""))

    ts = now()
    con = db()
    con.execute("UPDATE users SET last_login = ?, updated_at = ? WHERE id = ?", (ts, ts, user["id"]))
    con.commit()
    con.close()
    user["last_login"] = ts

    token = _create_token(user["id"])
    return {"success": True, "user": public_user(user), "token": token}


@router.post("/logout")
def logout(authorization: str = Header(default="")):
    """Invalidate the current session token."""
    token = _bearer(authorization)
    if token:
        _invalidate_token(token)
    return {"success": True}


@router.get("/me")
def get_me(user: Dict[str, Any] = Depends(require_user)):
    """Get the current authenticated user with their tier."""
    con = db()
    tier = con.execute(
        "SELECT id, name, display_name, max_avatars FROM subscription_tiers WHERE id = ?",
        (user.get("subscription_tier_id"),),
    ).fetchone()
    con.close()
    return {"success": True, "user": public_user(user), "tier": dict(tier) if tier else None}


def list_users_brief(search: str = "", limit: int = 100) -> List[Dict[str, Any]]:
    """Admin listing helper. Never exposes password hashes."""
    con = db()
    like = f"%{search.strip()}%"
    rows = con.execute("""
        SELECT u.id, u.email, u.name, u.account_status, u.subscription_tier_id,
               u.last_login, u.created_at,
               (SELECT COUNT(*) FROM avatars a WHERE a.user_id = u.id) AS avatar_count
        FROM users u
        WHERE u.email LIKE ? OR u.name LIKE ?
        ORDER BY u.created_at DESC
        LIMIT ?
    """, (like, like, limit)).fetchall()
    con.close()
    return [dict(r) for r in rows]
