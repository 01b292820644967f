from __future__ import annotations

import json
import logging
import os
import sqlite3
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .config import SQLITE_PATH

logger = logging.getLogger("avatarhub.storage")

_RESOLVED_DB_PATH = None
_INITIALIZED_PATH = None


def _get_db_path() -> str:
    global _RESOLVED_DB_PATH
    if _RESOLVED_DB_PATH:
        return _RESOLVED_DB_PATH

    candidate = SQLITE_PATH
    directory = os.path.dirname(candidate) or "."

    try:
        os.makedirs(directory, exist_ok=True)
        test_file = os.path.join(directory, f".perm_check_{os.getpid()}")
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
        _RESOLVED_DB_PATH = candidate
        return candidate
    except (OSError, PermissionError):
        fallback_dir = Path(__file__).resolve().parents[1] / "data"
        fallback_dir.mkdir(parents=True, exist_ok=True)
        fallback_path = str(fallback_dir / "avatarhub.sqlite")
        logger.warning("Permission denied for '%s'. Using local fallback: %s", SQLITE_PATH, fallback_path)
        _RESOLVED_DB_PATH = fallback_path
        return fallback_path


def db() -> sqlite3.Connection:
    """Get a database connection with Row factory and FK enforcement."""
    con = sqlite3.connect(_get_db_path())
    con.row_factory = sqlite3.Row
    con.execute("PRAGMA foreign_keys = ON")
    return con


def now() -> str:
    """UTC timestamp that sorts lexicographically (microsecond precision)."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def expires_in(seconds: float) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S.000000Z", time.gmtime(time.time() + seconds))


def dumps(value: Any) -> str:
    return json.dumps(value if value is not None else None)


def loads(raw: Optional[str], default: Any = None) -> Any:
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


def row_to_dict(row: Optional[sqlite3.Row], json_fields: Iterable[str] = (), bool_fields: Iterable[str] = ()) -> Optional[Dict[str, Any]]:
    """Decode a row: ``foo_json`` columns become ``foo``, flag columns become bools."""
    if row is None:
        return None
    out = dict(row)
    for field in json_fields:
        raw = out.pop(f"{field}_json", None)
        out[field] = loads(raw, default=None)
    for field in bool_fields:
        if field in out and out[field] is not None:
            out[field] = bool(out[field])
    return out


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA = [
    # Accounts
    """
    CREATE TABLE IF NOT EXISTS users(
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE COLLATE NOCASE,
        name TEXT DEFAULT '',
        password_hash TEXT DEFAULT '',
        account_status TEXT DEFAULT 'active',
        subscription_tier_id TEXT DEFAULT 'free',
        banned_at TEXT,
        banned_reason TEXT,
        last_login TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_sessions(
        token TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        created_at TEXT NOT NULL,
        expires_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS admin_users(
        user_id TEXT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
        role TEXT NOT NULL,
        is_active INTEGER DEFAULT 1,
        granted_by TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS admin_audit_logs(
        id TEXT PRIMARY KEY,
        admin_id TEXT NOT NULL,
        action TEXT NOT NULL,
        target_type TEXT,
        target_id TEXT,
        details_json TEXT DEFAULT '{}',
        created_at TEXT NOT NULL
    )
    """,
    # Billing
    """
    CREATE TABLE IF NOT EXISTS subscription_tiers(
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        display_name TEXT NOT NULL,
        description TEXT DEFAULT '',
        price_monthly REAL DEFAULT 0,
        price_yearly REAL DEFAULT 0,
        trial_days INTEGER DEFAULT 0,
        max_avatars INTEGER DEFAULT 1,
        priority_support INTEGER DEFAULT 0,
        custom_branding INTEGER DEFAULT 0,
        is_active INTEGER DEFAULT 1,
        is_featured INTEGER DEFAULT 0,
        sort_order INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_subscriptions(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
        tier_id TEXT NOT NULL,
        status TEXT DEFAULT 'active',
        billing_cycle TEXT DEFAULT 'monthly',
        started_at TEXT NOT NULL,
        expires_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tier_upgrade_requests(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        requested_tier_id TEXT NOT NULL,
        current_tier_id TEXT,
        message TEXT DEFAULT '',
        status TEXT DEFAULT 'pending',
        reviewed_by TEXT,
        reviewed_at TEXT,
        review_notes TEXT DEFAULT '',
        created_at TEXT NOT NULL
    )
    """,
    # Keys
    """
    CREATE TABLE IF NOT EXISTS user_api_keys(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        service TEXT NOT NULL,
        api_key_encrypted TEXT NOT NULL,
        status TEXT DEFAULT 'active',
        last_used_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS platform_api_keys(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        key_hash TEXT NOT NULL UNIQUE,
        key_prefix TEXT NOT NULL,
        scopes_json TEXT DEFAULT '[]',
        avatar_id TEXT,
        is_active INTEGER DEFAULT 1,
        usage_count INTEGER DEFAULT 0,
        last_used_at TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_request_logs(
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        api_key_id TEXT,
        user_id TEXT,
        endpoint TEXT NOT NULL,
        method TEXT NOT NULL,
        status_code INTEGER,
        created_at TEXT NOT NULL
    )
    """,
    # Avatars
    """
    CREATE TABLE IF NOT EXISTS avatars(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        description TEXT DEFAULT '',
        age INTEGER,
        gender TEXT DEFAULT '',
        origin_country TEXT DEFAULT '',
        primary_language TEXT DEFAULT '',
        secondary_languages_json TEXT DEFAULT '[]',
        mbti_type TEXT DEFAULT '',
        personality_traits_json TEXT DEFAULT '[]',
        backstory TEXT DEFAULT '',
        hidden_rules TEXT DEFAULT '',
        favorites_json TEXT DEFAULT '[]',
        lifestyle_json TEXT DEFAULT '[]',
        voice_description TEXT DEFAULT '',
        system_prompt TEXT DEFAULT '',
        fine_tuned_model_id TEXT,
        avatar_image_url TEXT DEFAULT '',
        status TEXT DEFAULT 'active',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS avatar_prompt_versions(
        id TEXT PRIMARY KEY,
        avatar_id TEXT NOT NULL REFERENCES avatars(id) ON DELETE CASCADE,
        user_id TEXT NOT NULL,
        parent_version_id TEXT,
        version_number TEXT NOT NULL,
        version_name TEXT DEFAULT '',
        description TEXT DEFAULT '',
        system_prompt TEXT NOT NULL,
        personality_traits_json TEXT DEFAULT '[]',
        behavior_rules_json TEXT DEFAULT '[]',
        response_style_json TEXT DEFAULT '{}',
        changes_from_parent_json TEXT DEFAULT '{}',
        inheritance_type TEXT DEFAULT 'full',
        is_active INTEGER DEFAULT 0,
        is_published INTEGER DEFAULT 0,
        usage_count INTEGER DEFAULT 0,
        rating REAL,
        feedback_notes TEXT DEFAULT '',
        created_at TEXT NOT NULL,
        activated_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS training_logs(
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        avatar_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        version_id TEXT,
        log_type TEXT NOT NULL,
        message TEXT DEFAULT '',
        details_json TEXT DEFAULT '{}',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS avatar_memories(
        id TEXT PRIMARY KEY,
        avatar_id TEXT NOT NULL REFERENCES avatars(id) ON DELETE CASCADE,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        memory_date TEXT,
        memory_summary TEXT DEFAULT '',
        memory_description TEXT DEFAULT '',
        location TEXT DEFAULT '',
        people_present_json TEXT DEFAULT '[]',
        activities_json TEXT DEFAULT '[]',
        food_items_json TEXT DEFAULT '[]',
        mood TEXT DEFAULT '',
        conversational_hooks_json TEXT DEFAULT '[]',
        is_favorite INTEGER DEFAULT 0,
        is_private INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS memory_images(
        id TEXT PRIMARY KEY,
        memory_id TEXT NOT NULL REFERENCES avatar_memories(id) ON DELETE CASCADE,
        image_url TEXT NOT NULL,
        image_path TEXT NOT NULL,
        caption TEXT DEFAULT '',
        is_primary INTEGER DEFAULT 0,
        image_order INTEGER DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS avatar_conversations(
        id TEXT PRIMARY KEY,
        avatar_id TEXT NOT NULL REFERENCES avatars(id) ON DELETE CASCADE,
        user_id TEXT NOT NULL,
        phone_number TEXT NOT NULL,
        conversation_text TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    # Generation
    """
    CREATE TABLE IF NOT EXISTS generated_images(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        prompt TEXT NOT NULL,
        negative_prompt TEXT DEFAULT '',
        image_url TEXT NOT NULL,
        image_path TEXT,
        original_image_url TEXT,
        provider TEXT NOT NULL,
        model TEXT DEFAULT '',
        parameters_json TEXT DEFAULT '{}',
        generation_type TEXT DEFAULT 'text2img',
        width INTEGER DEFAULT 1024,
        height INTEGER DEFAULT 1024,
        seed INTEGER,
        steps INTEGER,
        cfg_scale REAL,
        is_favorite INTEGER DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS generated_videos(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        task_id TEXT,
        provider TEXT NOT NULL,
        prompt TEXT DEFAULT '',
        image_url TEXT,
        video_url TEXT,
        video_path TEXT,
        original_video_url TEXT,
        status TEXT DEFAULT 'processing',
        progress INTEGER DEFAULT 0,
        error_message TEXT,
        generation_type TEXT DEFAULT 'text2vid',
        aspect_ratio TEXT DEFAULT '16:9',
        duration INTEGER DEFAULT 5,
        parameters_json TEXT DEFAULT '{}',
        is_favorite INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        completed_at TEXT
    )
    """,
    # Voice
    """
    CREATE TABLE IF NOT EXISTS voice_clones(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        description TEXT DEFAULT '',
        language TEXT DEFAULT 'en',
        elevenlabs_voice_id TEXT,
        status TEXT DEFAULT 'training',
        sample_count INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS voice_samples(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        voice_clone_id TEXT REFERENCES voice_clones(id) ON DELETE CASCADE,
        file_name TEXT NOT NULL,
        file_path TEXT NOT NULL,
        file_url TEXT NOT NULL,
        file_size INTEGER DEFAULT 0,
        mime_type TEXT DEFAULT '',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tts_generations(
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        voice_clone_id TEXT,
        voice_id TEXT NOT NULL,
        text TEXT NOT NULL,
        audio_url TEXT NOT NULL,
        audio_path TEXT NOT NULL,
        model_id TEXT NOT NULL,
        settings_json TEXT DEFAULT '{}',
        created_at TEXT NOT NULL
    )
    """,
    # Object store index
    """
    CREATE TABLE IF NOT EXISTS file_objects(
        bucket TEXT NOT NULL,
        path TEXT NOT NULL,
        user_id TEXT NOT NULL,
        mime TEXT DEFAULT 'application/octet-stream',
        size_bytes INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        PRIMARY KEY(bucket, path)
    )
    """,
]

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_user_sessions_user ON user_sessions(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_avatars_user ON avatars(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_prompt_versions_avatar ON avatar_prompt_versions(avatar_id)",
    "CREATE INDEX IF NOT EXISTS idx_memories_avatar ON avatar_memories(avatar_id)",
    "CREATE INDEX IF NOT EXISTS idx_conversations_phone ON avatar_conversations(avatar_id, phone_number)",
    "CREATE INDEX IF NOT EXISTS idx_videos_status ON generated_videos(status, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_user_api_keys_service ON user_api_keys(user_id, service, status)",
]

# name, display_name, description, monthly, yearly, trial_days, max_avatars,
# priority_support, custom_branding, is_featured, sort_order
_DEFAULT_TIERS = [
    ("free", "Free", "Try the platform with a single avatar", 0.0, 0.0, 0, 1, 0, 0, 0, 0),
    ("starter", "Starter", "For creators running a few personas", 9.99, 99.99, 7, 3, 0, 0, 0, 1),
    ("pro", "Pro", "Professional avatar fleet with priority support", 29.99, 299.99, 14, 10, 1, 0, 1, 2),
    ("enterprise", "Enterprise", "Custom branding and large fleets", 99.99, 999.99, 30, 100, 1, 1, 0, 3),
]


def init_db() -> None:
    """Create all tables if they don't exist and seed the default tiers. Safe to call repeatedly."""
    global _INITIALIZED_PATH
    path = _get_db_path()
    if _INITIALIZED_PATH == path:
        return

    con = sqlite3.connect(path)
    cur = con.cursor()
    for ddl in _SCHEMA:
        cur.execute(ddl)
    for ddl in _INDEXES:
        cur.execute(ddl)

    ts = now()
    for (name, display, desc, monthly, yearly, trial, max_avatars,
         priority, branding, featured, order) in _DEFAULT_TIERS:
        cur.execute(
            """
            INSERT OR IGNORE INTO subscription_tiers(
                id, name, display_name, description, price_monthly, price_yearly,
                trial_days, max_avatars, priority_support, custom_branding,
                is_active, is_featured, sort_order, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?, ?, ?)
            """,
            (name, name, display, desc, monthly, yearly, trial, max_avatars,
             priority, branding, featured, order, ts, ts),
        )
    con.commit()
    con.close()
    _INITIALIZED_PATH = path
