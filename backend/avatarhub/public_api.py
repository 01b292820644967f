"""
External automation endpoints (n8n, Zapier, WhatsApp bots) under ``/v1/public``.

Authenticated with a platform key in ``X-API-Key``; each endpoint needs its
own scope, and keys bound to one avatar are refused for any other. Every
successful call is recorded in api_request_logs.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from .avatars.repo import get_avatar
from .chat import ChatMessage, compose_system_prompt, run_chat
from .config import CHAT_MEMORY_LIMIT
from .memories import list_memories
from .platform_keys import check_avatar_access, log_api_request, require_platform_key
from .storage import db, now
from .training.repo import get_active_version

logger = logging.getLogger("avatarhub.public_api")

router = APIRouter(prefix="/v1/public", tags=["public"])


def _avatar_for_key(key: Dict[str, Any], avatar_id: Optional[str]) -> Dict[str, Any]:
    if not avatar_id:
        raise HTTPException(400, "Missing required parameter: avatar_id")
    check_avatar_access(key, avatar_id)
    avatar = get_avatar(key["user_id"], avatar_id)
    if not avatar:
        raise HTTPException(404, "Avatar not found")
    return avatar


class PublicChatRequest(BaseModel):
    avatar_id: Optional[str] = None
    message: Optional[str] = None
    conversation_history: List[ChatMessage] = Field(default_factory=list)
    model: Optional[str] = None


class SaveConversationRequest(BaseModel):
    avatar_id: Optional[str] = None
    phone_number: Optional[str] = None
    user_message: Optional[str] = None
    assistant_message: Optional[str] = None


@router.post("/avatar-chat")
async def public_avatar_chat(body: PublicChatRequest, key: Dict[str, Any] = Depends(require_platform_key("chat"))):
    if not body.avatar_id or not body.message:
        raise HTTPException(400, "Missing required fields: avatar_id and message")
    avatar = _avatar_for_key(key, body.avatar_id)

    history = [m.model_dump() for m in body.conversation_history]
    result, _version = await run_chat(key["user_id"], avatar, body.message, history, body.model)
    log_api_request(key, "/avatar-chat", "POST", 200)
    return result


@router.get("/avatar-config")
def public_avatar_config(
    avatar_id: Optional[str] = Query(default=None),
    key: Dict[str, Any] = Depends(require_platform_key("config")),
):
    """Full avatar configuration: profile, active prompt and every memory with its images."""
    avatar = _avatar_for_key(key, avatar_id)
    active = get_active_version(avatar["id"], key["user_id"])
    memories = list_memories(avatar["id"], key["user_id"])
    log_api_request(key, "/avatar-config", "GET", 200)

    profile_fields = (
        "id", "name", "description", "age", "gender", "origin_country", "primary_language",
        "secondary_languages", "backstory", "personality_traits", "mbti_type", "hidden_rules",
        "fine_tuned_model_id",
    )
    return {
        "success": True,
        "avatar": {k: avatar.get(k) for k in profile_fields},
        "active_prompt": {
            "version_number": active["version_number"],
            "system_prompt": active["system_prompt"],
            "personality_traits": active["personality_traits"],
            "behavior_rules": active["behavior_rules"],
            "response_style": active["response_style"],
            "is_active": active["is_active"],
        } if active else None,
        "memories": {
            "count": len(memories),
            "items": [
                {
                    "id": m["id"],
                    "title": m["title"],
                    "date": m["memory_date"],
                    "summary": m["memory_summary"],
                    "description": m["memory_description"],
                    "location": m["location"],
                    "people_present": m["people_present"],
                    "activities": m["activities"],
                    "food_items": m["food_items"],
                    "mood": m["mood"],
                    "conversational_hooks": m["conversational_hooks"],
                    "is_favorite": m["is_favorite"],
                    "is_private": m["is_private"],
                    "images": [
                        {
                            "id": img["id"],
                            "url": img["image_url"],
                            "caption": img["caption"],
                            "is_primary": img["is_primary"],
                            "display_order": img["image_order"],
                        }
                        for img in m["images"]
                    ],
                    "created_at": m["created_at"],
                    "updated_at": m["updated_at"],
                }
                for m in memories
            ],
        },
    }


@router.get("/avatar-prompt")
def public_avatar_prompt(
    avatar_id: Optional[str] = Query(default=None),
    user_query: Optional[str] = Query(default=None),
    include_memories: bool = Query(default=True),
    key: Dict[str, Any] = Depends(require_platform_key("prompt")),
):
    """The composed system prompt, for bots that call the model themselves."""
    avatar = _avatar_for_key(key, avatar_id)
    version = get_active_version(avatar["id"], key["user_id"])
    memories = list_memories(avatar["id"], key["user_id"], limit=CHAT_MEMORY_LIMIT) if include_memories else []
    prompt = compose_system_prompt(avatar, version, memories, user_query, detailed=True)
    log_api_request(key, "/avatar-prompt", "GET", 200)

    return {
        "success": True,
        "avatar_id": avatar["id"],
        "avatar_name": avatar["name"],
        "system_prompt": prompt,
        "components": {
            "base_prompt": "trained_version" if version else "default",
            "prompt_version": version["version_number"] if version else None,
            "memories_included": len(memories),
        },
        "memories": [
            {
                "id": m["id"],
                "title": m["title"],
                "date": m["memory_date"],
                "summary": m["memory_summary"],
                "images_count": len(m["images"]),
            }
            for m in memories
        ],
        "user_query": user_query or None,
    }


@router.get("/avatar-conversations")
def public_conversations_list(
    avatar_id: Optional[str] = Query(default=None),
    phone_number: Optional[str] = Query(default=None),
    limit: int = Query(default=30, ge=1, le=500),
    key: Dict[str, Any] = Depends(require_platform_key("conversations")),
):
    """The newest ``limit`` exchanges with a phone number, returned oldest first."""
    if not avatar_id or not phone_number:
        raise HTTPException(400, "Missing required parameters: avatar_id and phone_number")
    _avatar_for_key(key, avatar_id)

    con = db()
    rows = con.execute(
        """
        SELECT id, conversation_text, created_at FROM avatar_conversations
        WHERE avatar_id = ? AND phone_number = ?
        ORDER BY created_at DESC, rowid DESC LIMIT ?
        """,
        (avatar_id, phone_number, limit),
    ).fetchall()
    con.close()
    log_api_request(key, "/avatar-conversations", "GET", 200)

    history = list(reversed(rows))
    return {
        "success": True,
        "phone": phone_number,
        "conversationHistory": [
            {"text": r["conversation_text"], "timestamp": r["created_at"], "order": i + 1}
            for i, r in enumerate(history)
        ],
        "totalConversations": len(history),
    }


@router.post("/avatar-conversations")
def public_conversations_save(
    body: SaveConversationRequest,
    key: Dict[str, Any] = Depends(require_platform_key("conversations")),
):
    if not (body.avatar_id and body.phone_number and body.user_message and body.assistant_message):
        raise HTTPException(
            400, "Missing required fields: avatar_id, phone_number, user_message, assistant_message"
        )
    _avatar_for_key(key, body.avatar_id)

    text = f"user: {body.user_message} | assistant: {body.assistant_message}"
    conversation_id = str(uuid.uuid4())
    ts = now()
    con = db()
    con.execute(
        """
        INSERT INTO avatar_conversations(id, avatar_id, user_id, phone_number, conversation_text, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (conversation_id, body.avatar_id, key["user_id"], body.phone_number, text, ts),
    )
    con.commit()
    con.close()
    log_api_request(key, "/avatar-conversations", "POST", 200)

    return {
        "success": True,
        "message": "Message saved successfully",
        "data": {"id": conversation_id, "text": text, "timestamp": ts},
    }
