"""
FastAPI routes for avatars under ``/v1/avatars``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..users import require_user
from . import repo
from .prompt import build_base_system_prompt, system_prompt_for

router = APIRouter(prefix="/v1/avatars", tags=["avatars"])


class AvatarFields(BaseModel):
    description: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[str] = None
    origin_country: Optional[str] = None
    primary_language: Optional[str] = None
    secondary_languages: Optional[List[str]] = None
    mbti_type: Optional[str] = Field(default=None, max_length=4)
    personality_traits: Optional[List[str]] = None
    backstory: Optional[str] = None
    hidden_rules: Optional[str] = None
    favorites: Optional[List[str]] = None
    lifestyle: Optional[List[str]] = None
    voice_description: Optional[str] = None
    system_prompt: Optional[str] = None
    fine_tuned_model_id: Optional[str] = None
    avatar_image_url: Optional[str] = None
    status: Optional[str] = None


class AvatarCreate(AvatarFields):
    name: str = Field(..., min_length=1, max_length=128)


class AvatarUpdate(AvatarFields):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)


@router.get("")
def avatars_list(user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "avatars": repo.list_avatars(user["id"])}


@router.post("")
def avatar_create(body: AvatarCreate, user: Dict[str, Any] = Depends(require_user)):
    """Create an avatar, enforcing the subscription tier's avatar limit."""
    limit = repo.max_avatars_for(user)
    if repo.count_avatars(user["id"]) >= limit:
        raise HTTPException(
            403,
            f"Avatar limit reached ({limit}) for your subscription tier. Upgrade to create more avatars.",
        )
    avatar = repo.create_avatar(user["id"], body.model_dump(exclude_none=True))
    return {"success": True, "avatar": avatar}


@router.get("/{avatar_id}")
def avatar_detail(avatar_id: str, user: Dict[str, Any] = Depends(require_user)):
    avatar = repo.get_avatar(user["id"], avatar_id)
    if not avatar:
        raise HTTPException(404, "Avatar not found")
    return {"success": True, "avatar": avatar}


@router.patch("/{avatar_id}")
def avatar_update(avatar_id: str, body: AvatarUpdate, user: Dict[str, Any] = Depends(require_user)):
    avatar = repo.update_avatar(user["id"], avatar_id, body.model_dump(exclude_unset=True))
    if not avatar:
        raise HTTPException(404, "Avatar not found")
    return {"success": True, "avatar": avatar}


@router.delete("/{avatar_id}")
def avatar_delete(avatar_id: str, user: Dict[str, Any] = Depends(require_user)):
    if not repo.delete_avatar(user["id"], avatar_id):
        raise HTTPException(404, "Avatar not found")
    return {"success": True}


@router.get("/{avatar_id}/system-prompt")
def avatar_system_prompt(avatar_id: str, user: Dict[str, Any] = Depends(require_user)):
    """Effective system prompt plus the one generated from the profile alone."""
    avatar = repo.get_avatar(user["id"], avatar_id)
    if not avatar:
        raise HTTPException(404, "Avatar not found")
    return {
        "success": True,
        "system_prompt": system_prompt_for(avatar),
        "base_system_prompt": build_base_system_prompt(avatar),
    }
