"""
FastAPI routes for prompt versions and training under
``/v1/avatars/{avatar_id}/...``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..avatars.repo import get_avatar
from ..users import require_user
from . import repo
from .compare import compare_versions
from .service import train_avatar

router = APIRouter(prefix="/v1/avatars/{avatar_id}", tags=["training"])


def _owned_avatar(avatar_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
    avatar = get_avatar(user["id"], avatar_id)
    if not avatar:
        raise HTTPException(404, "Avatar not found")
    return avatar


def _owned_version(avatar_id: str, version_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
    version = repo.get_version(user["id"], version_id)
    if not version or version["avatar_id"] != avatar_id:
        raise HTTPException(404, "Prompt version not found")
    return version


class VersionCreate(BaseModel):
    system_prompt: str = Field(..., min_length=1)
    version_name: str = ""
    description: str = ""
    personality_traits: List[str] = Field(default_factory=list)
    behavior_rules: List[str] = Field(default_factory=list)
    response_style: Dict[str, Any] = Field(default_factory=dict)
    parent_version_id: Optional[str] = None
    inheritance_type: Optional[Literal["full", "incremental", "override"]] = None


class VersionUpdate(BaseModel):
    version_name: Optional[str] = None
    description: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    feedback_notes: Optional[str] = None
    is_published: Optional[bool] = None


class TrainRequest(BaseModel):
    training_instructions: str = Field(..., min_length=1)
    conversation_examples: Optional[str] = None


@router.get("/versions")
def versions_list(avatar_id: str, user: Dict[str, Any] = Depends(require_user)):
    _owned_avatar(avatar_id, user)
    return {"success": True, "versions": repo.list_versions(user["id"], avatar_id)}


@router.post("/versions")
def version_create(avatar_id: str, body: VersionCreate, user: Dict[str, Any] = Depends(require_user)):
    _owned_avatar(avatar_id, user)
    if body.parent_version_id:
        _owned_version(avatar_id, body.parent_version_id, user)
    version = repo.create_version(user["id"], avatar_id, **body.model_dump())
    return {"success": True, "version": version}


@router.get("/versions/active")
def version_active(avatar_id: str, user: Dict[str, Any] = Depends(require_user)):
    _owned_avatar(avatar_id, user)
    return {"success": True, "version": repo.get_active_version(avatar_id, user["id"])}


@router.get("/versions/compare")
def versions_compare(
    avatar_id: str,
    base: str = Query(..., description="Version id to diff from"),
    other: str = Query(..., description="Version id to diff to"),
    user: Dict[str, Any] = Depends(require_user),
):
    left = _owned_version(avatar_id, base, user)
    right = _owned_version(avatar_id, other, user)
    return {"success": True, "comparison": compare_versions(left, right)}


@router.get("/versions/{version_id}")
def version_detail(avatar_id: str, version_id: str, user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "version": _owned_version(avatar_id, version_id, user)}


@router.post("/versions/{version_id}/activate")
def version_activate(avatar_id: str, version_id: str, user: Dict[str, Any] = Depends(require_user)):
    """Make this the only active version (also how a rollback is done)."""
    _owned_version(avatar_id, version_id, user)
    return {"success": True, "version": repo.activate_version(user["id"], avatar_id, version_id)}


@router.patch("/versions/{version_id}")
def version_update(avatar_id: str, version_id: str, body: VersionUpdate, user: Dict[str, Any] = Depends(require_user)):
    _owned_version(avatar_id, version_id, user)
    version = repo.update_version(user["id"], version_id, body.model_dump(exclude_unset=True))
    return {"success": True, "version": version}


@router.delete("/versions/{version_id}")
def version_delete(avatar_id: str, version_id: str, user: Dict[str, Any] = Depends(require_user)):
    _owned_version(avatar_id, version_id, user)
    repo.delete_version(user["id"], version_id)
    return {"success": True}


@router.get("/versions/{version_id}/lineage")
def version_lineage(avatar_id: str, version_id: str, user: Dict[str, Any] = Depends(require_user)):
    _owned_version(avatar_id, version_id, user)
    return {"success": True, "lineage": repo.get_lineage(user["id"], version_id)}


@router.get("/versions/{version_id}/descendants")
def version_descendants(avatar_id: str, version_id: str, user: Dict[str, Any] = Depends(require_user)):
    _owned_version(avatar_id, version_id, user)
    return {"success": True, "descendants": repo.get_descendants(user["id"], version_id)}


@router.post("/train")
async def avatar_train(avatar_id: str, body: TrainRequest, user: Dict[str, Any] = Depends(require_user)):
    _owned_avatar(avatar_id, user)
    version = await train_avatar(user["id"], avatar_id, body.training_instructions, body.conversation_examples)
    return {"success": True, "version": version}


@router.get("/training-logs")
def training_logs(avatar_id: str, limit: int = 100, user: Dict[str, Any] = Depends(require_user)):
    _owned_avatar(avatar_id, user)
    return {"success": True, "logs": repo.list_training_logs(user["id"], avatar_id, limit=min(max(limit, 1), 500))}
