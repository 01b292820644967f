"""
HeyGen avatar videos and video translation, proxied with the caller's HeyGen key.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .api_keys import resolve_provider_key
from .providers import heygen
from .users import require_user

logger = logging.getLogger("avatarhub.heygen")

router = APIRouter(prefix="/v1/heygen", tags=["heygen"])


class AvatarVideoRequest(BaseModel):
    avatar_type: str = "preset"
    avatar_id: Optional[str] = None
    script: str = Field(..., min_length=1)
    voice_id: str = Field(..., min_length=1)
    avatar_style: Optional[str] = "normal"
    emotion: Optional[str] = "Friendly"
    speech_speed: float = Field(default=1.0, gt=0, le=3)
    pitch: float = 0
    dimension: str = "1920x1080"
    add_captions: bool = False


class TranslateRequest(BaseModel):
    video_url: str = ""
    target_languages: List[str] = Field(default_factory=list)
    speaker_num: Optional[int] = None
    translate_audio_only: bool = False
    enable_dynamic_duration: Optional[bool] = None


@router.post("/avatar-video")
async def create_avatar_video(body: AvatarVideoRequest, user: Dict[str, Any] = Depends(require_user)):
    payload = heygen.build_video_payload(
        avatar_type=body.avatar_type,
        script=body.script,
        voice_id=body.voice_id,
        avatar_id=body.avatar_id,
        avatar_style=body.avatar_style,
        emotion=body.emotion,
        speech_speed=body.speech_speed,
        pitch=body.pitch,
        dimension=body.dimension,
        add_captions=body.add_captions,
    )
    api_key = resolve_provider_key(user["id"], "heygen")
    video_id = await heygen.generate_video(api_key, payload)
    logger.info("HeyGen video %s started for user %s", video_id, user["id"])
    return {"success": True, "videoId": video_id, "status": "processing"}


@router.get("/avatar-video/{video_id}")
async def avatar_video_status(video_id: str, user: Dict[str, Any] = Depends(require_user)):
    api_key = resolve_provider_key(user["id"], "heygen")
    return {"success": True, "videoId": video_id, **await heygen.get_video_status(api_key, video_id)}


@router.post("/translate")
async def translate_video(body: TranslateRequest, user: Dict[str, Any] = Depends(require_user)):
    payload = heygen.build_translate_payload(
        body.video_url,
        body.target_languages,
        speaker_num=body.speaker_num,
        audio_only=body.translate_audio_only,
        dynamic_duration=body.enable_dynamic_duration,
    )
    api_key = resolve_provider_key(user["id"], "heygen")
    translate_id = await heygen.start_translation(api_key, payload)
    logger.info("HeyGen translation %s started into %s", translate_id, ", ".join(body.target_languages))
    return {"success": True, "translateId": translate_id, "status": "processing"}


@router.get("/translate/{translate_id}")
async def translation_status(translate_id: str, user: Dict[str, Any] = Depends(require_user)):
    api_key = resolve_provider_key(user["id"], "heygen")
    return {"success": True, "translateId": translate_id, **await heygen.get_translation_status(api_key, translate_id)}


@router.get("/avatars")
async def heygen_avatars(personal_only: bool = True, user: Dict[str, Any] = Depends(require_user)):
    api_key = resolve_provider_key(user["id"], "heygen")
    avatars = await heygen.list_avatars(api_key, personal_only=personal_only)
    return {"success": True, "avatars": avatars}


@router.get("/voices")
async def heygen_voices(user: Dict[str, Any] = Depends(require_user)):
    api_key = resolve_provider_key(user["id"], "heygen")
    return {"success": True, "voices": await heygen.list_voices(api_key)}
