"""
HeyGen adapter: avatar videos, video translation and resource listing.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..config import HEYGEN_BASE_URL
from ..errors import ValidationFailed
from .errors import ProviderError
from .http import json_body, send

SERVICE = "heygen"


def _headers(api_key: str) -> Dict[str, str]:
    return {"X-Api-Key": api_key, "Content-Type": "application/json"}


def parse_dimension(dimension: Optional[str]) -> Dict[str, int]:
    """``"1920x1080"`` -> ``{"width": 1920, "height": 1080}``."""
    try:
        width, height = (int(x) for x in (dimension or "1920x1080").lower().split("x"))
    except ValueError as exc:
        raise ValidationFailed(f"Invalid dimension '{dimension}'. Use WIDTHxHEIGHT, e.g. 1920x1080") from exc
    return {"width": width, "height": height}


def build_video_payload(
    *,
    avatar_type: str,
    script: str,
    voice_id: str,
    avatar_id: Optional[str] = None,
    avatar_style: Optional[str] = "normal",
    emotion: Optional[str] = "Friendly",
    speech_speed: float = 1.0,
    pitch: float = 0,
    dimension: str = "1920x1080",
    add_captions: bool = False,
) -> Dict[str, Any]:
    voice: Dict[str, Any] = {"type": "text", "input_text": script, "voice_id": voice_id}
    if speech_speed and speech_speed != 1.0:
        voice["speed"] = speech_speed
    if pitch and pitch != 0:
        voice["pitch"] = pitch
    if emotion:
        voice["emotion"] = emotion

    if avatar_type == "photo":
        raise ValidationFailed("Photo avatar upload not yet implemented. Please use preset avatars for now.")
    if not avatar_id:
        raise ValidationFailed("avatar_id is required for preset avatars")

    character: Dict[str, Any] = {"type": "avatar", "avatar_id": avatar_id}
    if avatar_style:
        character["avatar_style"] = avatar_style

    payload: Dict[str, Any] = {
        "video_inputs": [{"character": character, "voice": voice}],
        "dimension": parse_dimension(dimension),
        "test": False,
    }
    if add_captions:
        payload["caption"] = True
    return payload


async def generate_video(api_key: str, payload: Dict[str, Any]) -> str:
    resp = await send(SERVICE, "POST", f"{HEYGEN_BASE_URL}/v2/video/generate", headers=_headers(api_key), json=payload)
    data = json_body(SERVICE, resp)
    video_id = (data.get("data") or {}).get("video_id")
    if not video_id:
        raise ProviderError(SERVICE, "Invalid response from HeyGen API - no video_id", body=data)
    return video_id


def _progress_for(status: str, processing_progress: int) -> int:
    if status == "processing":
        return processing_progress
    if status == "pending":
        return 20
    return 30


async def get_video_status(api_key: str, video_id: str) -> Dict[str, Any]:
    resp = await send(
        SERVICE, "GET", f"{HEYGEN_BASE_URL}/v1/video_status.get",
        headers=_headers(api_key), params={"video_id": video_id}, allow_status=(404,),
    )
    if resp.status_code == 404:
        return {"status": "processing", "progress": 10}

    record = json_body(SERVICE, resp).get("data") or {}
    status = record.get("status") or "processing"
    if status == "completed":
        return {
            "status": "completed",
            "progress": 100,
            "videoUrl": record.get("video_url"),
            "thumbnail": record.get("thumbnail_url"),
            "duration": record.get("duration"),
        }
    if status in ("failed", "error"):
        return {"status": "failed", "error": _error_text(record.get("error")) or "Video generation failed"}
    return {"status": "processing", "progress": _progress_for(status, 60)}


def build_translate_payload(
    video_url: str,
    target_languages: List[str],
    *,
    speaker_num: Optional[int] = None,
    audio_only: bool = False,
    dynamic_duration: Optional[bool] = None,
) -> Dict[str, Any]:
    if not video_url:
        raise ValidationFailed("video_url is required")
    if not target_languages:
        raise ValidationFailed("At least one target language is required")

    payload: Dict[str, Any] = {"video_url": video_url}
    if len(target_languages) > 1:
        payload["output_languages"] = target_languages
    else:
        payload["output_language"] = target_languages[0]
    if audio_only:
        payload["translate_audio_only"] = True
    if speaker_num and speaker_num > 1:
        payload["speaker_num"] = speaker_num
    if dynamic_duration is not None:
        payload["enable_dynamic_duration"] = dynamic_duration
    return payload


async def start_translation(api_key: str, payload: Dict[str, Any]) -> str:
    resp = await send(SERVICE, "POST", f"{HEYGEN_BASE_URL}/v2/video_translate", headers=_headers(api_key), json=payload)
    data = json_body(SERVICE, resp)
    translate_id = (data.get("data") or {}).get("video_translate_id")
    if not translate_id:
        raise ProviderError(SERVICE, "Invalid response from HeyGen API - no video_translate_id", body=data)
    return translate_id


async def get_translation_status(api_key: str, translate_id: str) -> Dict[str, Any]:
    resp = await send(
        SERVICE, "GET", f"{HEYGEN_BASE_URL}/v1/video_translate/{translate_id}",
        headers=_headers(api_key), allow_status=(404,),
    )
    if resp.status_code == 404:
        return {"status": "processing", "progress": 10}

    record = json_body(SERVICE, resp).get("data") or {}
    status = record.get("status") or "processing"
    if status == "completed":
        return {"status": "completed", "progress": 100, "videoUrl": record.get("video_url"), "duration": record.get("duration")}
    if status in ("failed", "error"):
        return {"status": "failed", "error": _error_text(record.get("error")) or "Translation failed"}
    return {"status": "processing", "progress": _progress_for(status, 50)}


def _error_text(error: Any) -> Optional[str]:
    if isinstance(error, dict):
        return error.get("message") or error.get("detail") or error.get("code")
    return error or None


def _is_personal_avatar(avatar: Dict[str, Any]) -> bool:
    if "is_public_avatar" in avatar and avatar["is_public_avatar"] is not None:
        return avatar["is_public_avatar"] is False
    return bool(avatar.get("is_custom") or avatar.get("is_talking_photo"))


async def list_avatars(api_key: str, personal_only: bool = True) -> List[Dict[str, Any]]:
    """Avatars on the HeyGen account; public stock avatars are dropped unless ``personal_only`` is False."""
    resp = await send(SERVICE, "GET", f"{HEYGEN_BASE_URL}/v2/avatars", headers=_headers(api_key))
    avatars = (json_body(SERVICE, resp).get("data") or {}).get("avatars") or []
    if personal_only:
        avatars = [a for a in avatars if _is_personal_avatar(a)]
    return avatars


async def list_voices(api_key: str) -> List[Dict[str, Any]]:
    resp = await send(SERVICE, "GET", f"{HEYGEN_BASE_URL}/v2/voices", headers=_headers(api_key))
    return (json_body(SERVICE, resp).get("data") or {}).get("voices") or []
