"""
ElevenLabs adapter: professional voice cloning and text-to-speech.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..config import ELEVENLABS_BASE_URL
from .errors import ProviderError
from .http import json_body, send

logger = logging.getLogger("avatarhub.providers.elevenlabs")

SERVICE = "elevenlabs"

DEFAULT_VOICE_ID = "EXAVITQu4vr4xnSDxMaL"
DEFAULT_TTS_MODEL = "eleven_monolingual_v1"
DEFAULT_VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0,
    "use_speaker_boost": True,
}


def _headers(api_key: str, json_body_: bool = True) -> Dict[str, str]:
    headers = {"xi-api-key": api_key}
    if json_body_:
        headers["Content-Type"] = "application/json"
    return headers


async def create_pvc_voice(api_key: str, name: str, *, language: str = "en", description: Optional[str] = None) -> str:
    """Create an empty professional voice clone; returns its voice_id."""
    resp = await send(
        SERVICE, "POST", f"{ELEVENLABS_BASE_URL}/v1/voices/pvc",
        headers=_headers(api_key),
        json={"name": name, "language": language or "en", "description": description or None},
    )
    data = json_body(SERVICE, resp)
    voice_id = data.get("voice_id")
    if not voice_id:
        raise ProviderError(SERVICE, "No voice_id returned from PVC voice creation", body=data)
    return voice_id


async def upload_pvc_samples(
    api_key: str,
    voice_id: str,
    samples: List[Tuple[str, bytes, str]],
    *,
    remove_background_noise: Optional[bool] = True,
) -> Dict[str, Any]:
    """Upload ``(filename, bytes, mime)`` samples as multipart ``files``."""
    files = [("files", (filename, content, mime)) for filename, content, mime in samples]
    data = None
    if remove_background_noise is not None:
        data = {"remove_background_noise": "true" if remove_background_noise else "false"}
    resp = await send(
        SERVICE, "POST", f"{ELEVENLABS_BASE_URL}/v1/voices/pvc/{voice_id}/samples",
        headers=_headers(api_key, json_body_=False), data=data, files=files,
    )
    return json_body(SERVICE, resp)


async def get_voice(api_key: str, voice_id: str) -> Dict[str, Any]:
    resp = await send(SERVICE, "GET", f"{ELEVENLABS_BASE_URL}/v1/voices/{voice_id}", headers=_headers(api_key, False))
    return json_body(SERVICE, resp)


def voice_is_ready(voice: Dict[str, Any]) -> bool:
    """A PVC voice is usable once it has samples or fine-tuning is no longer allowed."""
    fine_tuning = voice.get("fine_tuning") or {}
    return fine_tuning.get("is_allowed_to_fine_tune") is False or bool(voice.get("samples"))


async def delete_voice(api_key: str, voice_id: str) -> None:
    await send(SERVICE, "DELETE", f"{ELEVENLABS_BASE_URL}/v1/voices/{voice_id}", headers=_headers(api_key, False))


def build_tts_payload(text: str, settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    settings = settings or {}
    voice_settings = {
        key: settings[key] if settings.get(key) is not None else default
        for key, default in DEFAULT_VOICE_SETTINGS.items()
    }
    return {
        "text": text,
        "model_id": settings.get("model_id") or DEFAULT_TTS_MODEL,
        "voice_settings": voice_settings,
    }


async def text_to_speech(api_key: str, voice_id: str, payload: Dict[str, Any]) -> bytes:
    """Returns MP3 bytes."""
    headers = _headers(api_key)
    headers["Accept"] = "audio/mpeg"
    resp = await send(SERVICE, "POST", f"{ELEVENLABS_BASE_URL}/v1/text-to-speech/{voice_id}", headers=headers, json=payload)
    if not resp.content:
        raise ProviderError(SERVICE, "ElevenLabs returned empty audio")
    return resp.content
