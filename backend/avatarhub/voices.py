"""
Voice cloning and text-to-speech (ElevenLabs).

Flow: upload audio samples -> create a clone from them (professional voice
clone, trained asynchronously by ElevenLabs) -> list clones, which refreshes
the ones still training -> synthesize speech with a clone or a stock voice.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from . import files
from .api_keys import resolve_provider_key
from .errors import AvatarHubError
from .providers import elevenlabs
from .storage import db, dumps, now, row_to_dict
from .users import require_user

logger = logging.getLogger("avatarhub.voices")

router = APIRouter(prefix="/v1/voices", tags=["voices"])

SAMPLE_BUCKET = "voice-samples"
TTS_BUCKET = "tts-audio"
AUDIO_EXTENSIONS = ("mp3", "wav", "flac", "ogg")
AUDIO_MIME_TYPES = ("audio/mpeg", "audio/mp3", "audio/wav", "audio/x-wav", "audio/wave", "audio/flac", "audio/ogg")


def is_audio_file(ext: str, mime: str) -> bool:
    return ext.lower() in AUDIO_EXTENSIONS or mime.lower() in AUDIO_MIME_TYPES


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------

def save_sample(user_id: str, file_name: str, data: bytes, ext: str, mime: str) -> Dict[str, Any]:
    sample_id = str(uuid.uuid4())
    obj = files.put_object(SAMPLE_BUCKET, user_id, f"{sample_id}.{ext}", data, mime)
    con = db()
    con.execute(
        """
        INSERT INTO voice_samples(id, user_id, voice_clone_id, file_name, file_path, file_url, file_size, mime_type, created_at)
        VALUES (?, ?, NULL, ?, ?, ?, ?, ?, ?)
        """,
        (sample_id, user_id, file_name, obj["path"], obj["url"], obj["size"], mime, now()),
    )
    con.commit()
    con.close()
    return get_sample(user_id, sample_id)


def get_sample(user_id: str, sample_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM voice_samples WHERE id = ? AND user_id = ?", (sample_id, user_id)).fetchone()
    con.close()
    return row_to_dict(row)


def list_samples(user_id: str, voice_clone_id: Optional[str] = None) -> List[Dict[str, Any]]:
    sql = "SELECT * FROM voice_samples WHERE user_id = ?"
    params: List[Any] = [user_id]
    if voice_clone_id:
        sql += " AND voice_clone_id = ?"
        params.append(voice_clone_id)
    con = db()
    rows = con.execute(sql + " ORDER BY created_at DESC, rowid DESC", params).fetchall()
    con.close()
    return [row_to_dict(r) for r in rows]


def delete_sample(user_id: str, sample_id: str) -> bool:
    sample = get_sample(user_id, sample_id)
    if not sample:
        return False
    con = db()
    con.execute("DELETE FROM voice_samples WHERE id = ?", (sample_id,))
    con.commit()
    con.close()
    files.delete_object(SAMPLE_BUCKET, sample["file_path"])
    return True


# ---------------------------------------------------------------------------
# Clones
# ---------------------------------------------------------------------------

def get_clone(user_id: str, clone_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM voice_clones WHERE id = ? AND user_id = ?", (clone_id, user_id)).fetchone()
    con.close()
    return row_to_dict(row)


async def create_clone(
    user_id: str,
    name: str,
    sample_ids: List[str],
    *,
    description: str = "",
    language: str = "en",
    remove_background_noise: Optional[bool] = True,
) -> Dict[str, Any]:
    """Create the provider voice, upload every sample and record the clone as training."""
    sample_ids = list(dict.fromkeys(sample_ids))
    samples = [get_sample(user_id, sid) for sid in sample_ids]
    missing = [sid for sid, sample in zip(sample_ids, samples) if not sample]
    if missing:
        raise HTTPException(404, f"Voice samples not found: {', '.join(missing)}")
    linked = [s["id"] for s in samples if s.get("voice_clone_id")]
    if linked:
        raise HTTPException(409, f"Voice samples already belong to a clone: {', '.join(linked)}")

    api_key = resolve_provider_key(user_id, "elevenlabs")
    voice_id = await elevenlabs.create_pvc_voice(api_key, name, language=language, description=description)
    await elevenlabs.upload_pvc_samples(
        api_key,
        voice_id,
        [(s["file_name"], files.read_object(SAMPLE_BUCKET, s["file_path"]), s["mime_type"]) for s in samples],
        remove_background_noise=remove_background_noise,
    )

    clone_id = str(uuid.uuid4())
    ts = now()
    con = db()
    con.execute(
        """
        INSERT INTO voice_clones(id, user_id, name, description, language, elevenlabs_voice_id, status, sample_count, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, 'training', ?, ?, ?)
        """,
        (clone_id, user_id, name, description or "", language or "en", voice_id, len(samples), ts, ts),
    )
    con.executemany(
        "UPDATE voice_samples SET voice_clone_id = ? WHERE id = ? AND user_id = ?",
        [(clone_id, s["id"], user_id) for s in samples],
    )
    con.commit()
    con.close()
    logger.info("Voice clone %s created (ElevenLabs %s, %d samples)", clone_id, voice_id, len(samples))
    return get_clone(user_id, clone_id)


async def refresh_clone_status(user_id: str, clone: Dict[str, Any]) -> Dict[str, Any]:
    """Flip a training clone to active once ElevenLabs reports it usable."""
    if clone["status"] != "training" or not clone.get("elevenlabs_voice_id"):
        return clone
    try:
        api_key = resolve_provider_key(user_id, "elevenlabs")
        voice = await elevenlabs.get_voice(api_key, clone["elevenlabs_voice_id"])
    except AvatarHubError as exc:
        logger.warning("Could not refresh voice clone %s: %s", clone["id"], exc)
        return clone
    if not elevenlabs.voice_is_ready(voice):
        return clone

    con = db()
    con.execute("UPDATE voice_clones SET status = 'active', updated_at = ? WHERE id = ?", (now(), clone["id"]))
    con.commit()
    con.close()
    return {**clone, "status": "active"}


async def list_clones(user_id: str) -> List[Dict[str, Any]]:
    con = db()
    rows = con.execute(
        "SELECT * FROM voice_clones WHERE user_id = ? ORDER BY created_at DESC, rowid DESC", (user_id,)
    ).fetchall()
    con.close()
    return [await refresh_clone_status(user_id, row_to_dict(r)) for r in rows]


async def delete_clone(user_id: str, clone_id: str) -> bool:
    clone = get_clone(user_id, clone_id)
    if not clone:
        return False
    if clone.get("elevenlabs_voice_id"):
        try:
            api_key = resolve_provider_key(user_id, "elevenlabs")
            await elevenlabs.delete_voice(api_key, clone["elevenlabs_voice_id"])
        except AvatarHubError as exc:
            logger.warning("ElevenLabs delete failed for %s, removing locally: %s", clone["elevenlabs_voice_id"], exc)

    samples = list_samples(user_id, voice_clone_id=clone_id)
    con = db()
    con.execute("DELETE FROM voice_samples WHERE voice_clone_id = ?", (clone_id,))
    con.execute("DELETE FROM voice_clones WHERE id = ?", (clone_id,))
    con.commit()
    con.close()
    for sample in samples:
        files.delete_object(SAMPLE_BUCKET, sample["file_path"])
    return True


# ---------------------------------------------------------------------------
# Text-to-speech
# ---------------------------------------------------------------------------

def _generation(row) -> Optional[Dict[str, Any]]:
    return row_to_dict(row, json_fields=("settings",))


async def synthesize(
    user_id: str,
    text: str,
    *,
    voice_clone_id: Optional[str] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    settings = settings or {}
    if voice_clone_id:
        clone = get_clone(user_id, voice_clone_id)
        if not clone:
            raise HTTPException(404, "Voice clone not found")
        voice_id = clone["elevenlabs_voice_id"]
    else:
        voice_id = settings.get("voice_id") or elevenlabs.DEFAULT_VOICE_ID

    payload = elevenlabs.build_tts_payload(text, settings)
    api_key = resolve_provider_key(user_id, "elevenlabs")
    audio = await elevenlabs.text_to_speech(api_key, voice_id, payload)

    generation_id = str(uuid.uuid4())
    obj = files.put_object(TTS_BUCKET, user_id, f"{generation_id}.mp3", audio, "audio/mpeg")
    con = db()
    con.execute(
        """
        INSERT INTO tts_generations(id, user_id, voice_clone_id, voice_id, text, audio_url, audio_path, model_id, settings_json, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            generation_id, user_id, voice_clone_id, voice_id, text, obj["url"], obj["path"],
            payload["model_id"], dumps(payload["voice_settings"]), now(),
        ),
    )
    con.commit()
    row = con.execute("SELECT * FROM tts_generations WHERE id = ?", (generation_id,)).fetchone()
    con.close()
    return _generation(row)


def list_generations(user_id: str, limit: int = 100) -> List[Dict[str, Any]]:
    con = db()
    rows = con.execute(
        "SELECT * FROM tts_generations WHERE user_id = ? ORDER BY created_at DESC, rowid DESC LIMIT ?", (user_id, limit)
    ).fetchall()
    con.close()
    return [_generation(r) for r in rows]


def delete_generation(user_id: str, generation_id: str) -> bool:
    con = db()
    row = con.execute(
        "SELECT audio_path FROM tts_generations WHERE id = ? AND user_id = ?", (generation_id, user_id)
    ).fetchone()
    if not row:
        con.close()
        return False
    con.execute("DELETE FROM tts_generations WHERE id = ?", (generation_id,))
    con.commit()
    con.close()
    files.delete_object(TTS_BUCKET, row["audio_path"])
    return True


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class CloneCreate(BaseModel):
    name: str = ""
    description: str = ""
    language: str = "en"
    sample_ids: List[str] = Field(default_factory=list)
    remove_background_noise: Optional[bool] = True


class TTSRequest(BaseModel):
    text: str = ""
    voice_clone_id: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


@router.post("/samples")
async def upload_sample(file: UploadFile = File(...), user: Dict[str, Any] = Depends(require_user)):
    data, ext, mime = await files.read_upload(file)
    if not is_audio_file(ext, mime):
        raise HTTPException(400, "Invalid file type. Please upload MP3, WAV, FLAC or OGG audio.")
    sample = save_sample(user["id"], file.filename or f"sample.{ext}", data, ext, mime)
    return {"success": True, "sample": sample}


@router.get("/samples")
def get_samples(user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "samples": list_samples(user["id"])}


@router.delete("/samples/{sample_id}")
def remove_sample(sample_id: str, user: Dict[str, Any] = Depends(require_user)):
    if not delete_sample(user["id"], sample_id):
        raise HTTPException(404, "Voice sample not found")
    return {"success": True}


@router.post("/clones")
async def post_clone(body: CloneCreate, user: Dict[str, Any] = Depends(require_user)):
    if not body.name.strip():
        raise HTTPException(400, "Voice name is required")
    if not body.sample_ids:
        raise HTTPException(400, "At least one voice sample is required")
    clone = await create_clone(
        user["id"], body.name.strip(), body.sample_ids,
        description=body.description,
        language=body.language or "en",
        remove_background_noise=body.remove_background_noise,
    )
    return {"success": True, "clone": clone}


@router.get("/clones")
async def get_clones(user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "clones": await list_clones(user["id"])}


@router.delete("/clones/{clone_id}")
async def remove_clone(clone_id: str, user: Dict[str, Any] = Depends(require_user)):
    if not await delete_clone(user["id"], clone_id):
        raise HTTPException(404, "Voice clone not found")
    return {"success": True}


@router.post("/tts")
async def post_tts(body: TTSRequest, user: Dict[str, Any] = Depends(require_user)):
    text = body.text.strip()
    if not text:
        raise HTTPException(400, "Text is required")
    generation = await synthesize(user["id"], text, voice_clone_id=body.voice_clone_id, settings=body.settings)
    return {"success": True, "generation": generation, "audioUrl": generation["audio_url"]}


@router.get("/tts")
def get_generations(user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "generations": list_generations(user["id"])}


@router.delete("/tts/{generation_id}")
def remove_generation(generation_id: str, user: Dict[str, Any] = Depends(require_user)):
    if not delete_generation(user["id"], generation_id):
        raise HTTPException(404, "Generation not found")
    return {"success": True}
