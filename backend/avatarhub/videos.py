"""
Video generation (KIE.AI), the user's video gallery and the status sweeper.

Generation inserts a ``processing`` row immediately. The row is completed
either by the client polling ``/v1/videos/progress`` and setting the URL,
or by the sweeper (``/v1/videos/sweep``), which a cron job calls to settle
every unfinished video server-side.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from . import files
from .api_keys import resolve_provider_key
from .catalog import kie as kie_catalog
from .config import SWEEP_TOKEN, VIDEO_SWEEP_BATCH
from .errors import AvatarHubError
from .providers import kie
from .providers.http import ensure_public_url
from .storage import db, dumps, now, row_to_dict
from .users import get_admin_role, get_current_user, require_user

logger = logging.getLogger("avatarhub.videos")

router = APIRouter(prefix="/v1/videos", tags=["videos"])

BUCKET = "generated-videos"


def _row(row) -> Optional[Dict[str, Any]]:
    return row_to_dict(row, json_fields=("parameters",), bool_fields=("is_favorite",))


def _kie_video_service(provider: str) -> Optional[kie_catalog.KIEService]:
    service = kie_catalog.get_service(provider)
    if service and service.type == "video":
        return service
    return None


def _is_veo(provider: str) -> bool:
    service = kie_catalog.get_service(provider)
    return bool(service and service.is_veo)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

def insert_video(
    user_id: str,
    *,
    task_id: str,
    provider: str,
    prompt: str,
    image_url: Optional[str],
    aspect_ratio: str,
    duration: int,
    parameters: Dict[str, Any],
) -> Dict[str, Any]:
    video_id = str(uuid.uuid4())
    con = db()
    con.execute(
        """
        INSERT INTO generated_videos(
            id, user_id, task_id, provider, prompt, image_url, status, progress, generation_type,
            aspect_ratio, duration, parameters_json, is_favorite, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, 'processing', 0, ?, ?, ?, ?, 0, ?)
        """,
        (
            video_id, user_id, task_id, provider, prompt, image_url,
            "img2vid" if image_url else "text2vid", aspect_ratio, duration, dumps(parameters), now(),
        ),
    )
    con.commit()
    con.close()
    return get_video(user_id, video_id)


def get_video(user_id: str, video_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM generated_videos WHERE id = ? AND user_id = ?", (video_id, user_id)).fetchone()
    con.close()
    return _row(row)


def list_videos(user_id: str, favorites_only: bool = False, limit: int = 200) -> List[Dict[str, Any]]:
    sql = "SELECT * FROM generated_videos WHERE user_id = ?"
    if favorites_only:
        sql += " AND is_favorite = 1"
    con = db()
    rows = con.execute(sql + " ORDER BY created_at DESC, rowid DESC LIMIT ?", (user_id, limit)).fetchall()
    con.close()
    return [_row(r) for r in rows]


def _update(video_id: str, fields: Dict[str, Any]) -> None:
    assignments = ", ".join(f"{k} = ?" for k in fields)
    con = db()
    con.execute(f"UPDATE generated_videos SET {assignments} WHERE id = ?", (*fields.values(), video_id))
    con.commit()
    con.close()


async def complete_video(video: Dict[str, Any], provider_url: str) -> Dict[str, Any]:
    """Store the finished video and mark the row completed. Falls back to the provider URL."""
    name = f"{video['id']}_{int(time.time() * 1000)}.mp4"
    obj = await files.mirror_remote(BUCKET, video["user_id"], name, provider_url)
    fields = {
        "status": "completed",
        "progress": 100,
        "video_url": obj["url"] if obj else provider_url,
        "video_path": obj["path"] if obj else None,
        "original_video_url": provider_url,
        "error_message": None,
        "completed_at": now(),
    }
    _update(video["id"], fields)
    return fields


def fail_video(video_id: str, error: str) -> Dict[str, Any]:
    fields = {"status": "failed", "progress": 0, "error_message": error}
    _update(video_id, fields)
    return fields


def toggle_favorite(user_id: str, video_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    cur = con.execute(
        "UPDATE generated_videos SET is_favorite = 1 - is_favorite WHERE id = ? AND user_id = ?", (video_id, user_id)
    )
    con.commit()
    con.close()
    return get_video(user_id, video_id) if cur.rowcount else None


def delete_video(user_id: str, video_id: str) -> bool:
    video = get_video(user_id, video_id)
    if not video:
        return False
    con = db()
    con.execute("DELETE FROM generated_videos WHERE id = ? AND user_id = ?", (video_id, user_id))
    con.commit()
    con.close()
    files.delete_object(BUCKET, video.get("video_path"))
    return True


async def sweep_processing_videos(batch: int = VIDEO_SWEEP_BATCH) -> Dict[str, Any]:
    """Check the oldest unfinished videos and settle those that completed or failed.

    Errors on one video are logged and do not stop the sweep.
    """
    con = db()
    rows = con.execute(
        "SELECT * FROM generated_videos WHERE status = 'processing' ORDER BY created_at, rowid LIMIT ?", (batch,)
    ).fetchall()
    con.close()
    videos = [_row(r) for r in rows]

    updates = []
    for video in videos:
        try:
            if not video.get("task_id"):
                continue
            api_key = resolve_provider_key(video["user_id"], "kie-ai")
            status = await kie.get_task_status(api_key, video["task_id"], veo=_is_veo(video["provider"]))
            if status["status"] == "completed" and status["url"]:
                await complete_video(video, status["url"])
            elif status["status"] == "failed":
                fail_video(video["id"], status["error"] or "Generation failed")
            else:
                continue
            updates.append({"videoId": video["id"], "status": status["status"]})
        except AvatarHubError as exc:
            logger.warning("Sweep skipped video %s: %s", video["id"], exc)

    logger.info("Video sweep processed %d, updated %d", len(videos), len(updates))
    return {"success": True, "processed": len(videos), "updated": len(updates), "updates": updates}


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class VideoGenerateRequest(BaseModel):
    prompt: str = ""
    provider: str = Field(..., min_length=1)
    input_images: List[str] = Field(default_factory=list)
    aspect_ratio: str = "16:9"
    duration: int = Field(default=5, ge=1, le=60)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ProgressRequest(BaseModel):
    taskId: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)


class ManualUrlRequest(BaseModel):
    videoUrl: str = Field(..., min_length=1)


def require_sweeper(
    x_sweep_token: Optional[str] = Header(default=None, alias="X-Sweep-Token"),
    user: Optional[Dict[str, Any]] = Depends(get_current_user),
) -> None:
    """The cron token when configured, otherwise an admin session."""
    if SWEEP_TOKEN and x_sweep_token == SWEEP_TOKEN:
        return
    if not user:
        raise HTTPException(401, "Not authenticated")
    if not get_admin_role(user["id"]):
        raise HTTPException(403, "Admin access required")


@router.post("/generate")
async def video_generate(body: VideoGenerateRequest, user: Dict[str, Any] = Depends(require_user)):
    service = _kie_video_service(body.provider)
    if not service:
        raise HTTPException(400, f"Unknown provider: {body.provider}")
    prompt = body.prompt.strip()
    if not prompt and not body.input_images:
        raise HTTPException(400, "Prompt is required")
    if not service.supports_text2vid and not body.input_images:
        raise HTTPException(400, f"{service.name} requires an input image")
    if service.supports_text2vid and not service.supports_img2img and body.input_images:
        raise HTTPException(400, f"{service.name} does not accept input images")

    api_key = resolve_provider_key(user["id"], "kie-ai")
    task_id = await kie.create_task(
        api_key, service, prompt,
        input_images=body.input_images or None,
        aspect_ratio=body.aspect_ratio,
        duration=body.duration,
        extra=body.parameters or None,
    )
    video = insert_video(
        user["id"],
        task_id=task_id,
        provider=service.id,
        prompt=prompt,
        image_url=body.input_images[0] if body.input_images else None,
        aspect_ratio=body.aspect_ratio,
        duration=body.duration,
        parameters=body.parameters,
    )
    logger.info("Video %s queued on %s (task %s)", video["id"], service.id, task_id)
    return {"success": True, "status": "processing", "taskId": task_id, "video": video}


@router.post("/progress")
async def video_progress(body: ProgressRequest, user: Dict[str, Any] = Depends(require_user)):
    if not _kie_video_service(body.provider):
        raise HTTPException(400, f"Unknown provider: {body.provider}")
    api_key = resolve_provider_key(user["id"], "kie-ai")
    progress = await kie.get_task_status(api_key, body.taskId, veo=_is_veo(body.provider))
    return {
        "success": True,
        "status": progress["status"],
        "progress": progress["progress"],
        "videoUrl": progress["url"],
        "error": progress["error"],
    }


@router.post("/sweep", dependencies=[Depends(require_sweeper)])
async def video_sweep():
    return await sweep_processing_videos()


@router.get("")
def videos_list(favorites: bool = False, user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "videos": list_videos(user["id"], favorites_only=favorites)}


@router.get("/{video_id}")
def video_detail(video_id: str, user: Dict[str, Any] = Depends(require_user)):
    video = get_video(user["id"], video_id)
    if not video:
        raise HTTPException(404, "Video not found")
    return {"success": True, "video": video}


@router.post("/{video_id}/manual-url")
async def video_manual_url(video_id: str, body: ManualUrlRequest, user: Dict[str, Any] = Depends(require_user)):
    """Set the finished URL by hand when the provider result was fetched elsewhere."""
    video = get_video(user["id"], video_id)
    if not video:
        raise HTTPException(404, "Video not found")
    await ensure_public_url(body.videoUrl)
    await complete_video(video, body.videoUrl)
    return {"success": True, "message": "Video URL set successfully", "video": get_video(user["id"], video_id)}


@router.post("/{video_id}/favorite")
def video_favorite(video_id: str, user: Dict[str, Any] = Depends(require_user)):
    video = toggle_favorite(user["id"], video_id)
    if not video:
        raise HTTPException(404, "Video not found")
    return {"success": True, "video": video}


@router.delete("/{video_id}")
def video_delete(video_id: str, user: Dict[str, Any] = Depends(require_user)):
    if not delete_video(user["id"], video_id):
        raise HTTPException(404, "Video not found")
    return {"success": True}
