"""
Image generation and the user's image gallery.

Two provider families:
- ``openai``: DALL-E 3, synchronous. The image is saved to the gallery
  right away.
- ``kie-*``: KIE.AI catalog services, asynchronous. The caller receives a
  task id, polls ``/v1/images/progress`` and saves the result itself.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from . import files
from .api_keys import resolve_provider_key
from .catalog import kie as kie_catalog
from .catalog.advertising import get_style
from .catalog.product import analyze_product_image, customize_prompt_with_product
from .providers import kie, openai
from .providers.http import download, ensure_public_url
from .storage import db, dumps, now, row_to_dict
from .users import require_user

logger = logging.getLogger("avatarhub.images")

router = APIRouter(prefix="/v1/images", tags=["images"])

BUCKET = "generated-images"


def _row(row) -> Optional[Dict[str, Any]]:
    return row_to_dict(row, json_fields=("parameters",), bool_fields=("is_favorite",))


def _kie_image_service(provider: str) -> Optional[kie_catalog.KIEService]:
    service = kie_catalog.get_service(provider)
    if service and service.type == "image":
        return service
    return None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

async def save_image(
    user_id: str,
    *,
    prompt: str,
    image_url: str,
    provider: str,
    model: str = "",
    negative_prompt: str = "",
    original_image_url: Optional[str] = None,
    parameters: Optional[Dict[str, Any]] = None,
    width: int = 1024,
    height: int = 1024,
    mirror: bool = False,
) -> Dict[str, Any]:
    """Insert a gallery row.

    With ``mirror`` the provider URL is copied into storage when reachable.
    Only pass it for URLs the server received from a provider itself.
    """
    image_id = str(uuid.uuid4())
    image_path = None
    stored_url = image_url
    if mirror:
        obj = await files.mirror_remote(BUCKET, user_id, f"{image_id}.png", image_url)
        if obj:
            image_path, stored_url = obj["path"], obj["url"]

    params = parameters or {}
    con = db()
    con.execute(
        """
        INSERT INTO generated_images(
            id, user_id, prompt, negative_prompt, image_url, image_path, original_image_url, provider, model,
            parameters_json, generation_type, width, height, seed, steps, cfg_scale, is_favorite, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
        """,
        (
            image_id, user_id, prompt, negative_prompt or "", stored_url, image_path, original_image_url,
            provider, model or "", dumps(params), "img2img" if original_image_url else "text2img",
            width or 1024, height or 1024, params.get("seed"), params.get("steps"), params.get("cfg_scale"), now(),
        ),
    )
    con.commit()
    con.close()
    return get_image(user_id, image_id)


def get_image(user_id: str, image_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    row = con.execute("SELECT * FROM generated_images WHERE id = ? AND user_id = ?", (image_id, user_id)).fetchone()
    con.close()
    return _row(row)


def list_images(user_id: str, favorites_only: bool = False, limit: int = 200) -> List[Dict[str, Any]]:
    sql = "SELECT * FROM generated_images WHERE user_id = ?"
    if favorites_only:
        sql += " AND is_favorite = 1"
    con = db()
    rows = con.execute(sql + " ORDER BY created_at DESC, rowid DESC LIMIT ?", (user_id, limit)).fetchall()
    con.close()
    return [_row(r) for r in rows]


def toggle_favorite(user_id: str, image_id: str) -> Optional[Dict[str, Any]]:
    con = db()
    cur = con.execute(
        "UPDATE generated_images SET is_favorite = 1 - is_favorite WHERE id = ? AND user_id = ?", (image_id, user_id)
    )
    con.commit()
    con.close()
    return get_image(user_id, image_id) if cur.rowcount else None


def delete_image(user_id: str, image_id: str) -> bool:
    image = get_image(user_id, image_id)
    if not image:
        return False
    con = db()
    con.execute("DELETE FROM generated_images WHERE id = ? AND user_id = ?", (image_id, user_id))
    con.commit()
    con.close()
    files.delete_object(BUCKET, image.get("image_path"))
    return True


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class ImageGenerateRequest(BaseModel):
    prompt: str = ""
    provider: str = "openai"
    input_images: List[str] = Field(default_factory=list)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ProgressRequest(BaseModel):
    taskId: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)


class ImageSaveRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    image_url: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)
    model: str = ""
    negative_prompt: str = ""
    original_image_url: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    width: int = 1024
    height: int = 1024


class DownloadRequest(BaseModel):
    imageUrl: str = Field(..., min_length=1)


class AnalyzeProductRequest(BaseModel):
    image: str = Field(..., min_length=1)
    base_prompt: Optional[str] = None
    style_id: Optional[str] = None


@router.post("/generate")
async def image_generate(body: ImageGenerateRequest, user: Dict[str, Any] = Depends(require_user)):
    prompt = body.prompt.strip()
    if not prompt:
        raise HTTPException(400, "Prompt is required")
    params = body.parameters

    if body.provider == "openai":
        api_key = resolve_provider_key(user["id"], "openai")
        width, height = int(params.get("width") or 1024), int(params.get("height") or 1024)
        result = await openai.generate_image(
            api_key, prompt, width=width, height=height,
            quality=params.get("quality") or "standard", style=params.get("style") or "vivid",
        )
        image = await save_image(
            user["id"], prompt=prompt, image_url=result["url"], provider="openai", model="dall-e-3",
            parameters={**params, "revised_prompt": result.get("revised_prompt")}, width=width, height=height,
            mirror=True,
        )
        return {"success": True, "status": "completed", "imageUrl": image["image_url"], "image": image}

    service = _kie_image_service(body.provider)
    if not service:
        raise HTTPException(400, f"Unknown provider: {body.provider}")
    if service.supports_img2img and not body.input_images:
        raise HTTPException(400, f"{service.name} requires at least one input image")

    api_key = resolve_provider_key(user["id"], "kie-ai")
    task_id = await kie.create_task(
        api_key, service, prompt,
        input_images=body.input_images or None,
        aspect_ratio=params.get("aspect_ratio"),
        negative_prompt=params.get("negative_prompt"),
    )
    return {"success": True, "status": "processing", "taskId": task_id, "provider": service.id, "model": service.model}


@router.post("/progress")
async def image_progress(body: ProgressRequest, user: Dict[str, Any] = Depends(require_user)):
    if not _kie_image_service(body.provider):
        raise HTTPException(400, f"Progress checks are not supported for provider: {body.provider}")
    api_key = resolve_provider_key(user["id"], "kie-ai")
    progress = await kie.get_task_status(api_key, body.taskId)
    return {
        "success": True,
        "status": progress["status"],
        "progress": progress["progress"],
        "imageUrl": progress["url"],
        "error": progress["error"],
    }


@router.post("")
async def image_save(body: ImageSaveRequest, user: Dict[str, Any] = Depends(require_user)):
    image = await save_image(user["id"], **body.model_dump())
    return {"success": True, "image": image}


@router.get("")
def images_list(favorites: bool = False, user: Dict[str, Any] = Depends(require_user)):
    return {"success": True, "images": list_images(user["id"], favorites_only=favorites)}


@router.post("/download")
async def image_download(body: DownloadRequest, user: Dict[str, Any] = Depends(require_user)):
    """Proxy a remote image so the browser can save it without CORS issues."""
    await ensure_public_url(body.imageUrl)
    resp = await download(body.imageUrl)
    media_type = (resp.headers.get("content-type") or "image/png").split(";")[0]
    return Response(
        content=resp.content,
        media_type=media_type,
        headers={"Content-Disposition": 'attachment; filename="image.png"'},
    )


@router.post("/analyze-product")
async def image_analyze_product(body: AnalyzeProductRequest, user: Dict[str, Any] = Depends(require_user)):
    api_key = resolve_provider_key(user["id"], "openai")
    analysis = await analyze_product_image(api_key, body.image)

    base_prompt = body.base_prompt
    if not base_prompt and body.style_id:
        style = get_style(body.style_id)
        if not style:
            raise HTTPException(404, f"Unknown advertising style: {body.style_id}")
        base_prompt = style.prompt
    customized = customize_prompt_with_product(base_prompt, analysis) if base_prompt else None
    return {"success": True, "analysis": analysis.model_dump(), "prompt": customized}


@router.get("/{image_id}")
def image_detail(image_id: str, user: Dict[str, Any] = Depends(require_user)):
    image = get_image(user["id"], image_id)
    if not image:
        raise HTTPException(404, "Image not found")
    return {"success": True, "image": image}


@router.post("/{image_id}/favorite")
def image_favorite(image_id: str, user: Dict[str, Any] = Depends(require_user)):
    image = toggle_favorite(user["id"], image_id)
    if not image:
        raise HTTPException(404, "Image not found")
    return {"success": True, "image": image}


@router.delete("/{image_id}")
def image_delete(image_id: str, user: Dict[str, Any] = Depends(require_user)):
    if not delete_image(user["id"], image_id):
        raise HTTPException(404, "Image not found")
    return {"success": True}
