"""
KIE.AI adapter.

Task creation returns a ``taskId``; status checks are normalised to
``{"status": pending|processing|completed|failed, "progress", "url", "error"}``
so the pollers never see provider-specific shapes.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from ..catalog.kie import KIEService
from ..config import KIE_AI_BASE_URL
from .errors import ProviderError
from .http import json_body, send

logger = logging.getLogger("avatarhub.providers.kie")

SERVICE = "kie-ai"

_COMPLETED = {"completed", "success", "SUCCESS"}
_FAILED = {"failed", "error", "FAILED", "fail"}


def _headers(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}


def _task_id(data: Any) -> str:
    if not isinstance(data, dict) or data.get("code") != 200:
        msg = data.get("msg") if isinstance(data, dict) else None
        raise ProviderError(SERVICE, f"KIE.AI API error: {msg or 'Invalid response from KIE AI API'}", body=data)
    task_id = (data.get("data") or {}).get("taskId")
    if not task_id:
        raise ProviderError(SERVICE, "Invalid response from KIE AI API: missing taskId", body=data)
    return task_id


def build_job_input(
    service: KIEService,
    prompt: str,
    *,
    input_images: Optional[List[str]] = None,
    aspect_ratio: Optional[str] = None,
    duration: Optional[int] = None,
    negative_prompt: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Request body for the unified jobs API."""
    job_input: Dict[str, Any] = {"prompt": prompt}
    if input_images:
        limit = service.max_input_images or len(input_images)
        images = input_images[:limit]
        if service.type == "image" and limit == 1:
            job_input["image_url"] = images[0]
        else:
            job_input["image_urls"] = images
    if aspect_ratio:
        job_input["aspect_ratio"] = aspect_ratio
    if duration and service.type == "video":
        job_input["duration"] = str(min(duration, service.max_duration_s or duration))
    if negative_prompt:
        job_input["negative_prompt"] = negative_prompt
    if extra:
        job_input.update(extra)
    return {"model": service.model, "input": job_input}


async def create_task(
    api_key: str,
    service: KIEService,
    prompt: str,
    *,
    input_images: Optional[List[str]] = None,
    aspect_ratio: Optional[str] = None,
    duration: Optional[int] = None,
    negative_prompt: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> str:
    """Submit a generation; returns the provider task id."""
    if service.is_veo:
        return await create_veo_task(api_key, service, prompt, image_urls=input_images, aspect_ratio=aspect_ratio)
    body = build_job_input(
        service,
        prompt,
        input_images=input_images,
        aspect_ratio=aspect_ratio,
        duration=duration,
        negative_prompt=negative_prompt,
        extra=extra,
    )
    resp = await send(SERVICE, "POST", f"{KIE_AI_BASE_URL}{service.endpoint}", headers=_headers(api_key), json=body)
    task_id = _task_id(json_body(SERVICE, resp))
    logger.info("KIE task %s created for %s", task_id, service.id)
    return task_id


async def create_veo_task(
    api_key: str,
    service: KIEService,
    prompt: str,
    *,
    image_urls: Optional[List[str]] = None,
    aspect_ratio: Optional[str] = None,
) -> str:
    body: Dict[str, Any] = {
        "prompt": prompt,
        "model": service.model,
        "aspectRatio": aspect_ratio or "16:9",
    }
    if image_urls:
        body["imageUrls"] = image_urls[:1]
    resp = await send(SERVICE, "POST", f"{KIE_AI_BASE_URL}{service.endpoint}", headers=_headers(api_key), json=body)
    task_id = _task_id(json_body(SERVICE, resp))
    logger.info("Veo task %s created for %s", task_id, service.id)
    return task_id


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

def _first_url(value: Any) -> Optional[str]:
    if isinstance(value, list):
        return value[0] if value else None
    if isinstance(value, str) and value.startswith("["):
        try:
            parsed = json.loads(value)
        except ValueError:
            return value
        return parsed[0] if isinstance(parsed, list) and parsed else None
    return value or None


def normalize_job_record(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map a ``jobs/recordInfo`` payload to the normalised status dict."""
    record = data.get("data") or {}
    state = record.get("state")
    if state == "success":
        result = record.get("resultJson") or {}
        if isinstance(result, str):
            try:
                result = json.loads(result)
            except ValueError:
                result = {}
        url = _first_url(result.get("resultUrls")) or result.get("videoUrl") or result.get("imageUrl")
        if url:
            return {"status": "completed", "progress": 100, "url": url, "error": None}
        return {"status": "processing", "progress": 90, "url": None, "error": None}
    if state == "fail":
        error = record.get("failMsg") or record.get("failCode") or "Generation failed"
        return {"status": "failed", "progress": 0, "url": None, "error": str(error)}
    if state in ("waiting", "queuing"):
        return {"status": "pending", "progress": 10, "url": None, "error": None}
    progress = record.get("progress")
    try:
        progress = int(float(progress)) if progress is not None else 50
    except (TypeError, ValueError):
        progress = 50
    return {"status": "processing", "progress": progress, "url": None, "error": None}


def normalize_veo_record(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map a Veo ``record-info`` payload to the normalised status dict."""
    record = data.get("data") or {}
    status = record.get("status") or record.get("state")
    if record.get("successFlag") == 1:
        status = "success"
    if status in _COMPLETED:
        response = record.get("response") or {}
        url = _first_url(
            record.get("video_url")
            or record.get("videoUrl")
            or record.get("output_video_url")
            or record.get("resultUrls")
            or record.get("result_urls")
            or response.get("resultUrls")
            or record.get("url")
            or record.get("output_url")
        )
        if url:
            return {"status": "completed", "progress": 100, "url": url, "error": None}
    elif status in _FAILED or record.get("successFlag") in (2, 3):
        error = record.get("error_message") or record.get("errorMessage") or record.get("failMsg") or "Generation failed"
        return {"status": "failed", "progress": 0, "url": None, "error": error}
    return {"status": "processing", "progress": 50, "url": None, "error": None}


async def get_task_status(api_key: str, task_id: str, *, veo: bool = False) -> Dict[str, Any]:
    """Current normalised status. Unreachable or non-OK status endpoints read as still processing."""
    if veo:
        url = f"{KIE_AI_BASE_URL}/api/v1/veo/record-info"
        params = {"task_id": task_id}
    else:
        url = f"{KIE_AI_BASE_URL}/api/v1/jobs/recordInfo"
        params = {"taskId": task_id}

    resp = await send(SERVICE, "GET", url, headers=_headers(api_key), params=params, allow_status=(404, 500, 502, 503))
    if resp.status_code >= 400:
        logger.info("KIE status for %s returned %s; treating as processing", task_id, resp.status_code)
        return {"status": "processing", "progress": 50, "url": None, "error": None}

    data = json_body(SERVICE, resp)
    if not isinstance(data, dict) or data.get("code") != 200:
        return {"status": "processing", "progress": 50, "url": None, "error": None}
    return normalize_veo_record(data) if veo else normalize_job_record(data)
