"""
Async HTTP client for the AvatarHub API, used by scripts and automations.

The ``*_and_wait`` helpers start a generation and poll its progress
endpoint with the image (2 s x 60) or video (3 s x 90) budget.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .polling import ProgressFn, poll_image, poll_video
from .providers.http import json_body, send

SERVICE = "avatarhub"


class AvatarHubClient:
    def __init__(self, base_url: str, token: str, *, timeout: float = 120.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"}

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        resp = await send(SERVICE, "POST", f"{self.base_url}{path}", headers=self._headers(), json=body, timeout=self.timeout)
        return json_body(SERVICE, resp)

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        resp = await send(SERVICE, "GET", f"{self.base_url}{path}", headers=self._headers(), params=params, timeout=self.timeout)
        return json_body(SERVICE, resp)

    # -- images -------------------------------------------------------------

    async def generate_image(
        self,
        prompt: str,
        provider: str = "openai",
        *,
        input_images: Optional[List[str]] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self._post(
            "/v1/images/generate",
            {"prompt": prompt, "provider": provider, "input_images": input_images or [], "parameters": parameters or {}},
        )

    async def image_progress(self, task_id: str, provider: str) -> Dict[str, Any]:
        return await self._post("/v1/images/progress", {"taskId": task_id, "provider": provider})

    async def generate_image_and_wait(
        self,
        prompt: str,
        provider: str = "openai",
        *,
        input_images: Optional[List[str]] = None,
        parameters: Optional[Dict[str, Any]] = None,
        on_progress: Optional[ProgressFn] = None,
        **poll_kwargs: Any,
    ) -> str:
        """Returns the image URL. Synchronous providers return immediately."""
        started = await self.generate_image(prompt, provider, input_images=input_images, parameters=parameters)
        if started.get("status") == "completed":
            return started["imageUrl"]
        task_id = started["taskId"]

        async def check() -> Dict[str, Any]:
            return await self.image_progress(task_id, provider)

        return await poll_image(check, on_progress, **poll_kwargs)

    # -- videos -------------------------------------------------------------

    async def generate_video(
        self,
        prompt: str,
        provider: str,
        *,
        input_images: Optional[List[str]] = None,
        aspect_ratio: str = "16:9",
        duration: int = 5,
    ) -> Dict[str, Any]:
        return await self._post(
            "/v1/videos/generate",
            {
                "prompt": prompt,
                "provider": provider,
                "input_images": input_images or [],
                "aspect_ratio": aspect_ratio,
                "duration": duration,
            },
        )

    async def video_progress(self, task_id: str, provider: str) -> Dict[str, Any]:
        return await self._post("/v1/videos/progress", {"taskId": task_id, "provider": provider})

    async def generate_video_and_wait(
        self,
        prompt: str,
        provider: str,
        *,
        input_images: Optional[List[str]] = None,
        aspect_ratio: str = "16:9",
        duration: int = 5,
        on_progress: Optional[ProgressFn] = None,
        **poll_kwargs: Any,
    ) -> str:
        """Returns the provider video URL and records it on the stored video."""
        started = await self.generate_video(
            prompt, provider, input_images=input_images, aspect_ratio=aspect_ratio, duration=duration
        )
        task_id = started["taskId"]

        async def check() -> Dict[str, Any]:
            return await self.video_progress(task_id, provider)

        url = await poll_video(check, on_progress, **poll_kwargs)
        await self._post(f"/v1/videos/{started['video']['id']}/manual-url", {"videoUrl": url})
        return url

    # -- avatars ------------------------------------------------------------

    async def chat(self, avatar_id: str, message: str, history: Optional[List[Dict[str, str]]] = None) -> Dict[str, Any]:
        return await self._post(
            f"/v1/avatars/{avatar_id}/chat", {"message": message, "conversation_history": history or []}
        )

    async def list_avatars(self) -> List[Dict[str, Any]]:
        return (await self._get("/v1/avatars"))["avatars"]
