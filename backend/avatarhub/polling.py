"""
Fixed-interval polling for asynchronous generation tasks.

No backoff and no jitter: ``check`` is awaited at most ``max_attempts``
times with ``interval_s`` between attempts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .config import (
    IMAGE_POLL_INTERVAL_S,
    IMAGE_POLL_MAX_ATTEMPTS,
    VIDEO_POLL_INTERVAL_S,
    VIDEO_POLL_MAX_ATTEMPTS,
)
from .providers.errors import GenerationFailed, GenerationTimeout

logger = logging.getLogger("avatarhub.polling")

CheckFn = Callable[[], Awaitable[Dict[str, Any]]]
ProgressFn = Callable[[int], Any]

IMAGE_TIMEOUT_MESSAGE = "Generation timeout - please try again"
VIDEO_TIMEOUT_MESSAGE = "Video generation timeout - please try again"


def _result_url(progress: Dict[str, Any]) -> Optional[str]:
    return progress.get("url") or progress.get("imageUrl") or progress.get("videoUrl")


async def poll_until_complete(
    check: CheckFn,
    *,
    interval_s: float,
    max_attempts: int,
    on_progress: Optional[ProgressFn] = None,
    timeout_message: str = IMAGE_TIMEOUT_MESSAGE,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> str:
    """Return the result URL once ``check`` reports completed.

    Raises ``GenerationFailed`` as soon as a check reports failed, and
    ``GenerationTimeout`` when the attempt budget runs out.
    """
    for attempt in range(1, max_attempts + 1):
        progress = await check()
        if on_progress is not None:
            on_progress(int(progress.get("progress") or 0))

        status = progress.get("status")
        url = _result_url(progress)
        if status == "completed" and url:
            logger.info("Generation completed after %d attempt(s)", attempt)
            return url
        if status == "failed":
            raise GenerationFailed(progress.get("error") or "Generation failed")

        if attempt < max_attempts:
            await sleep(interval_s)

    raise GenerationTimeout(timeout_message)


async def poll_image(check: CheckFn, on_progress: Optional[ProgressFn] = None, **kwargs: Any) -> str:
    kwargs.setdefault("interval_s", IMAGE_POLL_INTERVAL_S)
    kwargs.setdefault("max_attempts", IMAGE_POLL_MAX_ATTEMPTS)
    return await poll_until_complete(check, on_progress=on_progress, timeout_message=IMAGE_TIMEOUT_MESSAGE, **kwargs)


async def poll_video(check: CheckFn, on_progress: Optional[ProgressFn] = None, **kwargs: Any) -> str:
    kwargs.setdefault("interval_s", VIDEO_POLL_INTERVAL_S)
    kwargs.setdefault("max_attempts", VIDEO_POLL_MAX_ATTEMPTS)
    return await poll_until_complete(check, on_progress=on_progress, timeout_message=VIDEO_TIMEOUT_MESSAGE, **kwargs)
