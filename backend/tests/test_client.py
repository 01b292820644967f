"""
Async API client: request shape and the generate-and-wait helpers.
"""
import asyncio

import pytest

BASE = "http://api.test"


class Sleeper:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _client():
    from avatarhub.client import AvatarHubClient

    return AvatarHubClient(BASE + "/", "tok-123")


def test_sends_bearer_token(outbound):
    outbound.on("GET", "/v1/avatars", json={"success": True, "avatars": [{"id": "a1"}]})
    avatars = asyncio.run(_client().list_avatars())
    assert avatars == [{"id": "a1"}]
    call = outbound.calls[0]
    assert call["url"] == BASE + "/v1/avatars"
    assert call["headers"]["Authorization"] == "Bearer tok-123"


def test_chat_body(outbound):
    outbound.on("POST", "/v1/avatars/a1/chat", json={"success": True, "response": "Hola"})
    reply = asyncio.run(_client().chat("a1", "Hi", [{"role": "user", "content": "earlier"}]))
    assert reply["response"] == "Hola"
    assert outbound.calls[0]["json"] == {"message": "Hi", "conversation_history": [{"role": "user", "content": "earlier"}]}


def test_sync_image_returns_immediately(outbound):
    outbound.on("POST", "/v1/images/generate", json={"success": True, "status": "completed", "imageUrl": "http://x/i.png"})
    url = asyncio.run(_client().generate_image_and_wait("a cat"))
    assert url == "http://x/i.png"
    assert not outbound.calls_to("/v1/images/progress")


def test_image_polls_progress(outbound):
    outbound.on("POST", "/v1/images/generate", json={"success": True, "status": "processing", "taskId": "t1"})
    answers = iter([
        {"status": "processing", "progress": 50},
        {"status": "completed", "progress": 100, "url": "http://x/done.png"},
    ])
    outbound.on("POST", "/v1/images/progress", lambda call: (200, next(answers), None, None))
    sleep = Sleeper()
    seen = []

    url = asyncio.run(_client().generate_image_and_wait(
        "a cat", "kie-nano-banana", on_progress=seen.append, sleep=sleep,
    ))
    assert url == "http://x/done.png"
    assert seen == [50, 100]
    assert sleep.delays == [2.0]
    assert outbound.calls_to("/v1/images/progress")[0]["json"] == {"taskId": "t1", "provider": "kie-nano-banana"}


def test_video_wait_records_url(outbound):
    outbound.on("POST", "/v1/videos/generate", json={
        "success": True, "status": "processing", "taskId": "v1", "video": {"id": "row-1"},
    })
    outbound.on("POST", "/v1/videos/progress", json={"status": "completed", "progress": 100, "videoUrl": "http://x/v.mp4"})
    outbound.on("POST", "/v1/videos/row-1/manual-url", json={"success": True})

    url = asyncio.run(_client().generate_video_and_wait("waves", "kie-veo3-fast", sleep=Sleeper()))
    assert url == "http://x/v.mp4"
    assert outbound.calls_to("/v1/videos/generate")[0]["json"]["duration"] == 5
    assert outbound.calls_to("/manual-url")[0]["json"] == {"videoUrl": "http://x/v.mp4"}


def test_error_status_raises(outbound):
    from avatarhub.providers.errors import ProviderError

    outbound.on("GET", "/v1/avatars", status=401, json={"error": "Not authenticated"})
    with pytest.raises(ProviderError) as exc:
        asyncio.run(_client().list_avatars())
    assert exc.value.upstream_status == 401
    assert exc.value.message == "avatarhub API error (401): Not authenticated"
