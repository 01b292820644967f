"""
Third-party provider errors.
"""

from __future__ import annotations

from typing import Any, Optional

from ..errors import AvatarHubError

SERVICE_LABELS = {
    "openai": "OpenAI",
    "kie-ai": "KIE.AI",
    "heygen": "HeyGen",
    "elevenlabs": "ElevenLabs",
}


class ProviderError(AvatarHubError):
    """Provider answered with a non-2xx status or an unusable body."""

    status_code = 502

    def __init__(self, service: str, message: str, *, upstream_status: Optional[int] = None, body: Any = None) -> None:
        super().__init__(message, details=body)
        self.service = service
        self.upstream_status = upstream_status


class ProviderKeyMissing(AvatarHubError):
    """Neither the user nor the platform has a key for the service."""

    status_code = 400

    def __init__(self, service: str) -> None:
        label = SERVICE_LABELS.get(service, service)
        super().__init__(
            f"No {label} API key configured. Please add your API key in Settings > API Management."
        )
        self.service = service


class ProviderTimeout(AvatarHubError):
    """Provider did not answer within PROVIDER_TIMEOUT_S."""

    status_code = 504


class GenerationFailed(AvatarHubError):
    """A polled generation task reported ``failed``."""

    status_code = 502


class GenerationTimeout(AvatarHubError):
    """A polled generation task never completed within its attempt budget."""

    status_code = 504
