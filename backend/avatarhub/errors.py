"""
Domain errors.

Routers and services raise these; ``main.py`` renders every one of them
as ``{"error": ..., "details": ...}`` with the matching status code.
"""

from __future__ import annotations

from typing import Any, Optional


class AvatarHubError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(AvatarHubError):
    """Request is missing fields or carries invalid values."""

    status_code = 400


class Unauthorized(AvatarHubError):
    status_code = 401


class Forbidden(AvatarHubError):
    status_code = 403


class NotFound(AvatarHubError):
    status_code = 404


class Conflict(AvatarHubError):
    """Write would break a uniqueness or lifecycle rule."""

    status_code = 409
