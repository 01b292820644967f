"""
Avatar personas.

Usage:
    from avatarhub.avatars import router as avatars_router
    app.include_router(avatars_router)
"""

from .prompt import build_base_system_prompt, get_avatar_system_prompt
from .repo import get_avatar, get_avatar_by_id, list_avatars
from .routes import router

__all__ = [
    "router",
    "build_base_system_prompt",
    "get_avatar_system_prompt",
    "get_avatar",
    "get_avatar_by_id",
    "list_avatars",
]
