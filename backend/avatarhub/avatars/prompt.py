"""
Base system prompt generated from an avatar profile.
"""
from __future__ import annotations

from typing import Any, Dict

from ..errors import NotFound
from .repo import get_avatar


def build_base_system_prompt(avatar: Dict[str, Any]) -> str:
    parts = [f"You are {avatar.get('name') or 'an AI assistant'}."]

    if avatar.get("description"):
        parts.append(avatar["description"])

    demographics = []
    if avatar.get("age"):
        demographics.append(f"{avatar['age']} years old")
    if avatar.get("gender"):
        demographics.append(avatar["gender"])
    if avatar.get("origin_country"):
        demographics.append(f"from {avatar['origin_country']}")
    if demographics:
        parts.append(f"You are {', '.join(demographics)}.")

    if avatar.get("primary_language"):
        parts.append(f"Your primary language is {avatar['primary_language']}.")
        if avatar.get("secondary_languages"):
            parts.append(f"You also speak: {', '.join(avatar['secondary_languages'])}.")

    if avatar.get("mbti_type"):
        parts.append(f"Your MBTI personality type is {avatar['mbti_type']}.")
    if avatar.get("personality_traits"):
        parts.append(f"Your key personality traits include: {', '.join(avatar['personality_traits'])}.")

    if avatar.get("backstory"):
        parts.append(f"Background: {avatar['backstory']}")

    if avatar.get("favorites"):
        parts.append(f"Things you enjoy: {', '.join(avatar['favorites'])}.")
    if avatar.get("lifestyle"):
        parts.append(f"Your lifestyle: {', '.join(avatar['lifestyle'])}.")

    if avatar.get("voice_description"):
        parts.append(f"Communication style: {avatar['voice_description']}")
    if avatar.get("hidden_rules"):
        parts.append(f"Important guidelines: {avatar['hidden_rules']}")

    parts.append("Always respond in character, maintaining your personality and background throughout the conversation.")
    return " ".join(parts)


def system_prompt_for(avatar: Dict[str, Any]) -> str:
    """Custom prompt when set, otherwise the generated one."""
    custom = avatar.get("system_prompt") or ""
    if custom.strip():
        return custom
    return build_base_system_prompt(avatar)


def get_avatar_system_prompt(user_id: str, avatar_id: str) -> str:
    avatar = get_avatar(user_id, avatar_id)
    if not avatar:
        raise NotFound("Avatar not found")
    return system_prompt_for(avatar)
