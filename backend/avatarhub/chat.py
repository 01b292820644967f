"""
Avatar chat.

The system prompt is composed from the active prompt version (or the
avatar profile when nothing is trained yet), the avatar's most recent
memories and the user's current question. The conversation itself is
stateless: callers send the history with each message.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .api_keys import resolve_provider_key
from .avatars.repo import get_avatar
from .config import CHAT_HISTORY_LIMIT, CHAT_MEMORY_LIMIT, CHAT_MODEL
from .memories import list_memories
from .providers import openai
from .training.repo import get_active_version, increment_usage
from .users import require_user

logger = logging.getLogger("avatarhub.chat")

router = APIRouter(prefix="/v1/avatars", tags=["chat"])


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    conversation_history: List[ChatMessage] = Field(default_factory=list)
    model: Optional[str] = None


def compose_system_prompt(
    avatar: Dict[str, Any],
    version: Optional[Dict[str, Any]],
    memories: List[Dict[str, Any]],
    user_message: Optional[str] = None,
    *,
    detailed: bool = False,
) -> str:
    """Build the chat system prompt.

    ``detailed`` adds the MBTI type, hidden rules and photo counts, which the
    public prompt endpoint exposes to external bots.
    """
    name = avatar.get("name") or "Assistant"
    prompt = f"You are {name}, an AI avatar with a unique personality."

    if version:
        prompt = version["system_prompt"]
        if version.get("personality_traits"):
            prompt += f"\n\nYour personality traits: {', '.join(version['personality_traits'])}"
        if version.get("behavior_rules"):
            prompt += f"\n\nBehavior guidelines: {' '.join(version['behavior_rules'])}"
    else:
        if avatar.get("backstory"):
            prompt += f"\n\nYour backstory: {avatar['backstory']}"
        if avatar.get("personality_traits"):
            prompt += f"\n\nYour personality traits: {', '.join(avatar['personality_traits'])}"
        if detailed and avatar.get("mbti_type"):
            prompt += f"\n\nYour MBTI type: {avatar['mbti_type']}"
        if detailed and avatar.get("hidden_rules"):
            prompt += f"\n\nImportant behavioral guidelines: {avatar['hidden_rules']}"

    if memories:
        prompt += "\n\n=== YOUR MEMORIES ===\n"
        for memory in memories:
            line = f"\n- {memory['title']} ({memory.get('memory_date')}): {memory.get('memory_summary') or ''}"
            if detailed and memory.get("images"):
                line += f" [{len(memory['images'])} photo(s) available]"
            prompt += line + "\n"
        prompt += "\n=== END MEMORIES ===\n"

    if user_message:
        prompt += f"\n\nUser's current question: \"{user_message}\"\n\nStay in character and respond as {name} would."
    return prompt


def resolve_model(avatar: Dict[str, Any], requested: Optional[str]) -> str:
    return avatar.get("fine_tuned_model_id") or requested or CHAT_MODEL


def build_messages(system_prompt: str, history: List[Dict[str, str]], message: str) -> List[Dict[str, str]]:
    """System prompt, the last CHAT_HISTORY_LIMIT history entries, then the new message."""
    recent = history[-CHAT_HISTORY_LIMIT:] if CHAT_HISTORY_LIMIT > 0 else []
    return [{"role": "system", "content": system_prompt}, *recent, {"role": "user", "content": message}]


async def run_chat(
    owner_id: str,
    avatar: Dict[str, Any],
    message: str,
    history: List[Dict[str, str]],
    model: Optional[str] = None,
) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """One chat turn with the owner's OpenAI key. Returns the response body and the active version used."""
    version = get_active_version(avatar["id"], owner_id)
    memories = list_memories(avatar["id"], owner_id, limit=CHAT_MEMORY_LIMIT)
    system_prompt = compose_system_prompt(avatar, version, memories, message)

    api_key = resolve_provider_key(owner_id, "openai")
    chosen = resolve_model(avatar, model)
    reply = await openai.chat_completion(
        api_key,
        build_messages(system_prompt, history, message),
        model=chosen,
        temperature=0.7,
        max_tokens=openai.model_max_tokens(chosen),
    )
    logger.info("Chat reply for avatar %s via %s (%d memories)", avatar["id"], chosen, len(memories))
    body = {
        "success": True,
        "avatar_id": avatar["id"],
        "message": reply,
        "metadata": {
            "model": chosen,
            "memories_accessed": len(memories),
            "prompt_version": version["version_number"] if version else None,
        },
    }
    return body, version


@router.post("/{avatar_id}/chat")
async def avatar_chat(avatar_id: str, body: ChatRequest, user: Dict[str, Any] = Depends(require_user)):
    """Owner test chat. Counts a use of the active prompt version."""
    avatar = get_avatar(user["id"], avatar_id)
    if not avatar:
        raise HTTPException(404, "Avatar not found")

    history = [m.model_dump() for m in body.conversation_history]
    result, version = await run_chat(user["id"], avatar, body.message, history, body.model)
    if version:
        increment_usage(version["id"])
    return result
