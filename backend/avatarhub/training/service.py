"""
Prompt training.

A training run takes free-form instructions (and optionally pasted
conversation examples), asks OpenAI to extend the avatar's current prompt,
and stores the answer as a new *inactive* version whose parent is the
version it was built on. The user activates it explicitly.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..api_keys import resolve_provider_key
from ..avatars.prompt import get_avatar_system_prompt
from ..config import TRAINING_MODEL
from ..errors import AvatarHubError, ValidationFailed
from ..providers import openai
from . import repo

logger = logging.getLogger("avatarhub.training")

DEFAULT_PROMPT = "You are a helpful AI assistant. Respond in a friendly and helpful manner."

SYSTEM_MESSAGE = (
    "You are an expert AI prompt engineer specializing in few-shot learning and behavioral cloning. "
    "You preserve original content 100% while adding conversation training through concrete examples."
)

TRAINING_TEMPLATE = """You are updating an AI avatar's system prompt INCREMENTALLY.

CURRENT AVATAR SYSTEM PROMPT (copy exactly, do not rewrite):
{current_prompt}

NEW TRAINING INSTRUCTIONS:
{instructions}
{examples_block}
TASK:
1. Copy 100% of the current prompt, including earlier training sections.
2. Where the new instructions conflict with an earlier section, replace only that section.
3. Add the new training as a clearly marked "PRIORITY TRAINING INSTRUCTIONS" section with numbered rules,
   newest section first.

Return ONLY valid JSON with these keys:
{{
  "system_prompt": "the complete updated prompt",
  "personality_traits": ["traits the avatar should show"],
  "behavior_rules": ["only new or updated rules from this session"],
  "response_style": {{"formality": "...", "response_length": "...", "emoji_usage": "..."}},
  "changes_summary": {{"sections_added": [], "sections_updated": [], "conflict_resolution": ""}},
  "improvement_notes": "what changed in this iteration"
}}"""


def build_training_prompt(current_prompt: str, instructions: str, conversation_examples: Optional[str] = None) -> str:
    examples_block = ""
    if conversation_examples and conversation_examples.strip():
        examples_block = f"\nCONVERSATION EXAMPLES TO LEARN FROM:\n{conversation_examples.strip()}\n"
    return TRAINING_TEMPLATE.format(
        current_prompt=current_prompt or DEFAULT_PROMPT,
        instructions=instructions,
        examples_block=examples_block,
    )


def parse_training_reply(text: str) -> Dict[str, Any]:
    """Normalise the model reply; unparseable output is used verbatim as the prompt."""
    try:
        parsed = openai.parse_json_reply(text)
    except ValueError:
        logger.warning("Training reply was not JSON; using raw text as the prompt")
        return {
            "system_prompt": text.strip().strip("`").strip(),
            "personality_traits": [],
            "behavior_rules": [],
            "response_style": {},
            "changes_summary": {},
            "improvement_notes": "Generated prompt (JSON parsing failed, used raw output)",
        }

    changes = parsed.get("changes_summary") or {}
    if not isinstance(changes, dict):
        changes = {"summary": str(changes)}
    return {
        "system_prompt": parsed.get("system_prompt") or parsed.get("enhanced_system_prompt") or "",
        "personality_traits": list(parsed.get("personality_traits") or []),
        "behavior_rules": list(parsed.get("behavior_rules") or []),
        "response_style": parsed.get("response_style") or {},
        "changes_summary": changes,
        "improvement_notes": parsed.get("improvement_notes")
        or changes.get("conflict_resolution")
        or "Incremental training update applied",
    }


def _base_version(user_id: str, avatar_id: str) -> Optional[Dict[str, Any]]:
    active = repo.get_active_version(avatar_id, user_id)
    if active:
        return active
    versions = repo.list_versions(user_id, avatar_id)
    return versions[0] if versions else None


async def train_avatar(
    user_id: str,
    avatar_id: str,
    training_instructions: str,
    conversation_examples: Optional[str] = None,
) -> Dict[str, Any]:
    """Run one training iteration and return the new (inactive) version."""
    if not (training_instructions or "").strip():
        raise ValidationFailed("training_instructions is required")

    current_prompt = get_avatar_system_prompt(user_id, avatar_id)
    parent = _base_version(user_id, avatar_id)
    if parent:
        current_prompt = parent["system_prompt"]

    api_key = resolve_provider_key(user_id, "openai")
    repo.log_training_event(
        avatar_id, user_id, "training_start", "Training started",
        version_id=parent["id"] if parent else None,
        details={"parent_version": parent["version_number"] if parent else None},
    )

    messages = [
        {"role": "system", "content": SYSTEM_MESSAGE},
        {"role": "user", "content": build_training_prompt(current_prompt, training_instructions, conversation_examples)},
    ]
    try:
        reply = await openai.chat_completion(
            api_key, messages, model=TRAINING_MODEL, temperature=0.2, max_tokens=4000, json_mode=True,
        )
        result = parse_training_reply(reply)
        if not result["system_prompt"].strip():
            raise ValidationFailed("Training produced an empty system prompt")
    except AvatarHubError as exc:
        repo.log_training_event(avatar_id, user_id, "error", exc.message)
        raise

    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    version = repo.create_version(
        user_id,
        avatar_id,
        system_prompt=result["system_prompt"],
        version_name=f"Training Update {stamp}",
        description=f"Generated from training with {'incremental' if parent else 'new'} data",
        personality_traits=result["personality_traits"],
        behavior_rules=result["behavior_rules"],
        response_style=result["response_style"],
        changes_from_parent={**result["changes_summary"], "improvement_notes": result["improvement_notes"]},
        parent_version_id=parent["id"] if parent else None,
    )
    repo.log_training_event(
        avatar_id, user_id, "completion", f"Created {version['version_number']}",
        version_id=version["id"],
        details={"improvement_notes": result["improvement_notes"]},
    )
    return version
