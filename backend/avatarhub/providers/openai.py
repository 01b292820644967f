"""
OpenAI adapter: chat completions, DALL-E 3 images and vision analysis.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from ..config import OPENAI_BASE_URL
from .errors import ProviderError
from .http import json_body, send

SERVICE = "openai"


def _headers(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}


async def chat_completion(
    api_key: str,
    messages: List[Dict[str, Any]],
    *,
    model: str,
    temperature: float = 0.7,
    max_tokens: int = 1000,
    json_mode: bool = False,
) -> str:
    """Return the assistant text of the first choice."""
    payload: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        payload["response_format"] = {"type": "json_object"}

    resp = await send(SERVICE, "POST", f"{OPENAI_BASE_URL}/chat/completions", headers=_headers(api_key), json=payload)
    data = json_body(SERVICE, resp)
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError(SERVICE, "OpenAI returned no choices", body=data) from exc


def parse_json_reply(text: str) -> Dict[str, Any]:
    """Parse a JSON object out of a model reply, tolerating ```json fences."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end == -1:
        raise ValueError("reply contains no JSON object")
    parsed = json.loads(cleaned[start:end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("reply JSON is not an object")
    return parsed


async def generate_image(
    api_key: str,
    prompt: str,
    *,
    width: int = 1024,
    height: int = 1024,
    quality: str = "standard",
    style: str = "vivid",
) -> Dict[str, Any]:
    """DALL-E 3 is synchronous: returns ``{"url", "revised_prompt"}``."""
    payload = {
        "model": "dall-e-3",
        "prompt": prompt,
        "n": 1,
        "size": f"{width}x{height}",
        "quality": quality,
        "style": style,
    }
    resp = await send(SERVICE, "POST", f"{OPENAI_BASE_URL}/images/generations", headers=_headers(api_key), json=payload)
    data = json_body(SERVICE, resp)
    items = data.get("data") or []
    if not items or not items[0].get("url"):
        raise ProviderError(SERVICE, "OpenAI returned no image", body=data)
    return {"url": items[0]["url"], "revised_prompt": items[0].get("revised_prompt")}


async def analyze_image(
    api_key: str,
    image_url: str,
    instructions: str,
    *,
    model: str,
    max_tokens: int = 1000,
) -> Dict[str, Any]:
    """Ask a vision model about one image and parse its JSON answer."""
    messages = [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": instructions},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        }
    ]
    text = await chat_completion(api_key, messages, model=model, temperature=0.3, max_tokens=max_tokens, json_mode=True)
    try:
        return parse_json_reply(text)
    except ValueError as exc:
        raise ProviderError(SERVICE, f"Could not parse vision analysis: {exc}", body=text) from exc


def model_max_tokens(model: Optional[str]) -> int:
    """Larger completion budget for gpt-4o-mini models."""
    return 2000 if model and "gpt-4o-mini" in model else 1000
