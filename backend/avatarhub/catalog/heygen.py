"""HeyGen option lists exposed to clients and used for request validation."""

from __future__ import annotations

from typing import Any, Dict, List

HEYGEN_SERVICES: List[Dict[str, Any]] = [
    {
        "id": "heygen-video-translate",
        "name": "Video Translation",
        "description": "Translate videos to 175+ languages with lip-sync and natural voicing",
        "type": "video-translation",
        "endpoint": "/v2/video_translate",
        "features": ["175+ target languages", "Automatic lip-sync", "Multi-speaker support", "Audio-only option"],
        "requires_production": True,
    },
    {
        "id": "heygen-avatar-video",
        "name": "Avatar Video Generation",
        "description": "Create videos with AI avatars speaking custom scripts",
        "type": "avatar-video",
        "endpoint": "/v2/video/generate",
        "features": ["Avatar styles", "Emotion control", "Speech speed and pitch", "Captions"],
        "requires_production": False,
    },
    {
        "id": "heygen-photo-avatar",
        "name": "Photo Avatar Video",
        "description": "Generate videos from your photos with AI animation",
        "type": "photo-avatar",
        "endpoint": "/v2/video/generate",
        "features": ["Upload your own photo", "Talking styles", "Expressions"],
        "requires_production": False,
    },
]

AVATAR_STYLES = ("circle", "normal", "closeUp")
AVATAR_EMOTIONS = ("Excited", "Friendly", "Serious", "Soothing", "Broadcaster")
TALKING_STYLES = ("stable", "expressive")
PHOTO_EXPRESSIONS = ("default", "happy")

COMMON_TRANSLATION_LANGUAGES = [
    {"code": "en", "name": "English"},
    {"code": "es", "name": "Spanish"},
    {"code": "fr", "name": "French"},
    {"code": "de", "name": "German"},
    {"code": "it", "name": "Italian"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "ru", "name": "Russian"},
    {"code": "ja", "name": "Japanese"},
    {"code": "ko", "name": "Korean"},
    {"code": "zh", "name": "Chinese (Simplified)"},
    {"code": "zh-TW", "name": "Chinese (Traditional)"},
    {"code": "ar", "name": "Arabic"},
    {"code": "hi", "name": "Hindi"},
    {"code": "bn", "name": "Bengali"},
    {"code": "vi", "name": "Vietnamese"},
    {"code": "th", "name": "Thai"},
    {"code": "id", "name": "Indonesian"},
    {"code": "ms", "name": "Malay"},
    {"code": "nl", "name": "Dutch"},
    {"code": "pl", "name": "Polish"},
    {"code": "tr", "name": "Turkish"},
    {"code": "sv", "name": "Swedish"},
    {"code": "da", "name": "Danish"},
    {"code": "no", "name": "Norwegian"},
    {"code": "fi", "name": "Finnish"},
    {"code": "el", "name": "Greek"},
    {"code": "he", "name": "Hebrew"},
    {"code": "uk", "name": "Ukrainian"},
    {"code": "cs", "name": "Czech"},
    {"code": "ro", "name": "Romanian"},
    {"code": "hu", "name": "Hungarian"},
]

VIDEO_DIMENSIONS = [
    {"width": 1920, "height": 1080, "label": "1080p (16:9)"},
    {"width": 1080, "height": 1920, "label": "1080p (9:16) Vertical"},
    {"width": 1280, "height": 720, "label": "720p (16:9)"},
    {"width": 720, "height": 1280, "label": "720p (9:16) Vertical"},
    {"width": 1080, "height": 1080, "label": "1080p (1:1) Square"},
    {"width": 640, "height": 640, "label": "640p (1:1) Square"},
]


def heygen_options() -> Dict[str, Any]:
    return {
        "services": HEYGEN_SERVICES,
        "avatar_styles": list(AVATAR_STYLES),
        "emotions": list(AVATAR_EMOTIONS),
        "talking_styles": list(TALKING_STYLES),
        "photo_expressions": list(PHOTO_EXPRESSIONS),
        "languages": COMMON_TRANSLATION_LANGUAGES,
        "dimensions": VIDEO_DIMENSIONS,
    }
