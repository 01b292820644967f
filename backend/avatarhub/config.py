from __future__ import annotations

import os
import pathlib
from typing import List

"""Runtime configuration.

Everything is read from environment variables once at import time. Provider
platform keys are the exception: they are looked up at call time by
``api_keys.platform_key`` so an operator can rotate them without a restart.
"""


# Detect if we're running in a Docker container
_IS_DOCKER = pathlib.Path("/.dockerenv").exists() or os.getenv("DOCKER_CONTAINER", "").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

# Provider base URLs (keys come from env or the per-user vault)
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
HEYGEN_BASE_URL = os.getenv("HEYGEN_BASE_URL", "https://api.heygen.com").rstrip("/")
ELEVENLABS_BASE_URL = os.getenv("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io").rstrip("/")
KIE_AI_BASE_URL = os.getenv("KIE_AI_BASE_URL", "https://api.kie.ai").rstrip("/")

# Env var names of the platform-wide provider keys, keyed by service id
PLATFORM_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "kie-ai": "KIE_AI_API_KEY",
    "heygen": "HEYGEN_API_KEY",
    "elevenlabs": "ELEVENLABS_API_KEY",
}

# Secret used to derive the Fernet key that encrypts stored provider keys.
KEY_ENCRYPTION_SECRET = os.getenv("KEY_ENCRYPTION_SECRET", "avatarhub-dev-secret").strip()
KEY_ENCRYPTION_SALT = os.getenv("KEY_ENCRYPTION_SALT", "avatarhub-key-vault").encode()

# Storage
#
# If DATA_DIR is set, default to storing DB/uploads under that directory unless the
# more specific vars are provided.
DATA_DIR = os.getenv("DATA_DIR", "").strip()

if DATA_DIR:
    _default_data_root = DATA_DIR
elif _IS_DOCKER:
    _default_data_root = "/app/data"
else:
    _backend_dir = pathlib.Path(__file__).parent.parent  # backend/
    _default_data_root = str(_backend_dir / "data")

SQLITE_PATH = os.getenv("SQLITE_PATH", os.path.join(_default_data_root, "avatarhub.db"))
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(_default_data_root, "uploads"))

# Upload constraints
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "25"))
MAX_MEMORY_PHOTOS = int(os.getenv("MAX_MEMORY_PHOTOS", "10"))

# Timeouts / polling
PROVIDER_TIMEOUT_S = float(os.getenv("PROVIDER_TIMEOUT_S", "120"))
IMAGE_POLL_INTERVAL_S = float(os.getenv("IMAGE_POLL_INTERVAL_S", "2.0"))
IMAGE_POLL_MAX_ATTEMPTS = int(os.getenv("IMAGE_POLL_MAX_ATTEMPTS", "60"))
VIDEO_POLL_INTERVAL_S = float(os.getenv("VIDEO_POLL_INTERVAL_S", "3.0"))
VIDEO_POLL_MAX_ATTEMPTS = int(os.getenv("VIDEO_POLL_MAX_ATTEMPTS", "90"))
VIDEO_SWEEP_BATCH = int(os.getenv("VIDEO_SWEEP_BATCH", "50"))

# Chat defaults
CHAT_MODEL = os.getenv("CHAT_MODEL", "gpt-3.5-turbo").strip()
CHAT_HISTORY_LIMIT = int(os.getenv("CHAT_HISTORY_LIMIT", "30"))
CHAT_MEMORY_LIMIT = int(os.getenv("CHAT_MEMORY_LIMIT", "10"))
VISION_MODEL = os.getenv("VISION_MODEL", "gpt-4o-mini").strip()
TRAINING_MODEL = os.getenv("TRAINING_MODEL", "gpt-4o-mini").strip()

# Session lifetime
SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", "30"))

# Internal cron token for the video sweep (empty => admin session only)
SWEEP_TOKEN = os.getenv("SWEEP_TOKEN", "").strip()


def _parse_csv(value: str) -> List[str]:
    return [x.strip() for x in (value or "").split(",") if x.strip()]


CORS_ORIGINS = _parse_csv(os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173"))

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").strip().rstrip("/")
