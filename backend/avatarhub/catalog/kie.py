"""
KIE.AI service catalog.

KIE.AI exposes a unified jobs API (``/api/v1/jobs/createTask`` +
``/api/v1/jobs/recordInfo``) where the model is chosen by the ``model``
field, plus dedicated Veo and Suno endpoints. Costs are in KIE credits;
1 credit = $0.005.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple

KIEServiceType = Literal["image", "video", "music"]

JOBS_ENDPOINT = "/api/v1/jobs/createTask"
VEO_ENDPOINT = "/api/v1/veo/generate"
SUNO_ENDPOINT = "/api/v1/suno/generate"

CREDIT_TO_USD = 0.005


@dataclass(frozen=True)
class KIEService:
    id: str
    name: str
    description: str
    type: KIEServiceType
    model: str
    endpoint: str
    cost_credits: int
    cost_usd: float
    estimated_time_s: int
    features: Tuple[str, ...] = ()
    supports_text2vid: bool = False
    supports_img2img: bool = False
    aspect_ratios: Tuple[str, ...] = ()
    max_duration_s: Optional[int] = None
    max_input_images: int = 0

    @property
    def is_veo(self) -> bool:
        return self.endpoint == VEO_ENDPOINT

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["features"] = list(self.features)
        out["aspect_ratios"] = list(self.aspect_ratios)
        return out


_WIDE = ("1:1", "16:9", "9:16", "4:3", "3:4", "3:2", "2:3", "5:4", "4:5", "21:9")
_IMAGEN = ("1:1", "16:9", "9:16", "3:4", "4:3")

KIE_IMAGE_SERVICES: List[KIEService] = [
    KIEService("kie-nano-banana", "Nano Banana", "Fast and affordable image generation by Google",
               "image", "google/nano-banana", JOBS_ENDPOINT, 4, 0.02, 10,
               ("Very fast generation", "Most affordable", "Multiple aspect ratios"), aspect_ratios=_WIDE),
    KIEService("kie-qwen-text2img", "Qwen Text-to-Image", "Multilingual text rendering with English and Chinese support",
               "image", "qwen/text-to-image", JOBS_ENDPOINT, 5, 0.0125, 15,
               ("Multilingual text rendering", "Artistic versatility"), aspect_ratios=("1:1", "16:9", "9:16")),
    KIEService("kie-imagen4-ultra", "Imagen 4 Ultra", "Ultra-fast photorealistic generation, 2K resolution",
               "image", "google/imagen4-ultra", JOBS_ENDPOINT, 12, 0.06, 5,
               ("Photorealistic quality", "2K resolution support", "Typography accuracy"), aspect_ratios=_IMAGEN),
    KIEService("kie-imagen4", "Imagen 4 Standard", "Balanced quality and performance with excellent photorealism",
               "image", "google/imagen4", JOBS_ENDPOINT, 8, 0.04, 10,
               ("Photorealistic quality", "Improved color control"), aspect_ratios=_IMAGEN),
    KIEService("kie-imagen4-fast", "Imagen 4 Fast", "Most economical option for rapid iterations",
               "image", "google/imagen4-fast", JOBS_ENDPOINT, 4, 0.02, 8,
               ("Fast iterations", "Low cost"), aspect_ratios=_IMAGEN),
    KIEService("kie-grok-imagine", "Grok Imagine", "Generate 6 images per request, diverse creative outputs",
               "image", "grok-imagine/text-to-image", JOBS_ENDPOINT, 4, 0.02, 12,
               ("Six images per request", "Creative variety"), aspect_ratios=("1:1", "2:3", "3:2")),
    KIEService("kie-gpt4o-image", "GPT-4O Image", "Advanced ChatGPT 4O image generation with text rendering",
               "image", "gpt4o-image", JOBS_ENDPOINT, 6, 0.03, 15,
               ("Accurate text rendering", "Prompt adherence"), aspect_ratios=("1:1", "16:9", "9:16")),
    # Image-to-image
    KIEService("kie-nano-banana-edit", "Nano Banana Edit", "Natural language image editing with pixel-level accuracy",
               "image", "google/nano-banana-edit", JOBS_ENDPOINT, 4, 0.02, 10,
               ("Natural language edits", "Multiple reference images"),
               supports_img2img=True, aspect_ratios=_WIDE, max_input_images=10),
    KIEService("kie-qwen-img2img", "Qwen Image-to-Image", "Dual-mode editing: semantic changes and appearance edits",
               "image", "qwen/image-to-image", JOBS_ENDPOINT, 5, 0.0125, 15,
               ("Semantic edits", "Appearance edits"),
               supports_img2img=True, aspect_ratios=("1:1", "16:9", "9:16"), max_input_images=1),
    KIEService("kie-seedream-v4-edit", "Seedream V4 Edit", "Precise instruction editing with identity preservation",
               "image", "bytedance/seedream-v4-edit", JOBS_ENDPOINT, 8, 0.04, 20,
               ("Identity preservation", "Instruction editing"),
               supports_img2img=True, aspect_ratios=_IMAGEN, max_input_images=10),
    KIEService("kie-recraft-remove-bg", "Recraft Remove Background", "Automatic background removal with transparent PNG output",
               "image", "recraft/remove-background", JOBS_ENDPOINT, 2, 0.01, 5,
               ("Transparent PNG output",),
               supports_img2img=True, aspect_ratios=("1:1",), max_input_images=1),
    KIEService("kie-imagen4-edit", "Imagen 4 Edit", "High-quality photorealistic image editing",
               "image", "google/imagen4-edit", JOBS_ENDPOINT, 8, 0.04, 10,
               ("Photorealistic edits",),
               supports_img2img=True, aspect_ratios=_IMAGEN, max_input_images=1),
]

KIE_VIDEO_SERVICES: List[KIEService] = [
    KIEService("kie-sora-2-pro-text2vid", "Sora 2 Pro (Text)", "OpenAI Sora 2 Pro - Text-to-video with photorealistic quality",
               "video", "sora-2-pro-text-to-video", JOBS_ENDPOINT, 500, 2.50, 180,
               ("Photorealistic quality", "Up to 15 seconds"),
               supports_text2vid=True, aspect_ratios=("16:9", "9:16"), max_duration_s=15),
    KIEService("kie-sora-2-pro-img2vid", "Sora 2 Pro (Image)", "OpenAI Sora 2 Pro - Image-to-video with multiple images support",
               "video", "sora-2-pro-image-to-video", JOBS_ENDPOINT, 500, 2.50, 180,
               ("Multiple images support", "Up to 15 seconds"),
               supports_img2img=True, aspect_ratios=("16:9", "9:16"), max_duration_s=15, max_input_images=4),
    KIEService("kie-veo3-fast", "Veo 3.1 Fast", "Google Veo 3.1 - Fast video generation (8s with audio)",
               "video", "veo3_fast", VEO_ENDPOINT, 80, 0.40, 120,
               ("Native audio", "Fast turnaround"),
               supports_text2vid=True, supports_img2img=True, aspect_ratios=("16:9", "9:16"), max_duration_s=8,
               max_input_images=1),
    KIEService("kie-veo3-quality", "Veo 3.1 Quality", "Google Veo 3.1 - High quality video generation (8s with audio)",
               "video", "veo3", VEO_ENDPOINT, 400, 2.00, 180,
               ("Native audio", "Highest fidelity"),
               supports_text2vid=True, supports_img2img=True, aspect_ratios=("16:9", "9:16"), max_duration_s=8,
               max_input_images=1),
    KIEService("kie-hailuo-standard-img2vid", "Hailuo 2.3 Standard", "Hailuo 2.3 Standard - Enhanced image-to-video with better motion",
               "video", "hailuo/2-3-image-to-video-standard", JOBS_ENDPOINT, 60, 0.30, 100,
               ("Better motion",),
               supports_img2img=True, aspect_ratios=("16:9", "9:16", "1:1"), max_duration_s=6, max_input_images=1),
    KIEService("kie-hailuo-pro-img2vid", "Hailuo 2.3 Pro", "Hailuo 2.3 Pro - Premium image-to-video with highest quality",
               "video", "hailuo/2-3-image-to-video-pro", JOBS_ENDPOINT, 120, 0.60, 120,
               ("Highest quality motion",),
               supports_img2img=True, aspect_ratios=("16:9", "9:16", "1:1"), max_duration_s=6, max_input_images=1),
]

KIE_MUSIC_SERVICES: List[KIEService] = [
    KIEService("kie-suno-v5", "Suno V5", "Latest Suno model - Premium music generation",
               "music", "V5", SUNO_ENDPOINT, 50, 0.25, 60,
               ("Studio quality", "Up to 8 minutes"), max_duration_s=480),
    KIEService("kie-suno-v4-5", "Suno V4.5", "Advanced music generation with custom mode",
               "music", "V4_5", SUNO_ENDPOINT, 40, 0.20, 60,
               ("Custom mode", "Up to 8 minutes"), max_duration_s=480),
    KIEService("kie-suno-v3-5", "Suno V3.5", "Affordable music generation",
               "music", "V3_5", SUNO_ENDPOINT, 30, 0.15, 50,
               ("Affordable", "Up to 4 minutes"), max_duration_s=240),
]

ALL_KIE_SERVICES: List[KIEService] = KIE_IMAGE_SERVICES + KIE_VIDEO_SERVICES + KIE_MUSIC_SERVICES

_BY_ID = {s.id: s for s in ALL_KIE_SERVICES}


def get_service(service_id: str) -> Optional[KIEService]:
    return _BY_ID.get(service_id)


def services_by_type(service_type: str) -> List[KIEService]:
    return [s for s in ALL_KIE_SERVICES if s.type == service_type]


def calculate_cost(service_id: str, quantity: int = 1) -> Dict[str, Any]:
    """Credits and USD for ``quantity`` generations. Unknown services cost nothing."""
    service = get_service(service_id)
    if not service:
        return {"credits": 0, "usd": 0.0, "service": None}
    return {
        "credits": service.cost_credits * quantity,
        "usd": round(service.cost_usd * quantity, 4),
        "service": service.id,
    }


def format_cost(credits: int, usd: float) -> str:
    return f"{credits} credits (~${usd:.2f})"


def credits_to_usd(credits: float) -> float:
    return credits * CREDIT_TO_USD


def usd_to_credits(usd: float) -> int:
    # Round before ceil so float noise (0.4/0.005 == 80.00000000000001) doesn't add a credit
    return math.ceil(round(usd / CREDIT_TO_USD, 6))
