"""
Marketplace advertising templates for batch product media.

Image styles are img2img: the seller's product photo is transformed into a
platform look. Video styles come as five-clip series per platform where the
product photo becomes the first frame.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

_QUALITY = "product clearly visible, mobile-optimized composition, commercial photography quality, 4k resolution"


@dataclass(frozen=True)
class AdvertisingStyle:
    id: str
    name: str
    platform: str
    description: str
    prompt: str
    negative_prompt: str
    aspect_ratio: str
    strength: float
    popular: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VideoAdvertisingStyle:
    id: str
    name: str
    platform: str
    series_number: int
    description: str
    prompt: str
    aspect_ratio: str
    duration: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


ADVERTISING_STYLES: List[AdvertisingStyle] = [
    AdvertisingStyle(
        "shopee-flash-sale", "Shopee Flash Sale", "Shopee",
        "High-energy Shopee Malaysia style with orange accents and promo feel",
        "Transform this product photo into Shopee Malaysia flash sale advertisement style, vibrant orange (#EE4D2D) "
        "and white color scheme, product centered against clean white or light orange gradient background, bright "
        "cheerful lighting, space for promotional badges and price tags, deal-focused energetic presentation, " + _QUALITY,
        "dark, muted, premium luxury feel, complicated background, cluttered, poor product visibility, low energy",
        "1:1", 0.65, True,
    ),
    AdvertisingStyle(
        "shopee-lifestyle", "Shopee Lifestyle", "Shopee",
        "Relatable lifestyle shot for Shopee with product in daily use",
        "Transform this product into Shopee Malaysia lifestyle photography showing the product in a relatable Malaysian "
        "home setting, bright natural lighting, product as hero item, warm friendly mood building trust, practical "
        "everyday usage scenario, value-for-money presentation, " + _QUALITY,
        "luxury, expensive-looking, dark moody, overly styled, impractical setting, messy, unclear product",
        "1:1", 0.7, True,
    ),
    AdvertisingStyle(
        "lazada-premium", "Lazada Premium", "Lazada",
        "Lazada Malaysia style with blue accents, slightly more premium",
        "Transform this product into Lazada Malaysia premium listing style, blue and orange accent colors, clean white "
        "background with subtle blue gradient, professional studio lighting showing quality, LazMall aesthetic, all "
        "features visible, space for voucher badges, trustworthy established brand feel, " + _QUALITY,
        "cheap-looking, cluttered, dark, poor lighting, messy background, unclear product details",
        "1:1", 0.65, True,
    ),
    AdvertisingStyle(
        "facebook-casual", "Facebook Casual", "Facebook",
        "Authentic casual style for Facebook Marketplace Malaysia",
        "Transform this product into Facebook Marketplace Malaysia style authentic product photo, casual and genuine, "
        "product in natural home setting, natural lighting achievable by an average seller, honest and trustworthy "
        "presentation, local seller aesthetic, " + _QUALITY,
        "overly professional studio, fake, staged perfectly, corporate feel, luxury boutique, unclear product",
        "4:5", 0.75, True,
    ),
    AdvertisingStyle(
        "facebook-shop-clean", "Facebook Shop Clean", "Facebook",
        "Clean professional style for Facebook Shop",
        "Transform this product into Facebook Shop Malaysia clean professional product photo, white or very light "
        "background, good even lighting, slightly more polished than marketplace, small business aesthetic, product "
        "details clear, " + _QUALITY,
        "messy, dark, overly artistic, cluttered background, poor product visibility, amateur bad lighting",
        "1:1", 0.7, False,
    ),
    AdvertisingStyle(
        "instagram-aesthetic", "Instagram Aesthetic", "Instagram",
        "Curated aesthetic feed style popular in Malaysia",
        "Transform this product into Instagram Malaysia aesthetic feed style, curated styled product photography, "
        "cohesive pastel palette, product artfully arranged with lifestyle props, soft window light, minimalist "
        "composition with negative space for captions, " + _QUALITY,
        "cluttered, chaotic, harsh lighting, no aesthetic cohesion, dated look, corporate catalog feel",
        "4:5", 0.65, True,
    ),
    AdvertisingStyle(
        "instagram-story", "Instagram Story", "Instagram",
        "Vertical story format for Instagram Malaysia",
        "Transform this product into Instagram Story format, vertical 9:16 composition filling the phone screen, product "
        "prominently displayed, bright vibrant colors, space for text overlay and stickers, trendy current style, " + _QUALITY,
        "horizontal, dark, boring, overly formal, corporate, unclear product, cluttered",
        "9:16", 0.7, True,
    ),
    AdvertisingStyle(
        "tiktok-viral", "TikTok Viral Style", "TikTok",
        "Attention-grabbing TikTok Shop Malaysia thumbnail",
        "Transform this product into TikTok Shop viral-style thumbnail, scroll-stopping vertical 9:16 format, product "
        "displayed boldly, vibrant saturated colors, space for captions, energetic dynamic composition, " + _QUALITY,
        "boring, static, corporate, horizontal, subtle muted colors, traditional advertising, unclear product",
        "9:16", 0.7, True,
    ),
    AdvertisingStyle(
        "tiktok-before-after", "TikTok Before/After", "TikTok",
        "Before/after split popular on TikTok Malaysia",
        "Transform this product photo into a before-after split, clear contrast between the original state and the "
        "enhanced presentation, side-by-side layout, both sides evenly lit, space for BEFORE/AFTER labels, " + _QUALITY,
        "unclear comparison, lighting mismatch, confusing layout, subtle difference, horizontal format",
        "9:16", 0.65, False,
    ),
    AdvertisingStyle(
        "carousell-honest", "Carousell Honest", "Carousell",
        "Straightforward honest style for Carousell Malaysia",
        "Transform this product into Carousell honest listing style, simple clean background showing true condition, "
        "good indoor lighting making details clear, practical no-nonsense presentation, " + _QUALITY,
        "overly professional, misleading glamour, poor lighting hiding details, unclear condition",
        "1:1", 0.75, False,
    ),
    AdvertisingStyle(
        "whatsapp-catalog", "WhatsApp Catalog", "WhatsApp Business",
        "Clean catalog style for WhatsApp Business Malaysia",
        "Transform this product into WhatsApp Business catalog style, clean product photo on white background showing "
        "all important details, even lighting, product centered and well-framed, SME-friendly presentation, " + _QUALITY,
        "cluttered, dark, overly artistic, poor product visibility, messy background",
        "1:1", 0.65, True,
    ),
    AdvertisingStyle(
        "malaysian-premium", "Malaysian Premium", "Multi-platform",
        "Premium quality for upmarket Malaysian buyers",
        "Transform this product into premium market style, elegant clean background with subtle premium elements, "
        "sophisticated lighting highlighting craftsmanship, refined composition, neutral color palette, " + _QUALITY,
        "cheap-looking, messy, poor quality, overly casual, cluttered, amateur, too flashy",
        "4:5", 0.6, False,
    ),
    AdvertisingStyle(
        "ramadan-raya", "Raya/Festive Style", "Seasonal",
        "Festive style for Ramadan, Raya, and Malaysian celebrations",
        "Transform this product into festive celebration style for Raya, Chinese New Year or Deepavali promotions, "
        "subtle festive elements in green and gold, product as the perfect gift, warm celebratory lighting, " + _QUALITY,
        "dull, inappropriate cultural elements, too commercial, messy, unclear product, chaotic",
        "1:1", 0.65, False,
    ),
]


def _series(platform: str, prefix: str, look: str, clips: List[tuple]) -> List[VideoAdvertisingStyle]:
    return [
        VideoAdvertisingStyle(
            id=f"{prefix}-video-{n}-{slug}",
            name=name,
            platform=platform,
            series_number=n,
            description=description,
            prompt=f"{platform} {description.lower()} video, {look}, product stays the focal point, "
                   f"smooth motion, mobile-optimized framing, 5-second engaging clip",
            aspect_ratio=aspect,
        )
        for n, (slug, name, description, aspect) in enumerate(clips, start=1)
    ]


VIDEO_STYLES: List[VideoAdvertisingStyle] = (
    _series("Shopee Malaysia", "shopee", "vibrant orange (#EE4D2D) accents on clean white, flash sale energy", [
        ("showcase", "Product Showcase Spin", "Clean 360° product rotation with orange energy", "1:1"),
        ("lifestyle", "Lifestyle Quick Demo", "Product in use showing Malaysian daily life", "9:16"),
        ("features", "Features Highlight Sequence", "Multiple angles revealing key features", "1:1"),
        ("before-after", "Transformation Video", "Dynamic before/after showing product benefit", "9:16"),
        ("sale", "Flash Sale Animation", "High-energy promotional video with motion", "1:1"),
    ])
    + _series("Lazada Malaysia", "lazada", "premium blue aesthetic with studio lighting", [
        ("premium", "Premium Reveal", "Elegant reveal with blue premium lighting", "1:1"),
        ("lifestyle", "Aspirational Living", "Product in an aspirational modern home", "9:16"),
        ("features", "Quality Features Tour", "Slow tour across quality details", "1:1"),
        ("authenticity", "Brand Trust Video", "Authenticity and packaging close-ups", "1:1"),
        ("sale", "Blue Sale Campaign", "Voucher-style promotional motion", "1:1"),
    ])
    + _series("Instagram Malaysia", "instagram", "curated pastel palette and soft natural light", [
        ("feed", "Feed Aesthetic Video", "Styled flat-lay with gentle motion", "4:5"),
        ("reels", "Reels Viral Style", "Fast trendy cuts for reels", "9:16"),
        ("story", "Story Engagement Video", "Vertical story with space for stickers", "9:16"),
        ("carousel", "Carousel Video Segment", "Clean segment for a carousel post", "1:1"),
        ("boomerang", "Boomerang Loop Effect", "Seamless back-and-forth loop", "1:1"),
    ])
    + _series("TikTok Malaysia", "tiktok", "bold saturated colors and scroll-stopping motion", [
        ("showcase", "Viral Product Reveal", "Dramatic reveal built for the first second", "9:16"),
        ("tutorial", "Quick Tutorial Demo", "Step-by-step usage demo", "9:16"),
        ("unboxing", "Unboxing First Impression", "Hands-on unboxing moment", "9:16"),
        ("comparison", "Before/After Transformation", "Split-screen transformation", "9:16"),
        ("trend", "Trending Format Video", "Current trend format with product hero", "9:16"),
    ])
    + _series("Facebook Malaysia", "facebook", "authentic marketplace look with natural light", [
        ("showcase", "Marketplace Product Video", "Honest product walkaround", "1:1"),
        ("demo", "Usage Demonstration", "Real-life usage demonstration", "4:5"),
        ("features", "Feature Walkthrough", "Feature-by-feature walkthrough", "1:1"),
        ("closeup", "Quality Close-Up Video", "Macro close-ups of materials", "1:1"),
        ("promo", "Shop Sale Video", "Friendly shop sale announcement", "1:1"),
    ])
    + _series("WhatsApp Business Malaysia", "whatsapp", "clean white catalog background", [
        ("showcase", "Catalog Product Video", "Clean professional product video", "1:1"),
        ("features", "Feature Highlight Video", "Key features demonstration", "1:1"),
        ("lifestyle", "Usage Context Video", "Product in clean usage context", "1:1"),
        ("detail", "Detail Close-Up Video", "Quality detail reveal", "1:1"),
        ("package", "Package Contents Video", "What customer receives", "1:1"),
    ])
)

VIDEO_PLATFORM_SERIES: List[Dict[str, Any]] = [
    {"id": "shopee", "name": "Shopee Malaysia", "description": "5-video series with orange energy and flash sale motion", "popular": True},
    {"id": "lazada", "name": "Lazada Malaysia", "description": "5-video series with premium blue aesthetic and quality motion", "popular": True},
    {"id": "instagram", "name": "Instagram Malaysia", "description": "5-video series with feed, reels, and story formats", "popular": True},
    {"id": "tiktok", "name": "TikTok Malaysia", "description": "5-video series with viral trends and entertainment motion", "popular": True},
    {"id": "facebook", "name": "Facebook Malaysia", "description": "5-video series with authentic marketplace motion", "popular": False},
    {"id": "whatsapp", "name": "WhatsApp Business Malaysia", "description": "5-video series with clean catalog presentations", "popular": True},
]


def popular_styles() -> List[AdvertisingStyle]:
    return [s for s in ADVERTISING_STYLES if s.popular]


def styles_by_platform(platform: str) -> List[AdvertisingStyle]:
    return [s for s in ADVERTISING_STYLES if s.platform == platform]


def all_platforms() -> List[str]:
    seen: List[str] = []
    for style in ADVERTISING_STYLES:
        if style.platform not in seen:
            seen.append(style.platform)
    return seen


def get_style(style_id: str) -> Optional[AdvertisingStyle]:
    return next((s for s in ADVERTISING_STYLES if s.id == style_id), None)


def video_series(platform_id: str) -> Optional[Dict[str, Any]]:
    """Platform series with its five clips, or None."""
    platform = next((p for p in VIDEO_PLATFORM_SERIES if p["id"] == platform_id), None)
    if not platform:
        return None
    styles = [s.to_dict() for s in VIDEO_STYLES if s.platform == platform["name"]]
    return {**platform, "styles": styles}
