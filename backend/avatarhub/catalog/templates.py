"""
Category templates for product images and videos.

Prompts carry a ``[PRODUCT]`` placeholder that the client replaces with the
product description before generating.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

PLACEHOLDER = "[PRODUCT]"

_IMAGE_PROVIDER = "kie-nano-banana"
_VIDEO_PROVIDER = "kie-veo3-fast"

CATEGORY_LABELS: Dict[str, str] = {
    "fashion-apparel": "Fashion & Apparel",
    "electronics-tech": "Electronics & Tech",
    "food-beverage": "Food & Beverage",
    "beauty-cosmetics": "Beauty & Cosmetics",
    "home-living": "Home & Living",
    "platform-temu": "Temu Style",
    "platform-instagram": "Instagram Style",
    "platform-tiktok": "TikTok Style",
    "platform-shopee": "Shopee Style",
    "platform-amazon": "Amazon Style",
    "platform-pinterest": "Pinterest Style",
}


@dataclass(frozen=True)
class ImageTemplate:
    id: str
    name: str
    category: str
    description: str
    prompt: str
    negative_prompt: str
    aspect_ratio: str
    tags: Tuple[str, ...]
    generation_mode: str = "text2img"
    default_provider: str = _IMAGE_PROVIDER

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["tags"] = list(self.tags)
        return d


@dataclass(frozen=True)
class VideoTemplate:
    id: str
    name: str
    category: str
    description: str
    prompt: str
    aspect_ratio: str
    duration: int
    tags: Tuple[str, ...]
    negative_prompt: Optional[str] = None
    generation_mode: str = "text2vid"
    default_provider: str = _VIDEO_PROVIDER

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["tags"] = list(self.tags)
        return d


IMAGE_TEMPLATES: List[ImageTemplate] = [
    # fashion & apparel
    ImageTemplate(
        "fashion-model-studio", "Fashion Model Studio Shot", "fashion-apparel",
        "Professional fashion photography with model wearing clothing",
        "High-end fashion photography of professional model wearing [PRODUCT], modern studio with three-point "
        "lighting, clean seamless white or gray backdrop, dynamic pose showing garment movement and drape, 85mm lens "
        "at f/2.8, crisp fabric texture and stitching, fashion editorial campaign quality, 8k resolution",
        "amateur, blurry, poor lighting, wrinkled clothes, bad posture, cluttered background, over-saturated, "
        "unnatural skin tones, low resolution, distorted proportions",
        "4:5", ("fashion", "apparel", "model", "studio", "professional"),
    ),
    ImageTemplate(
        "fashion-flat-lay", "Fashion Flat Lay Composition", "fashion-apparel",
        "Overhead flat lay of clothing with lifestyle accessories",
        "Stylish overhead flat lay featuring [PRODUCT] as the hero piece on pristine white or pastel background, "
        "surrounded by complementary accessories like sunglasses, jewelry and shoes, even soft lighting from above, "
        "geometric arrangement, color coordinated palette, negative space for text overlay, 4k resolution",
        "messy, cluttered, harsh shadows, uneven lighting, crooked items, poor arrangement, dirty background, "
        "low quality, pixelated",
        "1:1", ("fashion", "flat-lay", "overhead", "lifestyle", "instagram"),
    ),
    ImageTemplate(
        "fashion-lifestyle-outdoor", "Fashion Lifestyle Outdoor", "fashion-apparel",
        "Clothing photographed in natural outdoor lifestyle setting",
        "Authentic lifestyle fashion photography of person wearing [PRODUCT] outdoors at golden hour, urban street "
        "or nature backdrop, candid mid-movement moment showing garment flow, 50mm lens at f/1.8 with soft bokeh, "
        "warm color grading, lifestyle brand campaign quality, 6k resolution",
        "studio, artificial, staged, harsh lighting, unflattering angles, static pose, boring background, "
        "over-edited, poor composition",
        "4:5", ("fashion", "lifestyle", "outdoor", "natural-light", "candid"),
    ),
    # electronics & tech
    ImageTemplate(
        "tech-product-hero", "Tech Product Hero Shot", "electronics-tech",
        "Premium tech product photography with dramatic lighting",
        "Premium technology product photography of [PRODUCT] on black gradient background fading to deep blue, "
        "dramatic rim lighting on product edges, key light from 45 degrees, product at slight angle showing several "
        "facets, flawless reflections, sharp focus on logo and key features, flagship campaign quality, 8k resolution",
        "cheap-looking, poor lighting, dirty, scratched, low quality, boring angle, flat lighting, overexposed, "
        "underexposed, color cast, visible dust",
        "16:9", ("electronics", "tech", "premium", "hero-shot", "dramatic-lighting"),
    ),
    ImageTemplate(
        "tech-lifestyle-usage", "Tech Product in Use", "electronics-tech",
        "Technology product being used in modern lifestyle setting",
        "Modern lifestyle photography of [PRODUCT] being used in a minimalist workspace or home, hands interacting "
        "with the device showing scale, natural window light with soft fill, shallow depth of field on the product, "
        "neutral palette with a coffee cup or notebook nearby, over-shoulder angle, 6k resolution",
        "cluttered, messy, poor composition, bad lighting, awkward hands, unrealistic usage, cheap aesthetic, "
        "dated interior, unflattering angle",
        "4:3", ("electronics", "lifestyle", "usage", "modern", "workspace"),
    ),
    ImageTemplate(
        "tech-feature-exploded", "Tech Feature Breakdown", "electronics-tech",
        "Exploded view or detailed feature showcase of technology",
        "Technical product photography of [PRODUCT] as an exploded view or extreme close-up of internal components, "
        "parts suspended in organized floating composition on clean white or dark gray background, even diffused "
        "studio light, sharp macro focus, callout-ready layout, product launch quality, 8k resolution",
        "messy, confusing layout, poor focus, cluttered, unprofessional, low detail, blurry components, "
        "bad arrangement, cheap-looking",
        "16:9", ("electronics", "technical", "exploded-view", "features", "macro"),
    ),
    # food & beverage
    ImageTemplate(
        "food-overhead-styling", "Food Styling Overhead", "food-beverage",
        "Beautifully styled food photography from overhead angle",
        "Professional food photography of [PRODUCT] shot from directly overhead on rustic wood or marble, fresh "
        "ingredients and vintage props around the dish, soft side window light, garnishes and steam, rich vibrant "
        "colors, negative space for text overlay, editorial food magazine quality, 6k resolution",
        "unappetizing, artificial, plastic-looking, poor styling, harsh lighting, cold colors, messy, "
        "overcooked appearance, dull, flat lighting",
        "1:1", ("food", "overhead", "styling", "appetizing", "editorial"),
    ),
    ImageTemplate(
        "food-action-shot", "Food Action & Preparation", "food-beverage",
        "Dynamic food photography showing action or preparation",
        "Dynamic food action photography of [PRODUCT] mid-preparation, pouring, cutting or serving, sauce drizzling "
        "or steam rising frozen at high shutter speed, dramatic side or back lighting, chef hands in frame, kitchen "
        "softly blurred behind, warm palette, food advertisement quality, 8k resolution",
        "static, boring, poor timing, blurry subject, harsh lighting, unappetizing, messy without purpose, "
        "cheap-looking, cold atmosphere",
        "4:3", ("food", "action", "dynamic", "preparation", "movement"),
    ),
    ImageTemplate(
        "beverage-refreshing", "Refreshing Beverage Shot", "food-beverage",
        "Cold beverage with condensation and ice, looking refreshing",
        "Professional beverage photography of ice-cold [PRODUCT] in a crystal-clear glass with condensation "
        "droplets, ice cubes catching light, gradient background, backlighting that makes the liquid glow, visible "
        "carbonation, mint or citrus garnish, macro detail on every droplet, 6k resolution",
        "flat, boring, poor condensation, unrealistic, bad lighting, cloudy glass, unappetizing color, no sparkle, "
        "cheap-looking, poorly styled",
        "4:5", ("beverage", "drink", "refreshing", "ice", "commercial"),
    ),
    # beauty & cosmetics
    ImageTemplate(
        "beauty-product-luxury", "Luxury Beauty Product Shot", "beauty-cosmetics",
        "High-end cosmetics product with luxurious presentation",
        "Luxury beauty product photography of [PRODUCT] on marble, silk or metallic platform, gradient lighting from "
        "soft pink to gold, label and packaging clearly visible, flowers or crystals adding context, soft bokeh "
        "background, flawless presentation, glossy magazine editorial quality, 8k resolution",
        "cheap, cluttered, poor lighting, scratched product, messy, boring composition, harsh shadows, color cast, "
        "low quality, amateur",
        "4:5", ("beauty", "cosmetics", "luxury", "premium", "elegant"),
    ),
    ImageTemplate(
        "beauty-swatch-texture", "Beauty Product Swatch & Texture", "beauty-cosmetics",
        "Product swatches showing colors and textures",
        "Professional beauty swatch photography of [PRODUCT] on flawless skin or clean surface, macro detail of "
        "shimmer, pigment or cream texture, soft diffused ring light, true-to-life color, neutral background with "
        "packaging out of focus behind, editorial cosmetics quality, 6k resolution",
        "uneven application, poor skin texture, harsh lighting, color inaccurate, blotchy, messy, unprofessional, "
        "unflattering, low quality, blurry",
        "1:1", ("beauty", "cosmetics", "swatch", "texture", "macro"),
    ),
    ImageTemplate(
        "beauty-lifestyle-application", "Beauty Lifestyle Application", "beauty-cosmetics",
        "Person applying or using beauty product in lifestyle setting",
        "Lifestyle beauty photography of a person applying [PRODUCT] at a modern bathroom vanity, soft natural "
        "window light, mirror and products suggesting a routine, hands applying the product in sharp focus, genuine "
        "expression, warm palette, 50mm lens with shallow depth of field, 6k resolution",
        "staged, artificial, poor lighting, messy background, unflattering angle, fake expressions, cluttered, "
        "unprofessional, harsh shadows, unrealistic",
        "4:5", ("beauty", "lifestyle", "application", "routine", "authentic"),
    ),
    # home & living
    ImageTemplate(
        "home-interior-styled", "Home Décor Interior Styled", "home-living",
        "Home products styled in beautiful interior setting",
        "Interior design photography featuring [PRODUCT] styled in a modern home, natural light from large windows "
        "with warm ambient lamps, complementary furniture and décor, product integrated naturally into the room, "
        "neutral palette with pops of color, uncluttered space, home magazine quality, 8k resolution",
        "cluttered, messy, poor lighting, dated décor, awkward arrangement, cheap-looking, unflattering angle, "
        "overexposed windows, color cast",
        "4:3", ("home", "interior", "styled", "lifestyle", "décor"),
    ),
    ImageTemplate(
        "home-product-detail", "Home Product Close-Up Detail", "home-living",
        "Close-up showing textures and quality of home products",
        "Macro product photography of [PRODUCT] showing texture and craftsmanship in soft window light, weave of "
        "fabric, grain of wood or surface finish, shallow depth of field with dreamy bokeh, warm color grading, "
        "premium home goods aesthetic, 6k resolution",
        "low quality, poor focus, harsh lighting, cheap appearance, boring composition, flat lighting, no depth, "
        "texture not visible, amateur",
        "1:1", ("home", "close-up", "detail", "texture", "craftsmanship"),
    ),
    # temu
    ImageTemplate(
        "temu-flash-sale", "Temu Flash Sale Style", "platform-temu",
        "Vibrant, high-energy flash sale advertisement Temu-style",
        "High-energy Temu marketplace photography of [PRODUCT] on a bright yellow to red gradient, product from "
        "several angles in a collage, bold discount badges and starbursts in yellow and red, saturated colors, "
        "space for countdown timers and promo copy, urgent mega-sale style, 4k resolution",
        "subtle, muted colors, minimal, elegant, single product, quiet composition, premium feel, understated, "
        "sophisticated",
        "1:1", ("temu", "flash-sale", "discount", "vibrant", "urgency"),
    ),
    ImageTemplate(
        "temu-value-pack", "Temu Value Pack Bundle", "platform-temu",
        "Multiple products showing bundle value and variety",
        "Temu style bundle photography of multiple [PRODUCT] items or variations in an organized grid, bright white "
        "or pastel background, every item evenly lit and in sharp focus, arranged by color or size, space for "
        "\"set of X\" overlays, abundant value presentation, 4k resolution",
        "single product, messy arrangement, poor lighting, shadows obscuring products, confusing layout, "
        "premium boutique feel, artistic composition",
        "1:1", ("temu", "bundle", "value", "multiple-products", "quantity"),
    ),
    # instagram
    ImageTemplate(
        "instagram-aesthetic-feed", "Instagram Aesthetic Feed Style", "platform-instagram",
        "Clean, minimalist Instagram-worthy product photo",
        "Instagram aesthetic product photography of [PRODUCT], clean minimalist composition on soft beige, white or "
        "pastel background, natural window light with gentle shadows, rule of thirds placement, curated lifestyle "
        "props, cohesive muted palette, influencer feed quality, 4k resolution",
        "cluttered, harsh lighting, busy background, oversaturated, chaotic, no cohesion, dated aesthetic, "
        "amateur, poorly composed, unbalanced",
        "4:5", ("instagram", "aesthetic", "minimal", "influencer", "feed"),
    ),
    ImageTemplate(
        "instagram-ugc-authentic", "Instagram UGC Authentic Style", "platform-instagram",
        "User-generated content style looking genuine and relatable",
        "Authentic user-generated content photo of [PRODUCT] in a real setting like home, café or outdoors, natural "
        "light without a professional setup, product used casually, slight imperfections that feel genuine, "
        "smartphone camera look, relatable everyday moment, vertical framing",
        "overly polished, studio setup, professional lighting, staged, artificial, stock photo feel, too perfect, "
        "corporate, unrelatable, sterile",
        "9:16", ("instagram", "ugc", "authentic", "relatable", "candid"),
    ),
    # tiktok
    ImageTemplate(
        "tiktok-trending-hook", "TikTok Trending Hook Frame", "platform-tiktok",
        "Attention-grabbing first frame for TikTok videos",
        "TikTok style first frame featuring [PRODUCT] with a bold visual hook, product at an unexpected angle or in "
        "a surprising context, vibrant colors optimized for phone screens, text-ready negative space at top and "
        "bottom, energetic Gen-Z aesthetic, vertical 9:16 composition",
        "boring, static, corporate, overly professional, horizontal format, slow-paced feel, traditional "
        "advertising, stiff, formal, dated aesthetic",
        "9:16", ("tiktok", "trending", "hook", "attention-grabbing", "vertical"),
    ),
    ImageTemplate(
        "tiktok-before-after", "TikTok Before/After Split", "platform-tiktok",
        "Before and after comparison style popular on TikTok",
        "TikTok before-after split screen showing [PRODUCT] results, frame divided into two halves with a clear "
        "contrast between states, dramatic but believable difference, both sides equally lit, clean dividing line, "
        "authentic results feel, vertical 9:16 composition",
        "unclear comparison, poorly matched lighting, confusing layout, subtle difference, overly professional, "
        "unrelatable, boring, no contrast",
        "9:16", ("tiktok", "before-after", "comparison", "transformation", "results"),
    ),
    # shopee
    ImageTemplate(
        "shopee-orange-promo", "Shopee Orange Promotional Style", "platform-shopee",
        "Shopee-style promotional image with orange branding",
        "Shopee marketplace promotional photography of [PRODUCT] with vibrant orange and white color scheme, "
        "product centered on clean white or light background, bright cheerful lighting with slight shadow, "
        "variations in a grid where useful, space for orange promo badges and price tags, 4k resolution",
        "muted colors, dark, minimal, subtle, premium boutique feel, artistic, complex composition, brand colors "
        "other than orange",
        "1:1", ("shopee", "orange", "promotional", "marketplace", "deals"),
    ),
    ImageTemplate(
        "shopee-lifestyle-value", "Shopee Lifestyle Value Shot", "platform-shopee",
        "Affordable lifestyle product shot for Shopee marketplace",
        "Shopee lifestyle photography of [PRODUCT] in a relatable home or daily use setting, clean bright natural "
        "light, accessible everyday aesthetic rather than luxury, complementary everyday items, Southeast Asian "
        "consumer styling, practical value messaging, 4k resolution",
        "luxury, expensive-looking, western-only aesthetic, dark moody, artistic, impractical, overly styled, "
        "boutique feel, complex",
        "1:1", ("shopee", "lifestyle", "value", "affordable", "practical"),
    ),
    # amazon
    ImageTemplate(
        "amazon-main-image", "Amazon Main Image White BG", "platform-amazon",
        "Amazon-compliant main product image on pure white background",
        "Amazon main image photography of [PRODUCT] on pure white RGB 255,255,255 background filling 85% of the "
        "frame, studio lighting with no harsh shadows, straight-on or slight angle, sharp focus across the whole "
        "product, color-accurate, no props, text or graphics, catalog compliant, 4k resolution",
        "props, lifestyle elements, text overlay, graphics, colored background, shadows, models, hands, "
        "reflections, multiple products, artistic composition",
        "1:1", ("amazon", "white-background", "product-only", "catalog", "compliant"),
    ),
    ImageTemplate(
        "amazon-infographic-features", "Amazon Infographic Feature Image", "platform-amazon",
        "Amazon lifestyle or infographic showing product features",
        "Amazon secondary image of [PRODUCT] highlighting features and benefits, lifestyle context or "
        "infographic-ready layout with clear space for callouts, dimensions and benefits readable from the "
        "composition, clean professional lighting, 4k resolution",
        "confusing, cluttered, poor feature visibility, dark, messy, unclear benefits, unprofessional, text "
        "already on image, low quality, blurry",
        "1:1", ("amazon", "infographic", "features", "lifestyle", "benefits"),
    ),
    # pinterest
    ImageTemplate(
        "pinterest-inspirational-pin", "Pinterest Inspirational Vertical Pin", "platform-pinterest",
        "Tall vertical pin with inspirational lifestyle aesthetic",
        "Pinterest style vertical pin featuring [PRODUCT] in a beautifully styled inspirational scene, tall 2:3 "
        "composition, aspirational lifestyle that viewers want to save and recreate, warm inviting palette, dreamy "
        "natural light, space for a text overlay at top, 4k resolution",
        "horizontal, square, messy, chaotic, dark, uninspiring, boring, commercial feel, hard to replicate, "
        "overly complex, masculine-only appeal",
        "2:3", ("pinterest", "vertical", "inspirational", "saveable", "lifestyle"),
    ),
    ImageTemplate(
        "pinterest-diy-tutorial", "Pinterest DIY Tutorial Style", "platform-pinterest",
        "Step-by-step or how-to visual for Pinterest",
        "Pinterest tutorial photography of [PRODUCT] arranged as a step-by-step how-to, vertical 2:3 layout, clean "
        "overhead or flat lay composition, every element clearly visible under soft light, organized and easy to "
        "follow, space for step numbers, 4k resolution",
        "chaotic, unclear steps, confusing layout, poor lighting, hard to understand, messy, unprofessional, "
        "square format, horizontal",
        "2:3", ("pinterest", "diy", "tutorial", "how-to", "step-by-step"),
    ),
]

VIDEO_TEMPLATES: List[VideoTemplate] = [
    VideoTemplate(
        "fashion-catwalk-reveal", "Fashion Runway Reveal", "fashion-apparel",
        "Model walking showcasing clothing with movement",
        "Professional fashion video of a model confidently walking toward camera wearing [PRODUCT], minimalist "
        "studio or urban setting, smooth following camera, clothing flowing to show drape and fit, soft even "
        "lighting, editorial runway energy",
        "9:16", 5, ("fashion", "runway", "model", "movement", "editorial"),
    ),
    VideoTemplate(
        "fashion-360-spin", "Fashion Product 360° Spin", "fashion-apparel",
        "360-degree rotation showing clothing from all angles",
        "Clean product video of [PRODUCT] rotating 360 degrees on a mannequin or model, constant studio lighting, "
        "white or neutral seamless background, locked camera while the garment turns, every detail visible",
        "1:1", 5, ("fashion", "360", "rotation", "product-video", "ecommerce"),
    ),
    VideoTemplate(
        "tech-unboxing-reveal", "Tech Product Unboxing", "electronics-tech",
        "First-person unboxing experience revealing tech product",
        "Tech unboxing video of hands opening the package containing [PRODUCT], overhead or over-shoulder view, "
        "smooth reveal from the packaging, clean modern desk, good overhead lighting, satisfying premium unboxing",
        "9:16", 5, ("tech", "unboxing", "reveal", "first-person", "premium"),
    ),
    VideoTemplate(
        "tech-feature-demo", "Tech Feature Demonstration", "electronics-tech",
        "Quick demonstration of key product feature in use",
        "Tech demonstration video of [PRODUCT] key feature in action, hands using the device in a real scenario, "
        "modern well-lit environment, camera focused on the interaction, benefit clear from the action alone",
        "9:16", 4, ("tech", "demonstration", "features", "usage", "benefit"),
    ),
    VideoTemplate(
        "food-cooking-process", "Food Cooking Process", "food-beverage",
        "Quick cooking or preparation process video",
        "Food video of [PRODUCT] being prepared or cooked, overhead or side angle, ingredients added and mixed, "
        "skilled hands, steam and sizzle, warm inviting kitchen light, appetizing motion throughout",
        "16:9", 5, ("food", "cooking", "preparation", "process", "appetizing"),
    ),
    VideoTemplate(
        "beverage-pour-cinemagraph", "Beverage Pour & Fizz", "food-beverage",
        "Satisfying beverage pour with bubbles and movement",
        "Beverage video of [PRODUCT] poured into a glass, liquid flowing smoothly, rising bubbles, ice splashing, "
        "condensation catching light, backlit close-up highlighting the liquid, refreshing commercial look",
        "9:16", 4, ("beverage", "pour", "liquid", "refreshing", "commercial"),
    ),
    VideoTemplate(
        "beauty-application-demo", "Beauty Product Application", "beauty-cosmetics",
        "Close-up of makeup or skincare application",
        "Beauty video of [PRODUCT] being applied, extreme close-up on skin, smooth skilled applicator movement, "
        "texture and pigment clearly visible, soft flattering beauty lighting, satisfying application",
        "9:16", 4, ("beauty", "application", "makeup", "skincare", "demo"),
    ),
    VideoTemplate(
        "beauty-transformation-quick", "Beauty Quick Transformation", "beauty-cosmetics",
        "Fast before-after beauty transformation",
        "Beauty transformation video using [PRODUCT], natural before state transitioning to the result with a "
        "smooth transition or quick cut, dramatic but believable difference, face lit by ring light or window",
        "9:16", 5, ("beauty", "transformation", "before-after", "results", "dramatic"),
    ),
    VideoTemplate(
        "tiktok-fast-showcase", "TikTok Fast Product Showcase", "platform-tiktok",
        "Fast-paced TikTok-style product showcase",
        "TikTok style fast-paced video of [PRODUCT], quick cuts from different angles, hands demonstrating the "
        "product, authentic and not overly polished, vertical 9:16, ring light or natural light, everyday setting",
        "9:16", 4, ("tiktok", "fast-paced", "showcase", "authentic", "trending"),
    ),
    VideoTemplate(
        "tiktok-satisfying-moment", "TikTok Satisfying Moment", "platform-tiktok",
        "Oddly satisfying product moment for TikTok",
        "Oddly satisfying TikTok video of [PRODUCT], mesmerizing close-up of a detail or perfect fit, smooth "
        "movement, ASMR-friendly visual, simple clean composition, lighting focused on the satisfying element",
        "9:16", 3, ("tiktok", "satisfying", "asmr", "mesmerizing", "viral"),
    ),
    VideoTemplate(
        "instagram-reel-aesthetic", "Instagram Reel Aesthetic", "platform-instagram",
        "Aesthetic Instagram Reel-style product video",
        "Instagram Reel video of [PRODUCT] with a trendy visual style, vertical 9:16, smooth camera moves or "
        "transitions, cohesive color palette, soft natural light, aspirational yet achievable lifestyle setting",
        "9:16", 5, ("instagram", "reel", "aesthetic", "trendy", "influencer"),
    ),
    VideoTemplate(
        "instagram-boomerang-style", "Instagram Boomerang Loop", "platform-instagram",
        "Short looping boomerang-style product video",
        "Instagram boomerang loop of [PRODUCT] with smooth back-and-forth motion, simple repeating action that "
        "loops cleanly, close-up or medium shot, clean background, playful and engaging",
        "1:1", 3, ("instagram", "boomerang", "loop", "playful", "engaging"),
    ),
    VideoTemplate(
        "shopee-live-demo", "Shopee Live Demo Style", "platform-shopee",
        "Live selling demo-style product video",
        "Shopee live selling video demonstrating [PRODUCT], hands showing the product to camera as if explaining "
        "to a buyer, rotated to show every angle, features pointed out by gesture, bright even lighting with true "
        "colors, clean background",
        "9:16", 5, ("shopee", "live-selling", "demo", "features", "value"),
    ),
]

_BY_ID: Dict[str, Union[ImageTemplate, VideoTemplate]] = {
    **{t.id: t for t in IMAGE_TEMPLATES},
    **{t.id: t for t in VIDEO_TEMPLATES},
}


def all_categories() -> List[str]:
    return list(CATEGORY_LABELS)


def category_label(category: str) -> Optional[str]:
    return CATEGORY_LABELS.get(category)


def image_templates_by_category(category: str) -> List[ImageTemplate]:
    return [t for t in IMAGE_TEMPLATES if t.category == category]


def video_templates_by_category(category: str) -> List[VideoTemplate]:
    return [t for t in VIDEO_TEMPLATES if t.category == category]


def get_template(template_id: str) -> Optional[Union[ImageTemplate, VideoTemplate]]:
    return _BY_ID.get(template_id)


def fill_prompt(template: Union[ImageTemplate, VideoTemplate], product: str) -> str:
    """Substitute the product description into the template prompt."""
    return template.prompt.replace(PLACEHOLDER, product.strip())
