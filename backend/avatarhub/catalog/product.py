"""
Product photo analysis and prompt customisation.

A vision model describes the uploaded product; the description is spliced
into a generic advertising prompt so generated ads show the actual item.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from pydantic import BaseModel, Field

from ..config import VISION_MODEL
from ..errors import AvatarHubError
from ..providers import openai

logger = logging.getLogger("avatarhub.catalog.product")

ANALYSIS_INSTRUCTIONS = (
    "You are a product photographer's assistant. Look at this product photo and answer with a JSON object "
    "with keys: productName (short noun phrase), category, keyFeatures (array of up to 5 short phrases), "
    "colors (array), materials (array, may be empty), style (short phrase), detailedDescription "
    "(two sentences suitable for an advertising prompt)."
)


class ProductAnalysis(BaseModel):
    productName: str = "product"
    category: str = "general"
    keyFeatures: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    materials: Optional[List[str]] = None
    style: Optional[str] = None
    detailedDescription: str = "A quality product"


def generic_analysis() -> ProductAnalysis:
    return ProductAnalysis(
        productName="product",
        category="general",
        keyFeatures=["quality design", "practical functionality", "attractive appearance"],
        colors=["natural colors"],
        detailedDescription="A quality product with practical features and attractive design, suitable for everyday use.",
    )


async def analyze_product_image(api_key: str, image: str) -> ProductAnalysis:
    """Vision analysis of a product photo (URL or data URL). Falls back to a generic analysis."""
    try:
        raw = await openai.analyze_image(api_key, image, ANALYSIS_INSTRUCTIONS, model=VISION_MODEL, max_tokens=600)
    except AvatarHubError as exc:
        logger.warning("Product analysis failed, using generic analysis: %s", exc)
        return generic_analysis()

    return ProductAnalysis(
        productName=raw.get("productName") or "product",
        category=raw.get("category") or "general",
        keyFeatures=[str(x) for x in raw.get("keyFeatures") or []],
        colors=[str(x) for x in raw.get("colors") or []],
        materials=[str(x) for x in raw.get("materials")] if raw.get("materials") else None,
        style=raw.get("style") or None,
        detailedDescription=raw.get("detailedDescription") or "A quality product",
    )


def customize_prompt_with_product(base_prompt: str, analysis: ProductAnalysis) -> str:
    """Replace generic "product" wording in a style prompt with the analysed item."""
    name = analysis.productName
    description = name
    if analysis.colors:
        description += f" in {' and '.join(analysis.colors)} colors"
    if analysis.materials:
        description += f" made of {' and '.join(analysis.materials)}"

    customized = re.sub(r"this product", f"this {name}", base_prompt, flags=re.IGNORECASE)
    customized = re.sub(r"the product", f"the {name}", customized, flags=re.IGNORECASE)
    customized = re.sub(r"product", lambda _m: description, customized, flags=re.IGNORECASE)

    if analysis.keyFeatures and "features" in customized:
        highlight = f"features highlighting {', '.join(analysis.keyFeatures[:3])}"
        customized = re.sub(r"features", lambda _m: highlight, customized, count=1, flags=re.IGNORECASE)
    return customized
