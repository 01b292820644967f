"""
Catalog endpoints (read-only, no auth) under ``/v1/catalog``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from . import advertising, heygen, kie, templates

router = APIRouter(prefix="/v1/catalog", tags=["catalog"])


@router.get("/kie")
def list_kie_services(type: Optional[str] = Query(default=None, pattern="^(image|video|music)$")):
    services = kie.services_by_type(type) if type else kie.ALL_KIE_SERVICES
    return {"success": True, "services": [s.to_dict() for s in services]}


@router.get("/kie/{service_id}")
def get_kie_service(service_id: str):
    service = kie.get_service(service_id)
    if not service:
        raise HTTPException(404, f"Unknown KIE service: {service_id}")
    return {"success": True, "service": service.to_dict()}


@router.get("/kie/{service_id}/cost")
def get_kie_cost(service_id: str, quantity: int = Query(default=1, ge=1, le=100)):
    if not kie.get_service(service_id):
        raise HTTPException(404, f"Unknown KIE service: {service_id}")
    cost = kie.calculate_cost(service_id, quantity)
    return {"success": True, **cost, "display": kie.format_cost(cost["credits"], cost["usd"])}


@router.get("/heygen")
def get_heygen_options():
    return {"success": True, **heygen.heygen_options()}


@router.get("/advertising")
def list_advertising_styles(platform: Optional[str] = None, popular: bool = False):
    if platform:
        styles = advertising.styles_by_platform(platform)
    elif popular:
        styles = advertising.popular_styles()
    else:
        styles = advertising.ADVERTISING_STYLES
    return {
        "success": True,
        "platforms": advertising.all_platforms(),
        "styles": [s.to_dict() for s in styles],
    }


@router.get("/advertising/video")
def list_video_series(popular: bool = False):
    platforms = [p for p in advertising.VIDEO_PLATFORM_SERIES if p["popular"] or not popular]
    return {"success": True, "platforms": platforms}


@router.get("/advertising/video/{platform_id}")
def get_video_series(platform_id: str):
    series = advertising.video_series(platform_id)
    if not series:
        raise HTTPException(404, f"Unknown video platform: {platform_id}")
    return {"success": True, "series": series}


@router.get("/templates")
def list_templates(
    kind: Optional[str] = Query(default=None, pattern="^(image|video)$"),
    category: Optional[str] = None,
):
    if category and templates.category_label(category) is None:
        raise HTTPException(400, f"Unknown template category: {category}")
    result = {
        "success": True,
        "categories": [{"id": c, "label": templates.category_label(c)} for c in templates.all_categories()],
    }
    if kind != "video":
        image = templates.image_templates_by_category(category) if category else templates.IMAGE_TEMPLATES
        result["image_templates"] = [t.to_dict() for t in image]
    if kind != "image":
        video = templates.video_templates_by_category(category) if category else templates.VIDEO_TEMPLATES
        result["video_templates"] = [t.to_dict() for t in video]
    return result


@router.get("/templates/{template_id}")
def get_template(template_id: str, product: Optional[str] = Query(default=None, max_length=500)):
    template = templates.get_template(template_id)
    if not template:
        raise HTTPException(404, f"Unknown template: {template_id}")
    data = template.to_dict()
    if product and product.strip():
        data["prompt"] = templates.fill_prompt(template, product)
    return {"success": True, "template": data}
