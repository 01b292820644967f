"""
Shared request helpers for provider adapters.

Every adapter goes through ``send`` so that non-2xx answers become
``ProviderError`` with the provider's own message, and timeouts become
``ProviderTimeout``.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from ..config import PROVIDER_TIMEOUT_S
from ..errors import ValidationFailed
from .errors import SERVICE_LABELS, ProviderError, ProviderTimeout

logger = logging.getLogger("avatarhub.providers")


def error_message(resp: httpx.Response) -> str:
    """Best-effort human message from a provider error body."""
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip()[:500] or f"HTTP {resp.status_code}"

    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            msg = err.get("message") or err.get("msg")
            if msg:
                return str(msg)
        if isinstance(err, str) and err:
            return err
        detail = body.get("detail")
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("status")
            if msg:
                return str(msg)
        for field in ("message", "msg", "detail"):
            if body.get(field):
                return str(body[field])
    return f"HTTP {resp.status_code}"


async def send(
    service: str,
    method: str,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    json: Any = None,
    data: Optional[Dict[str, Any]] = None,
    files: Any = None,
    timeout: float = PROVIDER_TIMEOUT_S,
    allow_status: tuple = (),
) -> httpx.Response:
    """Issue one request. Statuses in ``allow_status`` are returned instead of raised."""
    label = SERVICE_LABELS.get(service, service)
    logger.info("%s %s %s", label, method, url)
    kwargs: Dict[str, Any] = {"headers": headers or {}}
    if params:
        kwargs["params"] = params

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            if method == "GET":
                resp = await client.get(url, **kwargs)
            elif method == "DELETE":
                resp = await client.delete(url, **kwargs)
            else:
                if json is not None:
                    kwargs["json"] = json
                if data is not None:
                    kwargs["data"] = data
                if files is not None:
                    kwargs["files"] = files
                resp = await client.post(url, **kwargs)
    except httpx.TimeoutException as exc:
        raise ProviderTimeout(f"{label} request timed out after {timeout:.0f}s") from exc
    except httpx.HTTPError as exc:
        raise ProviderError(service, f"{label} is unreachable: {exc}") from exc

    if resp.status_code >= 400 and resp.status_code not in allow_status:
        message = error_message(resp)
        logger.warning("%s error %s: %s", label, resp.status_code, message)
        raise ProviderError(
            service,
            f"{label} API error ({resp.status_code}): {message}",
            upstream_status=resp.status_code,
            body=message,
        )
    return resp


def json_body(service: str, resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        label = SERVICE_LABELS.get(service, service)
        raise ProviderError(service, f"{label} returned a non-JSON response") from exc


async def download(url: str, *, timeout: float = PROVIDER_TIMEOUT_S) -> httpx.Response:
    """Fetch a remote asset (generated image/video). Raises ProviderError on failure."""
    return await send("download", "GET", url, timeout=timeout)


# ---------------------------------------------------------------------------
# User-supplied URLs
# ---------------------------------------------------------------------------

async def _resolve(host: str) -> List[str]:
    infos = await asyncio.get_running_loop().getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def _is_internal(address: str) -> bool:
    ip = ipaddress.ip_address(address.split("%", 1)[0])
    mapped = getattr(ip, "ipv4_mapped", None)
    if mapped is not None:
        ip = mapped
    return (
        ip.is_private or ip.is_loopback or ip.is_link_local
        or ip.is_reserved or ip.is_multicast or ip.is_unspecified
    )


async def ensure_public_url(url: str) -> None:
    """400 unless ``url`` is http(s) and every address of its host is public.

    Call before the server downloads a URL that came from a client.
    """
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if parsed.scheme not in ("http", "https") or not host:
        raise ValidationFailed("Only http and https URLs are allowed")
    if host == "localhost" or host.endswith(".localhost"):
        raise ValidationFailed(f"URL host is not allowed: {host}")

    try:
        addresses = [str(ipaddress.ip_address(host))]
    except ValueError:
        try:
            addresses = await _resolve(host)
        except OSError as exc:
            raise ValidationFailed(f"Could not resolve host: {host}") from exc

    if not addresses or any(_is_internal(a) for a in addresses):
        logger.warning("Refused fetch of internal URL %s", url)
        raise ValidationFailed(f"URL host is not allowed: {host}")
