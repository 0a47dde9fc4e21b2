"""Proxy for profile pictures hosted by the OAuth providers."""

from typing import Optional
from urllib.parse import urlparse

import httpx
import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from adminpanel.core.exceptions import AppError, ForbiddenException, ValidationException

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Avatar"])

ALLOWED_AVATAR_HOSTS = {
    "lh3.googleusercontent.com",
    "avatars.githubusercontent.com",
    "i.pravatar.cc",
    "images.unsplash.com",
    "via.placeholder.com",
}


def get_avatar_transport() -> Optional[httpx.AsyncBaseTransport]:
    return None


@router.get("/avatar")
async def avatar_proxy(
    url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_avatar_transport),
):
    if not url:
        raise ValidationException("Missing URL parameter")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or parsed.hostname not in ALLOWED_AVATAR_HOSTS:
        raise ForbiddenException("Domain not allowed", {"host": parsed.hostname})

    try:
        async with httpx.AsyncClient(timeout=10, transport=transport) as client:
            upstream = await client.get(
                url, headers={"User-Agent": "Mozilla/5.0 (compatible; Avatar Proxy)"}
            )
    except httpx.HTTPError as e:
        logger.warning("Avatar fetch failed", url=url, error=str(e))
        raise AppError("Failed to fetch image", 502) from e

    if upstream.status_code >= 400:
        raise AppError("Failed to fetch image", upstream.status_code)

    content_type = upstream.headers.get("content-type", "")
    if not content_type.startswith("image/"):
        raise ValidationException("Not an image")

    return Response(
        content=upstream.content,
        media_type=content_type,
        headers={"Cache-Control": "public, max-age=3600"},
    )
