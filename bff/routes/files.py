from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from starlette.concurrency import run_in_threadpool

from bff.config import Settings
from bff.dependencies import Backend, get_backend
from bff.errors import ApiError
from bff.proxy import build_external_url, get_external_api_base_url
from bff.upstream import UpstreamUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()

_ABSOLUTE_HTTP = re.compile(r"^https?://", re.IGNORECASE)
MEDIA_CACHE_CONTROL = "private, max-age=3600"


def resolve_media_url(source: str, settings: Settings) -> Optional[str]:
    """Absolute http(s) sources are used as-is; anything else is an upstream path."""
    value = source.strip()
    if not value:
        return None
    if _ABSOLUTE_HTTP.match(value):
        return value if urlsplit(value).netloc else None
    path = value if value.startswith("/") else f"/{value}"
    return build_external_url(get_external_api_base_url(settings), path)


@router.post("/upload")
async def upload_file(file: UploadFile = File(...), backend: Backend = Depends(get_backend)):
    settings = backend.settings
    if file.content_type not in settings.upload_allowed_types:
        raise ApiError(400, "Only JPEG, PNG, or WebP images are allowed.")
    data = await file.read()
    if len(data) > settings.upload_max_bytes:
        raise ApiError(400, "Image size must be 2MB or less.")

    files = {"file": (file.filename or "upload", data, file.content_type)}
    return await run_in_threadpool(backend.proxy, "/api/upload", method="POST", files=files)


@router.get("/media")
def get_media(
    src: Optional[str] = Query(None),
    backend: Backend = Depends(get_backend),
):
    """Fetches an image for the browser so it never talks to the upstream directly."""
    if not src:
        raise ApiError(400, "Missing src query parameter.")
    target_url = resolve_media_url(src, backend.settings)
    if not target_url:
        raise ApiError(400, "Invalid media source.")

    try:
        upstream = backend.client.request(
            "GET", target_url, timeout=backend.settings.request_timeout_seconds
        )
    except UpstreamUnavailableError as exc:
        raise ApiError(503, "Unable to fetch media.") from exc
    if not upstream.ok:
        raise ApiError(upstream.status_code, f"Failed to load media ({upstream.status_code}).")

    return Response(
        content=upstream.content,
        media_type=upstream.headers.get("content-type") or "application/octet-stream",
        headers={"Cache-Control": MEDIA_CACHE_CONTROL},
    )
