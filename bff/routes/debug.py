from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from bff.base_url import resolve_internal_api_base_url_from_headers
from bff.config import Settings, get_settings
from bff.proxy import get_external_api_base_url

router = APIRouter()


@router.get("/_debug/backend")
def debug_backend(request: Request, settings: Settings = Depends(get_settings)):
    """Which upstream this instance talks to, and its own origin as the caller sees it. Carries no secrets."""
    return {
        "backendUrl": get_external_api_base_url(settings),
        "internalApiBaseUrl": resolve_internal_api_base_url_from_headers(request.headers),
        "nodeEnv": settings.environment,
    }
