"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, Request, Response

from bff.auth import RequestAuth, require_auth
from bff.config import Settings, get_settings
from bff.proxy import fetch_from_backend, proxy_to_backend
from bff.upstream import (
    HttpUpstreamClient,
    InMemoryUpstreamClient,
    UpstreamClient,
    UpstreamResponse,
)

_upstream_client: UpstreamClient | None = None


def get_upstream_client() -> UpstreamClient:
    """
    Return a singleton upstream client so connections are pooled across requests.
    """
    global _upstream_client
    if _upstream_client:
        return _upstream_client

    settings = get_settings()
    if settings.use_in_memory_upstream:
        _upstream_client = InMemoryUpstreamClient()
    else:
        _upstream_client = HttpUpstreamClient(timeout=settings.request_timeout_seconds)
    return _upstream_client


@dataclass
class Backend:
    """The upstream as seen from one incoming request."""

    request: Request
    client: UpstreamClient
    settings: Settings
    token: Optional[str] = None

    def fetch(self, backend_path: str, **options: Any) -> UpstreamResponse:
        return fetch_from_backend(
            self.request,
            client=self.client,
            settings=self.settings,
            token=self.token,
            backend_path=backend_path,
            **options,
        )

    def proxy(self, backend_path: str, **options: Any) -> Response:
        return proxy_to_backend(
            self.request,
            client=self.client,
            settings=self.settings,
            token=self.token,
            backend_path=backend_path,
            **options,
        )


def get_backend(
    request: Request,
    auth: RequestAuth = Depends(require_auth),
    client: UpstreamClient = Depends(get_upstream_client),
    settings: Settings = Depends(get_settings),
) -> Backend:
    return Backend(request=request, client=client, settings=settings, token=auth.token)


def get_public_backend(
    request: Request,
    client: UpstreamClient = Depends(get_upstream_client),
    settings: Settings = Depends(get_settings),
) -> Backend:
    """Upstream access for unauthenticated pages; no token is forwarded."""
    return Backend(request=request, client=client, settings=settings)
