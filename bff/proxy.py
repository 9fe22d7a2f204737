"""
Forwarding requests to the upstream API and translating its responses.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urljoin, urlsplit

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from bff.config import Settings
from bff.errors import ApiError
from bff.upstream import UpstreamClient, UpstreamResponse, UpstreamUnavailableError
from dealership.normalize import JsonRecord, extract_rows

logger = logging.getLogger(__name__)

_NO_BODY_STATUSES = (204, 304)


def get_external_api_base_url(settings: Settings) -> str:
    return settings.external_api_url.strip()


def build_external_url(base_url: str, backend_path: str, query: str = "") -> Optional[str]:
    """Absolute upstream URL, or None when `base_url` is not an http(s) URL."""
    parts = urlsplit(base_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    url = urljoin(base_url, backend_path)
    if query:
        url = f"{url.split('?', 1)[0]}?{query}"
    return url


def build_forward_headers(
    request: Optional[Request], token: Optional[str], include_content_type: bool = False
) -> dict[str, str]:
    headers: dict[str, str] = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if request is not None:
        if include_content_type and request.headers.get("content-type"):
            headers["Content-Type"] = request.headers["content-type"]
        if request.headers.get("accept"):
            headers["Accept"] = request.headers["accept"]
    return headers


def fetch_from_backend(
    request: Optional[Request],
    *,
    client: UpstreamClient,
    settings: Settings,
    backend_path: str,
    method: str = "GET",
    include_query: bool = False,
    token: Optional[str] = None,
    json_body: Any = None,
    content: Optional[bytes] = None,
    files: Optional[dict] = None,
    headers: Optional[dict[str, str]] = None,
) -> UpstreamResponse:
    """
    Sends one request upstream.

    Raises ApiError(500) when the upstream base URL is unusable and
    ApiError(503) when the upstream cannot be reached. In development the
    messages carry the URL and the underlying reason.
    """
    query = request.url.query if include_query and request is not None else ""
    target_url = build_external_url(get_external_api_base_url(settings), backend_path, query)
    if target_url is None:
        raise ApiError(
            500,
            "Invalid EXTERNAL_API_URL. Use a full URL like http://localhost:5253."
            if settings.is_development
            else "Backend service is misconfigured.",
        )

    forward_headers = build_forward_headers(request, token, include_content_type=content is not None)
    if headers:
        forward_headers.update(headers)

    try:
        return client.request(
            method,
            target_url,
            headers=forward_headers,
            json_body=json_body,
            content=content,
            files=files,
            timeout=settings.request_timeout_seconds,
        )
    except UpstreamUnavailableError as exc:
        reason = str(exc).strip() or "Unknown connection error"
        raise ApiError(
            503,
            f"Unable to connect to backend service at {target_url}: {reason}"
            if settings.is_development
            else "Unable to connect to backend service.",
        ) from exc


def to_response(upstream: UpstreamResponse) -> Response:
    """Mirrors an upstream response: JSON re-serialized, anything else passed through."""
    if upstream.status_code in _NO_BODY_STATUSES:
        return Response(status_code=upstream.status_code)

    content_type = upstream.headers.get("content-type", "")
    if "application/json" in content_type.lower():
        payload = upstream.json()
        return JSONResponse(payload if payload is not None else {}, status_code=upstream.status_code)

    response = Response(content=upstream.content, status_code=upstream.status_code)
    if content_type:
        response.headers["Content-Type"] = content_type
    disposition = upstream.headers.get("content-disposition")
    if disposition:
        response.headers["Content-Disposition"] = disposition
    for cookie in upstream.set_cookies:
        response.headers.append("set-cookie", cookie)
    return response


def proxy_to_backend(request: Optional[Request], **options: Any) -> Response:
    return to_response(fetch_from_backend(request, **options))


def upstream_error(upstream: UpstreamResponse, fallback: str) -> ApiError:
    """ApiError carrying the upstream status and its message, if it sent one."""
    payload = upstream.json()
    message = fallback
    if isinstance(payload, dict):
        for key in ("message", "detail", "title"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                message = value
                break
    return ApiError(upstream.status_code, message)


def read_json_rows(upstream: UpstreamResponse, message: str) -> list[JsonRecord]:
    rows = extract_rows(upstream.json())
    if rows is None:
        logger.warning("Malformed upstream list (status %s)", upstream.status_code)
        raise ApiError(502, message)
    return rows


def read_json_object(upstream: UpstreamResponse, message: str) -> JsonRecord:
    payload = upstream.json()
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    if not isinstance(payload, dict):
        logger.warning("Malformed upstream object (status %s)", upstream.status_code)
        raise ApiError(502, message)
    return payload
