from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from bff.auth import is_secure_request, parse_user_from_jwt
from bff.config import Settings, get_settings
from bff.dependencies import Backend, get_public_backend
from bff.errors import ApiError
from bff.proxy import upstream_error
from bff.schemas import LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/login")
def login(
    payload: LoginRequest,
    request: Request,
    backend: Backend = Depends(get_public_backend),
    settings: Settings = Depends(get_settings),
):
    """
    Exchanges credentials for an upstream token and stores it in an
    httpOnly session cookie. The token is also returned for API clients.
    """
    try:
        upstream = backend.fetch(
            "/api/auth/login",
            method="POST",
            json_body={"username": payload.username, "password": payload.password},
        )
    except ApiError as exc:
        if exc.status_code != 503:
            raise
        raise ApiError(
            503, "Unable to connect to authentication service. Please try again later."
        ) from exc

    if not upstream.ok:
        raise upstream_error(upstream, f"Authentication failed ({upstream.status_code})")

    data = upstream.json()
    token = data.get("token") if isinstance(data, dict) else None
    if not isinstance(token, str) or not token:
        raise ApiError(500, "Invalid response from authentication service")

    response = JSONResponse({"token": token})
    response.set_cookie(
        settings.auth_cookie_key,
        token,
        max_age=settings.auth_cookie_max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=is_secure_request(request),
    )
    logger.info("Signed in %s", parse_user_from_jwt(token).username)
    return response


@router.post("/auth/logout")
def logout(request: Request, settings: Settings = Depends(get_settings)):
    response = JSONResponse({"message": "Logged out"})
    response.set_cookie(
        settings.auth_cookie_key,
        "",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
        secure=is_secure_request(request),
    )
    return response
