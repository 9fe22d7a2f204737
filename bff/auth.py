"""
Request authentication: token extraction and JWT claim reading.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import jwt
from fastapi import Depends, Request

from bff.config import Settings, get_settings
from bff.errors import ApiError
from dealership.normalize import first_defined

logger = logging.getLogger(__name__)

ROLE_CLAIM = "http://schemas.microsoft.com/ws/2008/06/identity/claims/role"
DEFAULT_USERNAME = "admin"
DEFAULT_ROLE = "Admin"


@dataclass
class JwtUser:
    username: str
    role: str


@dataclass
class RequestAuth:
    username: str
    role: str
    token: str


def _claims_to_user(claims: dict[str, Any]) -> JwtUser:
    username = first_defined(
        claims.get("unique_name"),
        claims.get("username"),
        claims.get("name"),
        claims.get("sub"),
    )
    role = first_defined(claims.get(ROLE_CLAIM), claims.get("role"))
    return JwtUser(
        username=username if isinstance(username, str) and username.strip() else DEFAULT_USERNAME,
        role=role if isinstance(role, str) and role.strip() else DEFAULT_ROLE,
    )


def parse_user_from_jwt(token: str) -> JwtUser:
    """
    Reads the user from the token's claims without verifying it.

    The upstream issues and verifies tokens; the BFF only needs a display
    name and role. Unreadable tokens yield the default admin user.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return JwtUser(DEFAULT_USERNAME, DEFAULT_ROLE)
    return _claims_to_user(claims)


def verify_token(token: str, secret: str) -> Optional[JwtUser]:
    try:
        claims = jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.PyJWTError as exc:
        logger.info("Token verification failed: %s", exc)
        return None
    return _claims_to_user(claims)


def extract_token(request: Request, settings: Settings) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie."""
    header = request.headers.get("authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return request.cookies.get(settings.auth_cookie_key) or None


def require_auth(request: Request, settings: Settings = Depends(get_settings)) -> RequestAuth:
    token = extract_token(request, settings)
    if not token:
        raise ApiError(401, "Unauthorized")

    if settings.jwt_secret:
        user = verify_token(token, settings.jwt_secret)
        if user is None:
            raise ApiError(401, "Unauthorized")
    else:
        user = parse_user_from_jwt(token)
    return RequestAuth(username=user.username, role=user.role, token=token)


def is_secure_request(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    forwarded = request.headers.get("x-forwarded-proto", "")
    return forwarded.split(",")[0].strip().lower() == "https"
