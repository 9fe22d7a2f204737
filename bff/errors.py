"""
Error type and exception handlers rendering every failure as `{"message"}`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, headers: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.headers = headers


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code, headers=headers)


def _field_label(loc: tuple) -> str:
    name = next((part for part in reversed(loc) if isinstance(part, str)), "")
    if not name or name == "body":
        return ""
    words = _CAMEL_BOUNDARY.sub(" ", name.replace("_", " ")).split()
    label = " ".join(words).lower()
    return label[:1].upper() + label[1:]


def first_validation_message(errors: list[dict[str, Any]]) -> str:
    """Message of the first validation issue, phrased for a form."""
    if not errors:
        return "Invalid request payload."
    first = errors[0]
    error_type = first.get("type", "")
    loc = tuple(first.get("loc") or ())
    if error_type in ("json_invalid", "model_attributes_type", "dict_type"):
        return "Invalid request body."

    label = _field_label(loc)
    if error_type == "missing":
        return f"{label} is required" if label else "Invalid request body."

    message = str(first.get("msg") or "Invalid request payload.")
    if message.startswith(_VALUE_ERROR_PREFIX):
        return message[len(_VALUE_ERROR_PREFIX):]
    if label:
        return f"{label}: {message}"
    return message


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
        return error_response(exc.status_code, exc.message, exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed."
        return error_response(exc.status_code, message, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(400, first_validation_message(exc.errors()))
