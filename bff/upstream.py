"""
HTTP client abstraction for the upstream dealership API and in-memory testing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from http.cookiejar import DefaultCookiePolicy
from typing import Any, Optional, Protocol, Union
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15  # seconds


class UpstreamUnavailableError(Exception):
    """The upstream could not be reached (connection refused, DNS, timeout)."""


@dataclass
class UpstreamResponse:
    status_code: int
    content: bytes = b""
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    set_cookies: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @classmethod
    def from_json(
        cls, payload: Any, status_code: int = 200, headers: Optional[dict] = None
    ) -> "UpstreamResponse":
        merged = {"Content-Type": "application/json; charset=utf-8", **(headers or {})}
        return cls(
            status_code=status_code,
            content=json.dumps(payload).encode("utf-8"),
            headers=CaseInsensitiveDict(merged),
        )

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decoded body, or None when empty or not JSON."""
        if not self.content:
            return None
        try:
            return json.loads(self.content)
        except ValueError:
            return None


class UpstreamClient(Protocol):
    """Defines the operations the BFF needs from the upstream API."""

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict] = None,
        params: Optional[dict] = None,
        content: Optional[bytes] = None,
        json_body: Any = None,
        files: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> UpstreamResponse:
        ...


class HttpUpstreamClient:
    """
    `requests`-backed upstream client.

    The session pools connections but never stores cookies, so one caller's
    upstream session cannot leak into another's request.
    """

    def __init__(self, timeout: float = REQUEST_TIMEOUT, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict] = None,
        params: Optional[dict] = None,
        content: Optional[bytes] = None,
        json_body: Any = None,
        files: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> UpstreamResponse:
        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                params=params,
                data=content,
                json=json_body,
                files=files,
                timeout=timeout or self.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            logger.warning("Upstream %s %s failed: %s", method, url, exc)
            raise UpstreamUnavailableError(str(exc)) from exc

        raw_headers = getattr(response.raw, "headers", None)
        set_cookies = list(raw_headers.getlist("Set-Cookie")) if raw_headers is not None else []
        return UpstreamResponse(
            status_code=response.status_code,
            content=response.content,
            headers=CaseInsensitiveDict(response.headers),
            set_cookies=set_cookies,
        )


@dataclass
class UpstreamCall:
    method: str
    url: str
    headers: dict
    params: Optional[dict]
    content: Optional[bytes]
    json_body: Any
    files: Optional[dict]

    @property
    def path(self) -> str:
        return urlsplit(self.url).path


ScriptedResponse = Union[UpstreamResponse, Exception]


class InMemoryUpstreamClient:
    """
    Test double for the upstream API.

    Responses are scripted per (method, path). Several scripted responses
    for the same route are returned in order; the last one repeats. An
    exception instance is raised instead of returned. Unscripted routes
    answer 404.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self._routes: dict[tuple[str, str], list[ScriptedResponse]] = {}
        self.calls: list[UpstreamCall] = []

    def add(self, method: str, path: str, *responses: ScriptedResponse) -> None:
        self._routes.setdefault((method.upper(), path), []).extend(responses)

    def add_json(self, method: str, path: str, payload: Any, status_code: int = 200) -> None:
        self.add(method, path, UpstreamResponse.from_json(payload, status_code))

    def calls_to(self, method: str, path: str) -> list[UpstreamCall]:
        return [
            call
            for call in self.calls
            if call.method == method.upper() and call.path == path
        ]

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict] = None,
        params: Optional[dict] = None,
        content: Optional[bytes] = None,
        json_body: Any = None,
        files: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> UpstreamResponse:
        call = UpstreamCall(
            method=method.upper(),
            url=url,
            headers=dict(headers or {}),
            params=params,
            content=content,
            json_body=json_body,
            files=files,
        )
        self.calls.append(call)

        queue = self._routes.get((call.method, call.path))
        if not queue:
            return UpstreamResponse.from_json({"message": "Not Found"}, 404)
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response
