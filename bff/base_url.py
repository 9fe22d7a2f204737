from __future__ import annotations

from typing import Mapping, Optional


def _first_header_value(raw_value: Optional[str]) -> Optional[str]:
    if not raw_value:
        return None
    first = raw_value.split(",")[0].strip()
    return first or None


def resolve_internal_api_base_url_from_headers(headers: Mapping[str, str]) -> Optional[str]:
    """
    Public origin of this service as seen by the caller, honouring proxy
    headers. Reported by the debug endpoint.
    """
    host = _first_header_value(headers.get("x-forwarded-host")) or _first_header_value(
        headers.get("host")
    )
    if not host:
        return None

    protocol = _first_header_value(headers.get("x-forwarded-proto"))
    if not protocol:
        is_local = "localhost" in host or host.startswith("127.0.0.1")
        protocol = "http" if is_local else "https"
    return f"{protocol}://{host}"
