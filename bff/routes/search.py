from __future__ import annotations

from fastapi import APIRouter, Depends

from bff.dependencies import Backend, get_backend
from bff.proxy import read_json_rows, to_response
from dealership.json_utils import to_json_dict
from dealership.normalize import to_search_result

router = APIRouter()


@router.get("/search")
def search(backend: Backend = Depends(get_backend)):
    upstream = backend.fetch("/api/search", include_query=True)
    if not upstream.ok:
        return to_response(upstream)
    rows = read_json_rows(upstream, "Invalid search response from backend service.")
    return to_json_dict([to_search_result(row) for row in rows])
