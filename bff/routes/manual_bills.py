from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, Response

from bff.dependencies import Backend, get_backend
from bff.proxy import to_response
from bff.schemas import ManualBillCreate, require_path_value

router = APIRouter()

BILL_NUMBER_REQUIRED = "Bill number is required."


def _inline_requested(backend: Backend) -> bool:
    params = backend.request.query_params
    return params.get("inline") == "1" or params.get("open") == "1"


@router.post("/manual-bills")
def create_manual_bill(payload: ManualBillCreate, backend: Backend = Depends(get_backend)):
    return backend.proxy(
        "/api/manual-bills", method="POST", json_body=payload.to_upstream_payload()
    )


@router.get("/manual-bills/{bill_number}/pdf")
def get_manual_bill_pdf(bill_number: str, backend: Backend = Depends(get_backend)):
    """
    Streams the bill PDF. It opens inline in the browser unless the upstream
    asked for an attachment and the caller did not pass `inline=1`/`open=1`.
    """
    bill_number = require_path_value(bill_number, BILL_NUMBER_REQUIRED)
    upstream = backend.fetch(
        f"/api/manual-bills/{quote(bill_number, safe='')}/pdf", include_query=True
    )
    if not upstream.ok:
        return to_response(upstream)
    upstream_disposition = upstream.headers.get("content-disposition") or ""
    if _inline_requested(backend) or "attachment" not in upstream_disposition.lower():
        disposition = f'inline; filename="manual-bill-{bill_number}.pdf"'
    else:
        disposition = upstream_disposition
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers={
            "Content-Type": upstream.headers.get("content-type") or "application/pdf",
            "Content-Disposition": disposition,
        },
    )


@router.post("/manual-bills/{bill_number}/send-invoice")
def send_manual_bill_invoice(bill_number: str, backend: Backend = Depends(get_backend)):
    bill_number = require_path_value(bill_number, BILL_NUMBER_REQUIRED)
    return backend.proxy(
        f"/api/manual-bills/{quote(bill_number, safe='')}/send-invoice", method="POST"
    )
