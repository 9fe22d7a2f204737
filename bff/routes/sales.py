from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from bff.dependencies import Backend, get_backend
from bff.errors import ApiError
from bff.proxy import read_json_object, to_response
from bff.schemas import SaleCreate, require_path_value
from bff.upstream import UpstreamResponse
from dealership.json_utils import to_json_dict
from dealership.normalize import normalize_sale_detail_from_flat
from dealership.sale_payloads import (
    REJECTED_SHAPE_STATUSES,
    build_sale_candidates,
    extract_bill_number,
)

logger = logging.getLogger(__name__)

router = APIRouter()

BILL_NUMBER_REQUIRED = "Bill number is required."


def _sale_path(bill_number: str, suffix: str = "") -> str:
    bill_number = require_path_value(bill_number, BILL_NUMBER_REQUIRED)
    return f"/api/sales/{quote(bill_number, safe='')}{suffix}"


@router.get("/sales")
def list_sales(backend: Backend = Depends(get_backend)):
    return backend.proxy("/api/sales", include_query=True)


@router.post("/sales", status_code=201)
def create_sale(payload: SaleCreate, backend: Backend = Depends(get_backend)):
    """
    Creates a sale, trying each known upstream body shape in turn.

    A 400/422 moves on to the next shape; any other upstream answer ends
    the loop. When every shape is rejected the last rejection is returned.
    """
    last_rejection: Optional[UpstreamResponse] = None
    candidates = build_sale_candidates(payload.model_dump())
    for index, body in enumerate(candidates, start=1):
        upstream = backend.fetch("/api/sales", method="POST", json_body=body)
        if upstream.status_code in REJECTED_SHAPE_STATUSES:
            logger.info(
                "Sale body shape %d/%d rejected with %s",
                index,
                len(candidates),
                upstream.status_code,
            )
            last_rejection = upstream
            continue
        if not upstream.ok:
            return to_response(upstream)

        data = upstream.json()
        return JSONResponse(
            {
                "message": "Sale completed successfully",
                "billNumber": extract_bill_number(data),
                "data": data,
            },
            status_code=201,
        )
    return to_response(last_rejection)


def _sale_detail(backend: Backend, path: str, invalid_message: str):
    upstream = backend.fetch(path)
    if upstream.status_code == 404:
        raise ApiError(404, "Sale not found")
    if not upstream.ok:
        return to_response(upstream)
    row = read_json_object(upstream, invalid_message)
    return to_json_dict(normalize_sale_detail_from_flat(row))


@router.get("/sales/{bill_number}")
def get_sale(bill_number: str, backend: Backend = Depends(get_backend)):
    return _sale_detail(
        backend, _sale_path(bill_number), "Invalid sale detail response from backend service."
    )


@router.get("/sales/{bill_number}/invoice")
def get_sale_invoice(bill_number: str, backend: Backend = Depends(get_backend)):
    return _sale_detail(
        backend,
        _sale_path(bill_number, "/invoice"),
        "Invalid sale invoice response from backend service.",
    )


@router.get("/sales/{bill_number}/pdf")
def get_sale_pdf(bill_number: str, backend: Backend = Depends(get_backend)):
    upstream = backend.fetch(_sale_path(bill_number, "/pdf"))
    if not upstream.ok:
        return to_response(upstream)
    disposition = upstream.headers.get("content-disposition") or (
        f'inline; filename="Invoice-{bill_number.strip()}.pdf"'
    )
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers={
            "Content-Type": upstream.headers.get("content-type") or "application/pdf",
            "Content-Disposition": disposition,
        },
    )


@router.post("/sales/{bill_number}/send-invoice")
def send_sale_invoice(bill_number: str, backend: Backend = Depends(get_backend)):
    return backend.proxy(_sale_path(bill_number, "/send-invoice"), method="POST")


@router.post("/sales/{bill_number}/process-invoice")
def process_sale_invoice(bill_number: str, backend: Backend = Depends(get_backend)):
    return backend.proxy(_sale_path(bill_number, "/process-invoice"), method="POST")
