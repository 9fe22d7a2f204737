from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from bff.dependencies import Backend, get_backend
from bff.errors import ApiError
from bff.proxy import read_json_object, read_json_rows, to_response
from bff.schemas import ExpenseCreate, PurchaseCreate, parse_positive_id, require_path_value
from dealership.json_utils import to_json_dict
from dealership.normalize import normalize_purchase, to_expense

router = APIRouter()


@router.get("/purchases")
def list_purchases(backend: Backend = Depends(get_backend)):
    upstream = backend.fetch("/api/purchases", include_query=True)
    if not upstream.ok:
        return to_response(upstream)
    rows = read_json_rows(upstream, "Invalid purchase response from backend.")
    return to_json_dict([normalize_purchase(row) for row in rows])


@router.post("/purchases", status_code=201)
def create_purchase(payload: PurchaseCreate, backend: Backend = Depends(get_backend)):
    upstream = backend.fetch(
        "/api/purchases", method="POST", json_body=payload.to_upstream_payload()
    )
    if not upstream.ok:
        return to_response(upstream)
    return JSONResponse(
        {"message": "Purchase created successfully", "data": upstream.json()},
        status_code=201,
    )


@router.delete("/purchases/expenses/{expense_id}")
def delete_expense(expense_id: str, backend: Backend = Depends(get_backend)):
    parsed = parse_positive_id(expense_id, "Expense")
    return backend.proxy(f"/api/purchases/expenses/{parsed}", method="DELETE")


@router.get("/purchases/{purchase_id}")
def get_purchase(purchase_id: str, backend: Backend = Depends(get_backend)):
    purchase_id = require_path_value(purchase_id, "Purchase ID is required.")
    upstream = backend.fetch(f"/api/purchases/{quote(purchase_id, safe='')}")
    if upstream.status_code == 404:
        raise ApiError(404, "Purchase not found")
    if not upstream.ok:
        return to_response(upstream)
    row = read_json_object(upstream, "Invalid purchase response from backend.")
    return to_json_dict(normalize_purchase(row))


@router.get("/purchases/{vehicle_id}/expenses")
def list_expenses(vehicle_id: str, backend: Backend = Depends(get_backend)):
    parsed = parse_positive_id(vehicle_id, "Vehicle")
    upstream = backend.fetch(f"/api/purchases/{parsed}/expenses")
    if not upstream.ok:
        return to_response(upstream)
    rows = read_json_rows(upstream, "Invalid purchase expenses response from backend service.")
    return to_json_dict([to_expense(row) for row in rows])


@router.post("/purchases/{vehicle_id}/expenses")
def create_expense(
    vehicle_id: str, payload: ExpenseCreate, backend: Backend = Depends(get_backend)
):
    parsed = parse_positive_id(vehicle_id, "Vehicle")
    return backend.proxy(
        f"/api/purchases/{parsed}/expenses",
        method="POST",
        json_body=payload.to_upstream_payload(),
    )
