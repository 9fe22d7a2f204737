from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends

from bff.dependencies import Backend, get_backend
from bff.schemas import CustomerCreate, require_path_value

router = APIRouter()


@router.get("/customers")
def list_customers(backend: Backend = Depends(get_backend)):
    """Lists customers; with `?phone=` the upstream phone search is used."""
    has_phone = "phone" in backend.request.query_params
    path = "/api/customers/search" if has_phone else "/api/customers"
    return backend.proxy(path, include_query=True)


@router.post("/customers")
def create_customer(payload: CustomerCreate, backend: Backend = Depends(get_backend)):
    return backend.proxy(
        "/api/customers", method="POST", json_body=payload.to_upstream_payload()
    )


@router.get("/customers/search")
def search_customers(backend: Backend = Depends(get_backend)):
    return backend.proxy("/api/customers/search", include_query=True)


@router.get("/customers/{customer_id}")
def get_customer(customer_id: str, backend: Backend = Depends(get_backend)):
    customer_id = require_path_value(customer_id, "Customer ID is required.")
    return backend.proxy(f"/api/customers/{quote(customer_id, safe='')}")
