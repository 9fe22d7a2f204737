from __future__ import annotations

from fastapi import APIRouter, Depends

from bff.dependencies import Backend, get_backend
from bff.proxy import read_json_rows, to_response
from bff.schemas import FinanceCompanyCreate, parse_positive_id
from dealership.json_utils import to_json_dict
from dealership.normalize import to_finance_company

router = APIRouter()


@router.get("/finance-companies")
def list_finance_companies(backend: Backend = Depends(get_backend)):
    upstream = backend.fetch("/api/finance-companies")
    if not upstream.ok:
        return to_response(upstream)
    rows = read_json_rows(upstream, "Invalid finance companies response from backend service.")
    return to_json_dict([to_finance_company(row) for row in rows])


@router.post("/finance-companies")
def create_finance_company(
    payload: FinanceCompanyCreate, backend: Backend = Depends(get_backend)
):
    return backend.proxy(
        "/api/finance-companies", method="POST", json_body={"name": payload.name}
    )


@router.delete("/finance-companies/{company_id}")
def delete_finance_company(company_id: str, backend: Backend = Depends(get_backend)):
    parsed = parse_positive_id(company_id, "Finance company")
    return backend.proxy(f"/api/finance-companies/{parsed}", method="DELETE")
