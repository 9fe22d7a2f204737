"""
HTTP routes for the BFF API.
"""

from fastapi import APIRouter

from bff.routes import (
    auth,
    customers,
    dashboard,
    debug,
    files,
    finance_companies,
    manual_bills,
    public,
    purchases,
    sales,
    search,
    settings,
    vehicles,
)

router = APIRouter()
for module in (
    auth,
    customers,
    dashboard,
    finance_companies,
    purchases,
    vehicles,
    sales,
    manual_bills,
    search,
    settings,
    files,
    public,
    debug,
):
    router.include_router(module.router)
