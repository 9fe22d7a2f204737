"""
Typed HTTP client for the dealership BFF, used by scripts and back-office
tooling that talk to the same `/api` surface as the browser.

A 401 from any call ends the session: cookies are dropped and the BFF
logout endpoint is called. Concurrent 401s within a short window trigger
a single logout.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import threading
import time
from typing import Any, Callable, Optional
from urllib.parse import quote

import requests

from dealership.errors import get_api_error_message

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15  # seconds
LOGOUT_GUARD_SECONDS = 0.4

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_IMAGE_BYTES = 2 * 1024 * 1024

_logout_lock = threading.Lock()
_logout_guard_until = 0.0


class DealershipApiError(Exception):
    def __init__(self, status_code: int, message: str, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload


def _begin_logout() -> bool:
    """Claims the in-flight logout slot; False while another logout is recent."""
    global _logout_guard_until
    with _logout_lock:
        now = time.monotonic()
        if now < _logout_guard_until:
            return False
        _logout_guard_until = now + LOGOUT_GUARD_SECONDS
        return True


def validate_photo_file(path: str) -> str:
    """Checks type and size before upload; returns the detected content type."""
    content_type, _ = mimetypes.guess_type(path)
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValueError("Only JPEG, PNG, or WebP images are allowed.")
    if os.path.getsize(path) > MAX_IMAGE_BYTES:
        raise ValueError("Image size must be 2MB or less.")
    return content_type


class DealershipClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.on_unauthorized = on_unauthorized

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/{path.lstrip('/')}"

    def _handle_unauthorized(self) -> None:
        if not _begin_logout():
            return
        self.session.cookies.clear()
        try:
            self.session.post(self._url("auth/logout"), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Logout after 401 failed: %s", exc)
        if self.on_unauthorized:
            self.on_unauthorized()

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        response = self.session.request(method, self._url(path), **kwargs)
        if response.status_code == 401:
            self._handle_unauthorized()
        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = get_api_error_message(
                payload, f"Request failed ({response.status_code})"
            )
            raise DealershipApiError(response.status_code, message, payload)
        return response

    def _json(self, method: str, path: str, **kwargs) -> Any:
        response = self.request(method, path, **kwargs)
        if not response.content:
            return None
        return response.json()

    # Session

    def login(self, username: str, password: str) -> str:
        data = self._json("POST", "auth/login", json={"username": username, "password": password})
        return data["token"]

    def logout(self) -> None:
        self.request("POST", "auth/logout")
        self.session.cookies.clear()

    # Inventory

    def list_vehicles(self) -> list[dict]:
        data = self._json("GET", "vehicles")
        return data if isinstance(data, list) else []

    def list_available_vehicles(self) -> list[dict]:
        data = self._json("GET", "vehicles/available")
        return data if isinstance(data, list) else []

    def get_vehicle(self, vehicle_id: str | int) -> Optional[dict]:
        try:
            return self._json("GET", f"vehicles/{quote(str(vehicle_id), safe='')}")
        except DealershipApiError as exc:
            if exc.status_code == 404:
                return None
            raise

    def create_purchase(self, payload: dict) -> dict:
        return self._json("POST", "purchases", json=payload)

    def list_purchase_expenses(self, vehicle_id: str | int) -> list[dict]:
        data = self._json("GET", f"purchases/{quote(str(vehicle_id), safe='')}/expenses")
        return data if isinstance(data, list) else []

    def create_purchase_expense(self, vehicle_id: str | int, expense_type: str, amount: float) -> dict:
        return self._json(
            "POST",
            f"purchases/{quote(str(vehicle_id), safe='')}/expenses",
            json={"expenseType": expense_type.strip(), "amount": amount},
        )

    def delete_purchase_expense(self, expense_id: int) -> None:
        self.request("DELETE", f"purchases/expenses/{expense_id}")

    def upload_photo(self, path: str) -> str:
        content_type = validate_photo_file(path)
        with open(path, "rb") as handle:
            data = self._json(
                "POST",
                "upload",
                files={"file": (os.path.basename(path), handle, content_type)},
            )
        url = data.get("url") if isinstance(data, dict) else None
        if not isinstance(url, str) or not url:
            raise DealershipApiError(502, "Upload did not return a URL.", data)
        return url

    # Customers

    def search_customers_by_phone(self, phone: str) -> list[dict]:
        if not phone.strip():
            return []
        data = self._json("GET", "customers/search", params={"phone": phone.strip()})
        return data if isinstance(data, list) else []

    def create_customer(self, name: str, phone: str, address: Optional[str] = None) -> dict:
        payload = {"name": name.strip(), "phone": phone.strip()}
        if address is not None and address.strip():
            payload["address"] = address.strip()
        return self._json("POST", "customers", json=payload)

    # Sales and billing

    def create_sale(self, payload: dict) -> dict:
        return self._json("POST", "sales", json=payload)

    def get_sale(self, bill_number: str | int) -> dict:
        return self._json("GET", f"sales/{quote(str(bill_number), safe='')}")

    def get_sale_invoice_pdf(self, bill_number: str | int) -> bytes:
        return self.request("GET", f"sales/{quote(str(bill_number), safe='')}/pdf").content

    def send_sale_invoice(self, bill_number: str | int) -> dict:
        return self._json("POST", f"sales/{quote(str(bill_number), safe='')}/send-invoice")

    def process_invoice(self, bill_number: str | int) -> Any:
        return self._json("POST", f"sales/{quote(str(bill_number), safe='')}/process-invoice")

    def create_manual_bill(self, payload: dict) -> dict:
        return self._json("POST", "manual-bills", json=payload)

    def send_manual_bill_invoice(self, bill_number: str) -> dict:
        return self._json("POST", f"manual-bills/{quote(bill_number, safe='')}/send-invoice")

    def download_manual_bill_pdf(self, bill_number: str) -> bytes:
        return self.request(
            "GET",
            f"manual-bills/{quote(bill_number, safe='')}/pdf",
            params={"download": "true"},
        ).content

    def manual_bill_pdf_url(self, bill_number: str) -> str:
        """URL that renders the bill inline in a browser tab (for printing)."""
        return self._url(f"manual-bills/{quote(bill_number, safe='')}/pdf?download=true&inline=1")

    # Settings

    def list_finance_companies(self) -> list[dict]:
        data = self._json("GET", "finance-companies")
        return data if isinstance(data, list) else []

    def get_delivery_note_settings(self) -> dict:
        return self._json("GET", "settings/delivery-note") or {}

    def update_delivery_note_settings(self, payload: dict) -> dict:
        return self._json("PUT", "settings/delivery-note", json=payload) or {}
