from __future__ import annotations

from fastapi import APIRouter, Depends

from bff.dependencies import Backend, get_backend
from bff.proxy import to_response
from bff.schemas import DeliveryNoteSettingsUpdate
from bff.upstream import UpstreamResponse
from dealership.json_utils import to_json_dict
from dealership.normalize import normalize_delivery_note_settings

router = APIRouter()

SETTINGS_PATH = "/api/settings/delivery-note"


def _settings_response(upstream: UpstreamResponse):
    payload = upstream.json()
    if not upstream.ok or not isinstance(payload, dict):
        return to_response(upstream)
    return to_json_dict(normalize_delivery_note_settings(payload))


@router.get("/settings/delivery-note")
def get_delivery_note_settings(backend: Backend = Depends(get_backend)):
    return _settings_response(backend.fetch(SETTINGS_PATH))


@router.put("/settings/delivery-note")
def update_delivery_note_settings(
    payload: DeliveryNoteSettingsUpdate, backend: Backend = Depends(get_backend)
):
    upstream = backend.fetch(SETTINGS_PATH, method="PUT", json_body=payload.to_upstream_payload())
    return _settings_response(upstream)
