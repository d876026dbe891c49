# activation/routes/devices.py
from json import JSONDecodeError
from typing import Optional

from fastapi import APIRouter, Depends, Request

from activation.auth import get_store, require_admin_key
from activation.errors import ApiError
from activation.models import record_from_payload
from activation.status import evaluate_status, normalize_code
from activation.store import RecordStore

router = APIRouter(tags=["devices"])


async def json_body(request: Request) -> dict:
    """Request JSON as a dict. Empty, malformed or non-object bodies give {}."""
    try:
        payload = await request.json()
    except (JSONDecodeError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


@router.get("/check")
def check_device(device: Optional[str] = None, store: RecordStore = Depends(get_store)):
    """Public status lookup. No authentication on purpose."""
    code = normalize_code(device)
    if not code:
        raise ApiError(400, "missing_device_code")

    rec = store.get(code)
    return {
        "ok": True,
        "device_code": code,
        "status": evaluate_status(rec),
        "plan": rec.plan if rec else "",
        "expiry": rec.expiry if rec else "",
        "notes": rec.notes if rec else "",
    }


@router.post("/update", dependencies=[Depends(require_admin_key)])
def update_device(payload: dict = Depends(json_body), store: RecordStore = Depends(get_store)):
    """
    Expected JSON body:
    {
      "device": "ABC01",
      "status": "active",
      "plan": "Monthly",
      "expiry": "2026-01-31T23:59:59Z",
      "notes": "..."
    }
    """
    code = normalize_code(payload.get("device"))
    if not code:
        raise ApiError(400, "missing_device")

    rec = record_from_payload(payload)
    store.put(code, rec)
    return {"ok": True, "device_code": code, "data": rec.model_dump()}
