from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, List

from fastapi import APIRouter, Body, HTTPException, Response

from errors import ValidationError
from registry.codec import EXPORT_FILENAME, as_record_list, dumps_signatures
from ..state import state
from ..api_models import (
    EnrollRequest,
    ImportResponse,
    SensitivityRequest,
    SensitivityResponse,
    SignatureSummary,
    StatusResponse,
)

router = APIRouter()


def _require_loop():
    if state.loop is None:
        raise HTTPException(status_code=503, detail="Detection loop not available")
    return state.loop


def _run_on_loop(fn):
    try:
        return state.run_on_loop(fn)
    except FutureTimeoutError:
        raise HTTPException(status_code=503, detail="Detection loop busy; command cancelled")


@router.get("/status", response_model=StatusResponse)
def get_status():
    loop = _require_loop()
    return StatusResponse(**loop.status())


@router.get("/signatures", response_model=List[SignatureSummary])
def list_signatures():
    loop = _require_loop()
    return [SignatureSummary.from_signature(s) for s in loop.registry.all()]


@router.post("/signatures", response_model=SignatureSummary, status_code=201)
def enroll_signature(body: EnrollRequest):
    """Enroll the descriptor from the latest tick under the given name."""
    loop = _require_loop()
    try:
        signature = _run_on_loop(lambda: loop.enroll_current(body.name))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SignatureSummary.from_signature(signature)


@router.get("/signatures/export")
def export_signatures():
    loop = _require_loop()
    content = dumps_signatures(loop.registry.all())
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/signatures/import", response_model=ImportResponse)
def import_signatures(payload: Any = Body(...)):
    """
    Append signatures from an exported document.

    A body that is not an array, or is an empty array, imports nothing.
    """
    loop = _require_loop()
    entries = as_record_list(payload)
    try:
        imported = _run_on_loop(lambda: loop.registry.import_many(entries))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ImportResponse(imported=len(imported))


@router.delete("/signatures/{signature_id}", status_code=204)
def delete_signature(signature_id: str):
    loop = _require_loop()
    _run_on_loop(lambda: loop.remove_signature(signature_id))
    return Response(status_code=204)


@router.put("/detection/sensitivity", response_model=SensitivityResponse)
def set_sensitivity(body: SensitivityRequest):
    loop = _require_loop()
    try:
        _run_on_loop(lambda: loop.set_sensitivity(body.value))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SensitivityResponse(sensitivity=loop.detector.sensitivity)
