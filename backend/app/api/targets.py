"""
External target API router.

GET  /api/targets              - List linked repositories.
POST /api/targets              - Register a repository by URL.
POST /api/targets/{id}/toggle  - Connect / disconnect a repository.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from app.errors import ExternalTargetError
from app.models.workflow import ExternalTarget, ExternalTargetCreateRequest
from app.services.target_store import get_target_store

router = APIRouter()


def _store():
    return get_target_store()


@router.get("", response_model=list[ExternalTarget])
async def list_targets() -> list[ExternalTarget]:
    return _store().list_all()


@router.post("", response_model=ExternalTarget)
async def register_target(request: ExternalTargetCreateRequest) -> ExternalTarget:
    """Register a repository. Empty, invalid and duplicate addresses are rejected."""
    try:
        return _store().register(request.address)
    except ExternalTargetError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{target_id}/toggle", response_model=ExternalTarget)
async def toggle_target(target_id: str) -> ExternalTarget:
    target = _store().toggle(target_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Target not found")
    return target
