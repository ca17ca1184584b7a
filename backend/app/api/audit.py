"""Audit log API router: execution history, newest first."""

from fastapi import APIRouter, Query

from app.models.workflow import AuditEntryResponse
from app.services.audit_log import list_events

router = APIRouter()


@router.get("", response_model=list[AuditEntryResponse])
async def list_audit_entries(
    limit: int = Query(default=100, ge=1, le=1000),
) -> list[AuditEntryResponse]:
    return [
        AuditEntryResponse(
            id=e.id,
            timestamp=e.timestamp,
            action=e.action,
            target=e.target,
            details=e.details,
            status=e.status,
        )
        for e in list_events(limit)
    ]
