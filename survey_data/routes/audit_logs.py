"""Audit log endpoints (read-only)."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from survey_data.middleware.auth import require_admin
from survey_data.models.database import get_db
from survey_data.schemas.audit import AuditLogPage, AuditLogRead
from survey_data.services.audit_trail import AuditTrail

router = APIRouter(prefix="/api/audit-logs")


@router.get("", response_model=AuditLogPage, dependencies=[Depends(require_admin)])
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
) -> AuditLogPage:
    """Page through all audit entries, newest first."""
    return AuditTrail.list_logs(db, page=page, limit=limit)


@router.get(
    "/{entity_type}/{entity_id}",
    response_model=list[AuditLogRead],
    dependencies=[Depends(require_admin)],
)
async def get_entity_audit_logs(
    entity_type: str,
    entity_id: int,
    db: Session = Depends(get_db),
) -> list[AuditLogRead]:
    """Entries describing one entity, newest first."""
    return [
        AuditLogRead.model_validate(entry)
        for entry in AuditTrail.entity_logs(db, entity_type, entity_id)
    ]
