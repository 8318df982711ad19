"""Audit API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.core.response import create_response
from backoffice.core.security import AuthContext, require_admin
from backoffice.db.session import get_db
from backoffice.schemas.schemas import AuditLogOut
from backoffice.services.audit_service import audit_service

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("")
async def get_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    actor_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Audit trail, newest first, filtered by actor, action or resource."""
    result = audit_service.query_logs(
        db,
        actor_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        limit=limit,
        offset=offset,
    )
    return create_response(
        [AuditLogOut.model_validate(log).model_dump(mode="json") for log in result["logs"]],
        pagination={"total": result["total"], "limit": limit, "offset": offset},
    )
