"""Audit service — staged audit rows and audit log queries."""

import json
from typing import Optional, Any

from sqlalchemy.orm import Session
from fastapi import Request

from backoffice.core.logging_config import NO_REQUEST_ID, request_id_var
from backoffice.models.audit_log import AuditLog
from backoffice.repositories.audit_log_repository import AuditLogRepository


def _client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()[:45]
    return request.client.host if request.client else None


class AuditService:
    """Records immutable audit log entries for administrative events."""

    @staticmethod
    def log(
        db: Session,
        actor_id: Optional[int],
        action: str,
        resource_type: str,
        resource_id: Optional[Any] = None,
        old_value: Optional[Any] = None,
        new_value: Optional[Any] = None,
        request: Optional[Request] = None,
    ) -> AuditLog:
        """Stage a single audit log record in the caller's transaction.

        Args:
            action: e.g. "role.created", "menu.deleted", "user.updated"
            resource_type: role, menu, user

        The entry commits or rolls back together with the mutation it describes.
        """
        request_id = request_id_var.get()
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            old_value_json=json.dumps(old_value, default=str) if old_value else None,
            new_value_json=json.dumps(new_value, default=str) if new_value else None,
            request_id=None if request_id == NO_REQUEST_ID else request_id,
            ip_address=_client_ip(request),
        )
        return AuditLogRepository(db).add(entry)

    @staticmethod
    def query_logs(
        db: Session,
        actor_id: Optional[int] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        limit: int = 50,
        offset: int = 0,
    ):
        """Query audit logs with filters and pagination."""
        logs, total = AuditLogRepository(db).query(
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            limit=limit,
            offset=offset,
        )
        return {"logs": logs, "total": total, "limit": limit, "offset": offset}


audit_service = AuditService()
