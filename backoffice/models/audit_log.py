"""Audit log model: append-only."""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from backoffice.db.base import Base


class AuditLog(Base):
    """One row per user, role or menu mutation, written in the same transaction.

    Rows are only ever inserted; no code path updates or deletes them.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(Integer, nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. "role.created"
    resource_type = Column(String(50), nullable=False, index=True)  # role, menu, user
    resource_id = Column(String(100), nullable=True)
    old_value_json = Column(Text, nullable=True)
    new_value_json = Column(Text, nullable=True)
    request_id = Column(String(64), nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
