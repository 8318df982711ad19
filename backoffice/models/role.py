"""Role model for RBAC."""

from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from backoffice.db.base import Base


class Role(Base):
    """System role. ``level`` is a seniority ranking used for display and sort only."""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    level = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    menu_permissions = relationship(
        "RoleMenuPermission",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RoleMenuPermission.menu_id",
    )
