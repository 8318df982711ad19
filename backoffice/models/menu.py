"""Menu tree and RoleMenuPermission models."""

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from backoffice.db.base import Base


class Menu(Base):
    """Navigation entry in the admin UI; ``parent_id`` forms the tree.

    The ``can_*`` columns are legacy per-menu defaults. Authorization reads
    RoleMenuPermission rows only.
    """
    __tablename__ = "menus"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    url = Column(String(255), nullable=True, index=True)
    icon = Column(String(100), nullable=True)
    parent_id = Column(Integer, ForeignKey("menus.id", ondelete="CASCADE"), nullable=True, index=True)
    order = Column(Integer, nullable=False, default=0, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    can_view = Column(Boolean, nullable=False, default=True)
    can_add = Column(Boolean, nullable=False, default=False)
    can_edit = Column(Boolean, nullable=False, default=False)
    can_delete = Column(Boolean, nullable=False, default=False)
    can_confirm = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    parent = relationship("Menu", remote_side=[id], back_populates="children")
    children = relationship(
        "Menu",
        back_populates="parent",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: (Menu.order, Menu.id),
    )


class RoleMenuPermission(Base):
    """Authoritative grant of menu rights for one (role, menu) pair."""
    __tablename__ = "role_menu_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "menu_id", name="unique_role_menu_permission"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_id = Column(Integer, ForeignKey("menus.id", ondelete="CASCADE"), nullable=False, index=True)
    can_view = Column(Boolean, nullable=False, default=False)
    can_create = Column(Boolean, nullable=False, default=False)
    can_update = Column(Boolean, nullable=False, default=False)
    can_delete = Column(Boolean, nullable=False, default=False)
    can_confirm = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    role = relationship("Role", back_populates="menu_permissions")
    menu = relationship("Menu", lazy="joined")
