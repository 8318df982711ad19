"""Reads behind the permission resolution engine.

Every method is a flat query; the tree is assembled in memory by the
service so a resolution call costs a bounded number of round trips.
"""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from backoffice.core.logging_config import get_logger
from backoffice.models.menu import Menu, RoleMenuPermission
from backoffice.models.user import User

logger = get_logger("repositories.access_menu")


class AccessMenuRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_user_role_id(self, user_id: int) -> Optional[int]:
        row = self.db.query(User.role_id).filter(User.id == user_id).first()
        return row[0] if row else None

    def list_granted(self, role_id: int, viewable_only: bool = False) -> List[RoleMenuPermission]:
        """Grant rows of a role joined to their active menu."""
        query = (
            self.db.query(RoleMenuPermission)
            .join(Menu, RoleMenuPermission.menu_id == Menu.id)
            .filter(RoleMenuPermission.role_id == role_id, Menu.is_active.is_(True))
        )
        if viewable_only:
            query = query.filter(RoleMenuPermission.can_view.is_(True))
        rows = query.order_by(Menu.order, Menu.id).all()
        logger.debug(
            "repo_list_granted_menus",
            extra={"role_id": role_id, "viewable_only": viewable_only, "count": len(rows)},
        )
        return rows

    def list_grants_for_menus(self, role_id: int, menu_ids: Iterable[int]) -> List[RoleMenuPermission]:
        ids = list(set(menu_ids))
        if not ids:
            return []
        return (
            self.db.query(RoleMenuPermission)
            .filter(RoleMenuPermission.role_id == role_id, RoleMenuPermission.menu_id.in_(ids))
            .all()
        )

    def get_active_menus(self, menu_ids: Iterable[int]) -> List[Menu]:
        ids = list(set(menu_ids))
        if not ids:
            return []
        return self.db.query(Menu).filter(Menu.id.in_(ids), Menu.is_active.is_(True)).all()

    def get_grant(self, role_id: int, menu_id: int) -> Optional[RoleMenuPermission]:
        return (
            self.db.query(RoleMenuPermission)
            .join(Menu, RoleMenuPermission.menu_id == Menu.id)
            .filter(
                RoleMenuPermission.role_id == role_id,
                RoleMenuPermission.menu_id == menu_id,
                Menu.is_active.is_(True),
            )
            .first()
        )

    def get_grant_by_url(self, role_id: int, url: str) -> Optional[RoleMenuPermission]:
        return (
            self.db.query(RoleMenuPermission)
            .join(Menu, RoleMenuPermission.menu_id == Menu.id)
            .filter(
                RoleMenuPermission.role_id == role_id,
                Menu.url == url,
                Menu.is_active.is_(True),
            )
            .order_by(Menu.id)
            .first()
        )
