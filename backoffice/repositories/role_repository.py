"""Role repository: roles and their RoleMenuPermission rows."""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from backoffice.core.logging_config import get_logger
from backoffice.models.role import Role
from backoffice.models.menu import RoleMenuPermission
from backoffice.models.user import User

logger = get_logger("repositories.role")

PERMISSION_FLAGS = ("can_view", "can_create", "can_update", "can_delete", "can_confirm")


class RoleRepository:
    """Wraps ORM access to roles. Never commits; callers own the transaction."""

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Role]:
        logger.debug("repo_list_all_roles")
        return self.db.query(Role).order_by(Role.level.desc(), Role.id).all()

    def get(self, role_id: int) -> Optional[Role]:
        logger.debug("repo_find_role_by_id", extra={"role_id": role_id})
        return self.db.query(Role).filter(Role.id == role_id).first()

    def get_by_name(self, name: str) -> Optional[Role]:
        return self.db.query(Role).filter(Role.name == name).first()

    def create(self, name: str, level: int) -> Role:
        logger.debug("repo_create_role", extra={"role_name": name})
        role = Role(name=name, level=level)
        self.db.add(role)
        self.db.flush()
        return role

    def update(self, role: Role, name: Optional[str] = None, level: Optional[int] = None) -> Role:
        if name is not None:
            role.name = name
        if level is not None:
            role.level = level
        self.db.flush()
        return role

    def delete(self, role: Role) -> None:
        logger.debug("repo_delete_role", extra={"role_id": role.id})
        self.delete_permissions(role.id)
        self.db.expire(role, ["menu_permissions"])
        self.db.delete(role)
        self.db.flush()

    def count_users(self, role_id: int) -> int:
        return self.db.query(User).filter(User.role_id == role_id).count()

    def list_permissions(self, role_id: int) -> List[RoleMenuPermission]:
        return (
            self.db.query(RoleMenuPermission)
            .filter(RoleMenuPermission.role_id == role_id)
            .order_by(RoleMenuPermission.menu_id)
            .all()
        )

    def delete_permissions(self, role_id: int) -> int:
        return (
            self.db.query(RoleMenuPermission)
            .filter(RoleMenuPermission.role_id == role_id)
            .delete(synchronize_session=False)
        )

    def replace_permissions(self, role_id: int, rows: Iterable[dict]) -> List[RoleMenuPermission]:
        """Delete every grant of the role, then bulk-insert ``rows``."""
        removed = self.delete_permissions(role_id)
        created = [
            RoleMenuPermission(
                role_id=role_id,
                menu_id=row["menu_id"],
                **{flag: bool(row.get(flag, False)) for flag in PERMISSION_FLAGS},
            )
            for row in rows
        ]
        self.db.add_all(created)
        self.db.flush()
        # Relationship collection is stale after the bulk delete
        role = self.db.get(Role, role_id)
        if role is not None:
            self.db.expire(role, ["menu_permissions"])
        logger.debug(
            "repo_replace_role_permissions",
            extra={"role_id": role_id, "removed": removed, "inserted": len(created)},
        )
        return created
