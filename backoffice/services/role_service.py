"""Role service — roles and the role/menu permission matrix."""

from typing import List, Optional

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.exceptions import (
    ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from backoffice.core.logging_config import get_logger
from backoffice.db.session import transaction
from backoffice.models.role import Role
from backoffice.repositories.menu_repository import MenuRepository
from backoffice.repositories.role_repository import PERMISSION_FLAGS, RoleRepository
from backoffice.schemas.schemas import (
    MenuPermissionIn, RoleCreate, RoleDetailOut, RoleUpdate,
)
from backoffice.services.audit_service import audit_service

logger = get_logger("services.role")


def role_snapshot(role: Role) -> dict:
    return {"id": role.id, "name": role.name, "level": role.level}


def role_detail(role: Role) -> RoleDetailOut:
    return RoleDetailOut.model_validate(role)


class RoleService:
    """Role CRUD and atomic replacement of a role's menu permissions."""

    @staticmethod
    def _get_or_404(db: Session, role_id: int) -> Role:
        role = RoleRepository(db).get(role_id)
        if not role:
            raise ResourceNotFoundError(f"Role {role_id} not found")
        return role

    @staticmethod
    def _check_name_free(db: Session, name: str, role_id: Optional[int] = None) -> None:
        existing = RoleRepository(db).get_by_name(name)
        if existing and existing.id != role_id:
            raise ResourceConflictError(f"Role '{name}' already exists")

    @staticmethod
    def _validate_permissions(db: Session, permissions: List[MenuPermissionIn]) -> List[dict]:
        """Reject duplicated or unknown menu ids; return plain rows."""
        menu_ids = [p.menu_id for p in permissions]
        duplicates = sorted({m for m in menu_ids if menu_ids.count(m) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate menu ids in permissions: {duplicates}")

        known = {m.id for m in MenuRepository(db).get_many(menu_ids)}
        unknown = sorted(set(menu_ids) - known)
        if unknown:
            raise ValidationError(f"Unknown menu ids: {unknown}")

        return [
            {"menu_id": p.menu_id, **{flag: getattr(p, flag) for flag in PERMISSION_FLAGS}}
            for p in permissions
        ]

    @staticmethod
    def list_roles(db: Session) -> List[Role]:
        return RoleRepository(db).list_all()

    @staticmethod
    def get_role(db: Session, role_id: int) -> RoleDetailOut:
        """Get a role together with its permission rows."""
        return role_detail(RoleService._get_or_404(db, role_id))

    @staticmethod
    def create_role(
        db: Session,
        body: RoleCreate,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> RoleDetailOut:
        """Create a role; permissions, when given, land in the same transaction."""
        repo = RoleRepository(db)
        RoleService._check_name_free(db, body.name)
        rows = None
        if body.menu_permissions is not None:
            rows = RoleService._validate_permissions(db, body.menu_permissions)

        try:
            with transaction(db):
                role = repo.create(body.name, body.level)
                if rows is not None:
                    repo.replace_permissions(role.id, rows)
                audit_service.log(
                    db, actor_id, "role.created", "role", role.id,
                    new_value={**role_snapshot(role), "menu_permissions": rows},
                    request=request,
                )
        except IntegrityError:
            raise ResourceConflictError(f"Role '{body.name}' already exists")

        logger.info("role_created", extra={"role_id": role.id, "role_name": role.name})
        return role_detail(role)

    @staticmethod
    def update_role(
        db: Session,
        role_id: int,
        body: RoleUpdate,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> RoleDetailOut:
        """Partial update; ``menu_permissions`` replaces the whole set."""
        repo = RoleRepository(db)
        role = RoleService._get_or_404(db, role_id)
        if body.name is not None:
            RoleService._check_name_free(db, body.name, role_id)
        rows = None
        if body.menu_permissions is not None:
            rows = RoleService._validate_permissions(db, body.menu_permissions)

        old = role_snapshot(role)
        try:
            with transaction(db):
                repo.update(role, name=body.name, level=body.level)
                if rows is not None:
                    repo.replace_permissions(role.id, rows)
                audit_service.log(
                    db, actor_id, "role.updated", "role", role.id,
                    old_value=old,
                    new_value={**role_snapshot(role), "menu_permissions": rows},
                    request=request,
                )
        except IntegrityError:
            if body.name is not None:
                raise ResourceConflictError(f"Role '{body.name}' already exists")
            raise ResourceConflictError(f"Role '{old['name']}' conflicts with an existing record")

        logger.info("role_updated", extra={"role_id": role_id})
        return role_detail(role)

    @staticmethod
    def set_menu_permissions(
        db: Session,
        role_id: int,
        permissions: List[MenuPermissionIn],
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> RoleDetailOut:
        """Replace every permission row of the role in one transaction."""
        repo = RoleRepository(db)
        role = RoleService._get_or_404(db, role_id)
        rows = RoleService._validate_permissions(db, permissions)

        with transaction(db):
            repo.replace_permissions(role.id, rows)
            audit_service.log(
                db, actor_id, "role.permissions_replaced", "role", role.id,
                new_value={"menu_permissions": rows},
                request=request,
            )

        logger.info(
            "role_permissions_replaced",
            extra={"role_id": role_id, "count": len(rows)},
        )
        return role_detail(role)

    @staticmethod
    def delete_role(
        db: Session,
        role_id: int,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> None:
        """Delete a role and its permission rows. Refused while users hold it."""
        repo = RoleRepository(db)
        role = RoleService._get_or_404(db, role_id)
        assigned = repo.count_users(role_id)
        if assigned:
            raise ResourceConflictError(
                f"Role '{role.name}' is assigned to {assigned} user(s)"
            )

        old = role_snapshot(role)
        with transaction(db):
            repo.delete(role)
            audit_service.log(
                db, actor_id, "role.deleted", "role", role_id,
                old_value=old,
                request=request,
            )
        logger.info("role_deleted", extra={"role_id": role_id})


role_service = RoleService()
