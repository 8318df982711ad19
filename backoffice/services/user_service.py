"""User service — user administration with an audit trail."""

from typing import Optional

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.enums import UserGender, UserStatus
from backoffice.core.exceptions import (
    AuthorizationError, ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from backoffice.core.logging_config import get_logger
from backoffice.core.security import AuthContext, hash_password
from backoffice.db.session import transaction
from backoffice.models.user import User
from backoffice.repositories.role_repository import RoleRepository
from backoffice.repositories.user_repository import UserRepository
from backoffice.schemas.schemas import UserCreate, UserOut, UserUpdate
from backoffice.services.audit_service import audit_service

logger = get_logger("services.user")


def _wire(value):
    return value.value if value is not None else None


def user_out(user: User) -> UserOut:
    """Public view of a user. Never carries the password hash."""
    return UserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        phone=user.phone,
        gender=_wire(user.gender),
        status=_wire(user.status),
        role_id=user.role_id,
        role_name=user.role.name if user.role else None,
        created_by=user.created_by,
        updated_by=user.updated_by,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def user_snapshot(user: User) -> dict:
    return user_out(user).model_dump(
        include={"email", "name", "phone", "gender", "status", "role_id"}
    )


class UserService:
    """User CRUD. Listing every user is reserved for super_admin."""

    @staticmethod
    def _get_or_404(db: Session, user_id: int) -> User:
        user = UserRepository(db).get(user_id)
        if not user:
            raise ResourceNotFoundError("User not found")
        return user

    @staticmethod
    def _check_role(db: Session, role_id: Optional[int]) -> None:
        if role_id is not None and RoleRepository(db).get(role_id) is None:
            raise ValidationError(f"Role {role_id} not found")

    @staticmethod
    def _normalize(data: dict) -> dict:
        """Convert wire enums and hash a plain password."""
        if data.get("gender") is not None:
            data["gender"] = UserGender.from_wire(data["gender"])
        if data.get("status") is not None:
            data["status"] = UserStatus.from_wire(data["status"])
        if data.get("password"):
            data["password"] = hash_password(data["password"])
        return data

    @staticmethod
    def list_users(db: Session, auth: AuthContext, limit: int = 20, offset: int = 0):
        """List all users with pagination (super_admin only)."""
        logger.info("list_users", extra={"user_id": auth.user_id})
        if auth.role_name != "super_admin":
            raise AuthorizationError("Admin cannot list all users")
        users, total = UserRepository(db).list_paginated(limit=limit, offset=offset)
        return {"users": [user_out(u) for u in users], "total": total}

    @staticmethod
    def get_user(db: Session, user_id: int) -> UserOut:
        return user_out(UserService._get_or_404(db, user_id))

    @staticmethod
    def create_user(
        db: Session,
        body: UserCreate,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> UserOut:
        """Create a user. Email must be unique."""
        repo = UserRepository(db)
        if repo.get_by_email(body.email):
            raise ResourceConflictError("Email already exists")
        UserService._check_role(db, body.role_id)
        data = UserService._normalize(body.model_dump())

        try:
            with transaction(db):
                user = repo.create(data, actor_id=actor_id)
                audit_service.log(
                    db, actor_id, "user.created", "user", user.id,
                    new_value=user_snapshot(user),
                    request=request,
                )
        except IntegrityError:
            raise ResourceConflictError("Email already exists")

        logger.info("user_created", extra={"user_id": user.id})
        return user_out(user)

    @staticmethod
    def update_user(
        db: Session,
        user_id: int,
        body: UserUpdate,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> UserOut:
        """Partial update; a new password is re-hashed."""
        repo = UserRepository(db)
        user = UserService._get_or_404(db, user_id)
        changes = body.model_dump(exclude_unset=True)

        email = changes.get("email")
        if email and email.strip().lower() != user.email:
            if repo.get_by_email(email):
                raise ResourceConflictError("Email already exists")
        UserService._check_role(db, changes.get("role_id"))
        changes = UserService._normalize(changes)

        old = user_snapshot(user)
        try:
            with transaction(db):
                repo.update(user, changes, actor_id=actor_id)
                audit_service.log(
                    db, actor_id, "user.updated", "user", user_id,
                    old_value=old,
                    new_value=user_snapshot(user),
                    request=request,
                )
        except IntegrityError:
            raise ResourceConflictError("Email already exists")

        logger.info("user_updated", extra={"user_id": user_id})
        return user_out(user)

    @staticmethod
    def delete_user(
        db: Session,
        user_id: int,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> None:
        user = UserService._get_or_404(db, user_id)
        if user.id == actor_id:
            raise ValidationError("Cannot delete yourself")

        old = user_snapshot(user)
        with transaction(db):
            UserRepository(db).delete(user)
            audit_service.log(
                db, actor_id, "user.deleted", "user", user_id,
                old_value=old,
                request=request,
            )
        logger.info("user_deleted", extra={"user_id": user_id})

    @staticmethod
    def user_logs(db: Session, user_id: int, limit: int = 50, offset: int = 0):
        """Audit history of one user record."""
        UserService._get_or_404(db, user_id)
        return audit_service.query_logs(
            db, resource_type="user", resource_id=user_id, limit=limit, offset=offset,
        )


user_service = UserService()
