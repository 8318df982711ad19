"""User repository."""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from backoffice.core.logging_config import get_logger
from backoffice.models.user import User

logger = get_logger("repositories.user")

USER_FIELDS = ("email", "password", "name", "phone", "gender", "status", "role_id")


class UserRepository:
    """Wraps ORM access to users. Never commits; callers own the transaction."""

    def __init__(self, db: Session):
        self.db = db

    def list_paginated(self, limit: int = 20, offset: int = 0) -> Tuple[List[User], int]:
        query = self.db.query(User)
        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return users, total

    def get(self, user_id: int) -> Optional[User]:
        logger.debug("repo_find_user_by_id", extra={"user_id": user_id})
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def create(self, data: dict, actor_id: Optional[int] = None) -> User:
        user = User(
            **{k: v for k, v in data.items() if k in USER_FIELDS},
            created_by=actor_id,
            updated_by=actor_id,
        )
        user.email = user.email.strip().lower()
        self.db.add(user)
        self.db.flush()
        return user

    def update(self, user: User, data: dict, actor_id: Optional[int] = None) -> User:
        for key, value in data.items():
            if key in USER_FIELDS and value is not None:
                setattr(user, key, value)
        user.email = user.email.strip().lower()
        user.updated_by = actor_id
        self.db.flush()
        return user

    def update_password(self, user: User, password_hash: str) -> None:
        user.password = password_hash
        self.db.flush()

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.flush()
