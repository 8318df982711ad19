"""Password reset token repository."""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.models.password_reset_token import PasswordResetToken


class PasswordResetTokenRepository:

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: int, token_hash: str, expires_at: datetime) -> PasswordResetToken:
        token = PasswordResetToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        self.db.add(token)
        self.db.flush()
        return token

    def delete_for_user(self, user_id: int) -> int:
        return (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def find_valid(self, token_hash: str, now: datetime) -> Optional[PasswordResetToken]:
        return (
            self.db.query(PasswordResetToken)
            .filter(
                PasswordResetToken.token_hash == token_hash,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > now,
            )
            .first()
        )

    def mark_used(self, token: PasswordResetToken, now: datetime) -> None:
        token.used_at = now
        self.db.flush()
