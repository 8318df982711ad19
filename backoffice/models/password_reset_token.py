"""Password reset token model."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from backoffice.db.base import Base


class PasswordResetToken(Base):
    """Single-use reset token; only the sha256 digest is stored."""
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
