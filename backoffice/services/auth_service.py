"""Auth service — JWT login and password reset."""

import hashlib
import secrets
import smtplib
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from urllib.parse import quote

from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.enums import UserStatus
from backoffice.core.exceptions import AuthenticationError, ValidationError
from backoffice.core.logging_config import get_logger
from backoffice.core.security import create_access_token, hash_password, verify_password
from backoffice.db.session import transaction
from backoffice.repositories.password_reset_token_repository import PasswordResetTokenRepository
from backoffice.repositories.user_repository import UserRepository
from backoffice.services.mail_service import mail_service
from backoffice.services.user_service import user_out

logger = get_logger("services.auth")

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_RESET_TOKEN = "Invalid or expired token"


def _utcnow() -> datetime:
    # Timestamp columns are naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthService:
    """Handles authentication and password recovery."""

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> Dict[str, Any]:
        """Authenticate user and return a JWT with the public user record.

        Raises:
            AuthenticationError: If credentials are invalid or the account is not active.
        """
        logger.info("login_attempt")
        user = UserRepository(db).get_by_email(email)
        if not user:
            logger.warning("login_invalid_email")
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not verify_password(password, user.password):
            logger.warning("login_invalid_password", extra={"user_id": user.id})
            raise AuthenticationError(INVALID_CREDENTIALS)
        if user.status != UserStatus.active:
            logger.warning("login_inactive_user", extra={"user_id": user.id})
            raise AuthenticationError("Account is not active")

        token = create_access_token(user.id, user.role_id, user.email)
        logger.info("login_success", extra={"user_id": user.id})
        return {"token": token, "user": user_out(user)}

    @staticmethod
    def request_password_reset(db: Session, email: str) -> None:
        """Email a reset link when the user exists. Returns the same way either way."""
        logger.info("request_password_reset_start")
        repo = PasswordResetTokenRepository(db)
        user = UserRepository(db).get_by_email(email)
        if not user:
            logger.warning("request_password_reset_user_not_found")
            return

        token_plain = secrets.token_hex(32)
        expires_at = _utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES)
        with transaction(db):
            repo.delete_for_user(user.id)
            repo.create(user.id, hash_reset_token(token_plain), expires_at)
        logger.info("request_password_reset_token_created", extra={"user_id": user.id})

        reset_url = (
            f"{settings.APP_BASE_URL.rstrip('/')}/reset-password"
            f"?token={quote(token_plain)}&uid={quote(str(user.id))}"
        )
        try:
            mail_service.send_password_reset_email(user.email, reset_url)
        except (smtplib.SMTPException, OSError):
            # The caller sees the same response whether or not the user exists
            logger.error("request_password_reset_email_failed", extra={"user_id": user.id})
            return
        logger.info("request_password_reset_email_sent", extra={"user_id": user.id})

    @staticmethod
    def reset_password(db: Session, user_id: int, token: str, new_password: str) -> None:
        """Consume a reset token and set the new password.

        Raises:
            ValidationError: If the token is unknown, expired, used, or belongs to another user.
        """
        logger.info("reset_password_start", extra={"user_id": user_id})
        repo = PasswordResetTokenRepository(db)
        now = _utcnow()
        record = repo.find_valid(hash_reset_token(token), now)
        if not record or record.user_id != user_id:
            logger.warning("reset_password_invalid_token", extra={"user_id": user_id})
            raise ValidationError(INVALID_RESET_TOKEN)

        users = UserRepository(db)
        user = users.get(user_id)
        if not user:
            raise ValidationError(INVALID_RESET_TOKEN)

        with transaction(db):
            users.update_password(user, hash_password(new_password))
            repo.mark_used(record, now)
        logger.info("reset_password_success", extra={"user_id": user_id})


auth_service = AuthService()
