"""JWT authentication, role gating, menu-permission gating and internal basic auth."""

import secrets
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import (
    HTTPBasic, HTTPBasicCredentials, HTTPBearer, HTTPAuthorizationCredentials,
)
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.enums import UserStatus
from backoffice.core.exceptions import ConfigurationError, forbidden, unauthorized
from backoffice.core.logging_config import get_logger
from backoffice.db.session import get_db
from backoffice.repositories.user_repository import UserRepository
from backoffice.services.permission_service import PermissionService

logger = get_logger("security")

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)
basic_scheme = HTTPBasic(auto_error=False)

INTERNAL_REALM = "Internal"


class AuthContext(BaseModel):
    """Authenticated caller; the role name is read from the database per request."""

    user_id: int
    email: str
    role_id: Optional[int] = None
    role_name: Optional[str] = None


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_access_token(
    user_id: int,
    role_id: Optional[int],
    email: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token carrying ``{sub, roleId, email}``."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(seconds=settings.token_ttl_seconds)
    )
    payload = {"sub": str(user_id), "roleId": role_id, "email": email, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise unauthorized("Invalid or expired token")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Resolve the bearer token to a live user and its current role."""
    if credentials is None:
        raise unauthorized()
    payload = decode_token(credentials.credentials)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise unauthorized("Invalid token payload")

    user = UserRepository(db).get(user_id)
    if user is None or user.status != UserStatus.active:
        raise unauthorized()

    return AuthContext(
        user_id=user.id,
        email=user.email,
        role_id=user.role_id,
        role_name=user.role.name if user.role else None,
    )


class RequireRole:
    """Dependency that lets only the named roles through."""

    def __init__(self, *role_names: str):
        self.role_names = set(role_names)

    async def __call__(self, auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if auth.role_name not in self.role_names:
            logger.warning(
                "role_forbidden",
                extra={"user_id": auth.user_id, "role": auth.role_name},
            )
            raise forbidden("Forbidden: insufficient role access")
        return auth


class RequireMenuPermission:
    """Dependency that checks one permission flag on the menu at ``url``."""

    def __init__(self, url: str, permission: str = "can_view"):
        self.url = url
        self.permission = permission

    async def __call__(
        self,
        auth: AuthContext = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> AuthContext:
        if not PermissionService(db).check_access_by_url(auth.user_id, self.url, self.permission):
            raise forbidden(f"Forbidden: missing {self.permission} on {self.url}")
        return auth


# Role gate for the administration routes
require_admin = RequireRole("super_admin", "admin")


def _constant_time_equals(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


async def require_internal_basic_auth(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_scheme),
) -> str:
    """HTTP Basic auth against INTERNAL_BASIC_AUTH_USER/PASS for ops endpoints."""
    expected_user = settings.INTERNAL_BASIC_AUTH_USER
    expected_pass = settings.INTERNAL_BASIC_AUTH_PASS
    if not expected_user or not expected_pass:
        raise ConfigurationError(
            "Server misconfiguration: missing INTERNAL_BASIC_AUTH_USER/INTERNAL_BASIC_AUTH_PASS"
        )

    challenge = f'Basic realm="{INTERNAL_REALM}"'
    if credentials is None:
        raise unauthorized(scheme=challenge)

    ok_user = _constant_time_equals(credentials.username, expected_user)
    ok_pass = _constant_time_equals(credentials.password, expected_pass)
    if not (ok_user and ok_pass):
        logger.warning("internal_basic_auth_failed")
        raise unauthorized(scheme=challenge)
    return credentials.username
