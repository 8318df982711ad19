"""Models package: import all models so metadata.create_all can discover them."""

from backoffice.models.role import Role
from backoffice.models.menu import Menu, RoleMenuPermission
from backoffice.models.user import User
from backoffice.models.password_reset_token import PasswordResetToken
from backoffice.models.audit_log import AuditLog

__all__ = [
    "Role", "Menu", "RoleMenuPermission", "User",
    "PasswordResetToken", "AuditLog",
]
