"""Seed the super-admin user from env vars and grant it every menu."""

from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.enums import UserStatus
from backoffice.core.security import hash_password
from backoffice.models.menu import Menu
from backoffice.models.role import Role
from backoffice.models.user import User
from backoffice.repositories.role_repository import PERMISSION_FLAGS, RoleRepository


def grant_all_menus(db: Session, role: Role) -> int:
    """Replace the role's permissions with full rights on every menu."""
    rows = [
        {"menu_id": menu_id, **{flag: True for flag in PERMISSION_FLAGS}}
        for (menu_id,) in db.query(Menu.id).order_by(Menu.id).all()
    ]
    RoleRepository(db).replace_permissions(role.id, rows)
    return len(rows)


def seed_super_admin(db: Session) -> bool:
    """Create the super-admin user if not already present. Returns False when the role is missing."""
    super_admin_role = db.query(Role).filter(Role.name == "super_admin").first()
    if not super_admin_role:
        print("super_admin role not found. Run seed_roles first.")
        return False

    granted = grant_all_menus(db, super_admin_role)
    print(f"Granted super_admin full access to {granted} menus")

    email = settings.SUPER_ADMIN_EMAIL.strip().lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        print(f"Super admin '{email}' already exists, skipping.")
        db.commit()
        return True

    admin = User(
        email=email,
        password=hash_password(settings.SUPER_ADMIN_PASSWORD),
        name="Super Admin",
        status=UserStatus.active,
        role_id=super_admin_role.id,
    )
    db.add(admin)
    db.commit()
    print(f"Created super admin: {email}")
    return True
