# tests/factories.py

"""
Row builders shared by the test modules.
"""

from backoffice.core.enums import UserStatus
from backoffice.core.security import create_access_token, hash_password
from backoffice.models.menu import Menu, RoleMenuPermission
from backoffice.models.role import Role
from backoffice.models.user import User

PASSWORD = "secret123"
_PASSWORD_HASH = hash_password(PASSWORD)


def make_role(db, name, level=0):
    role = Role(name=name, level=level)
    db.add(role)
    db.commit()
    return role


def make_menu(db, title, parent=None, order=0, url=None, is_active=True, icon=None):
    menu = Menu(
        title=title,
        url=url if url is not None else f"/{title.lower().replace(' ', '-')}",
        icon=icon,
        parent_id=parent.id if parent is not None else None,
        order=order,
        is_active=is_active,
    )
    db.add(menu)
    db.commit()
    return menu


def grant(db, role, menu, **flags):
    row = RoleMenuPermission(role_id=role.id, menu_id=menu.id, **flags)
    db.add(row)
    db.commit()
    return row


def make_user(db, email, role=None, status=UserStatus.active, name=None):
    user = User(
        email=email,
        password=_PASSWORD_HASH,
        name=name or email.split("@")[0],
        status=status,
        role_id=role.id if role is not None else None,
    )
    db.add(user)
    db.commit()
    return user


def auth_header(user) -> dict:
    token = create_access_token(user.id, user.role_id, user.email)
    return {"Authorization": f"Bearer {token}"}


