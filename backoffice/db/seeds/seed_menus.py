"""Seed the default navigation menu tree."""

from sqlalchemy.orm import Session

from backoffice.models.menu import Menu

# (title, url, icon, order, children)
DEFAULT_MENUS = [
    ("Dashboard", "/dashboard", "House", 1, []),
    ("Users", "#", "UsersRound", 2, [
        ("Manage Users", "/users", "UsersRound", 1, []),
        ("Manage Roles", "/roles", "ShieldCheck", 2, []),
    ]),
    ("Asset", "/asset", "Boxes", 3, []),
    ("Unit", "/unit", "Building2", 4, []),
    ("Tenants", "/tenants", "Building2", 5, []),
    ("Menu Management", "/menus", "Menu", 6, []),
]


def _seed_level(db: Session, entries, parent_id=None) -> int:
    added = 0
    for title, url, icon, order, children in entries:
        menu = (
            db.query(Menu)
            .filter(Menu.title == title, Menu.parent_id == parent_id)
            .first()
        )
        if not menu:
            menu = Menu(title=title, url=url, icon=icon, order=order, parent_id=parent_id, is_active=True)
            db.add(menu)
            db.flush()
            added += 1
        added += _seed_level(db, children, menu.id)
    return added


def seed_menus(db: Session) -> int:
    """Insert the default menus that are missing. Returns how many were added."""
    added = _seed_level(db, DEFAULT_MENUS)
    db.commit()
    print(f"Seeded {added} menus")
    return added
