"""Seed default roles into the database."""

from sqlalchemy.orm import Session

from backoffice.models.role import Role

DEFAULT_ROLES = [
    {"name": "super_admin", "level": 100},
    {"name": "admin", "level": 50},
    {"name": "user", "level": 1},
]


def seed_roles(db: Session) -> int:
    """Insert default roles if they don't already exist. Returns how many were added."""
    added = 0
    for role_data in DEFAULT_ROLES:
        existing = db.query(Role).filter(Role.name == role_data["name"]).first()
        if not existing:
            db.add(Role(**role_data))
            added += 1

    db.commit()
    print(f"Seeded {added} of {len(DEFAULT_ROLES)} roles")
    return added
