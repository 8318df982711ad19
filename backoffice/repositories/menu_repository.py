"""Menu repository."""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from backoffice.core.logging_config import get_logger
from backoffice.models.menu import Menu

logger = get_logger("repositories.menu")

MENU_FIELDS = (
    "title", "url", "icon", "parent_id", "order", "is_active",
    "can_view", "can_add", "can_edit", "can_delete", "can_confirm",
)


class MenuRepository:
    """Wraps ORM access to menus. Never commits; callers own the transaction."""

    def __init__(self, db: Session):
        self.db = db

    def _ordered(self, query):
        return query.order_by(Menu.order, Menu.created_at, Menu.id)

    def list_all(self) -> List[Menu]:
        logger.debug("repo_find_all_menus")
        return self._ordered(self.db.query(Menu)).all()

    def list_active(self) -> List[Menu]:
        return self._ordered(self.db.query(Menu).filter(Menu.is_active.is_(True))).all()

    def get(self, menu_id: int) -> Optional[Menu]:
        logger.debug("repo_find_menu_by_id", extra={"menu_id": menu_id})
        return self.db.query(Menu).filter(Menu.id == menu_id).first()

    def get_many(self, menu_ids: Iterable[int]) -> List[Menu]:
        ids = list(set(menu_ids))
        if not ids:
            return []
        return self.db.query(Menu).filter(Menu.id.in_(ids)).all()

    def create(self, data: dict, actor_id: Optional[int] = None) -> Menu:
        logger.debug("repo_create_menu", extra={"title": data.get("title")})
        menu = Menu(
            **{k: v for k, v in data.items() if k in MENU_FIELDS and v is not None},
            created_by=actor_id,
            updated_by=actor_id,
        )
        self.db.add(menu)
        self.db.flush()
        return menu

    def update(self, menu: Menu, data: dict, actor_id: Optional[int] = None) -> Menu:
        """Apply the keys present in ``data``; ``parent_id=None`` detaches the menu."""
        for key, value in data.items():
            if key not in MENU_FIELDS:
                continue
            if value is None and key != "parent_id":
                continue
            setattr(menu, key, value)
        menu.updated_by = actor_id
        self.db.flush()
        return menu

    def delete(self, menu: Menu) -> None:
        logger.debug("repo_delete_menu", extra={"menu_id": menu.id})
        self.db.delete(menu)
        self.db.flush()
