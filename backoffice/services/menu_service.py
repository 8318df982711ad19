"""Menu service — administration of the navigation menu tree."""

from collections import defaultdict
from typing import Dict, List, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from backoffice.core.exceptions import ResourceNotFoundError, ValidationError
from backoffice.core.logging_config import get_logger
from backoffice.db.session import transaction
from backoffice.models.menu import Menu
from backoffice.repositories.menu_repository import MENU_FIELDS, MenuRepository
from backoffice.schemas.schemas import (
    MenuCreate, MenuDetailOut, MenuOut, MenuTreeOut, MenuUpdate,
)
from backoffice.services.audit_service import audit_service

logger = get_logger("services.menu")


def menu_snapshot(menu: Menu) -> dict:
    return {field: getattr(menu, field) for field in MENU_FIELDS}


class MenuService:
    """Menu CRUD that keeps the ``parent_id`` graph a forest."""

    @staticmethod
    def _get_or_404(db: Session, menu_id: int) -> Menu:
        menu = MenuRepository(db).get(menu_id)
        if not menu:
            raise ResourceNotFoundError(f"Menu {menu_id} not found")
        return menu

    @staticmethod
    def _validate_parent(db: Session, parent_id: Optional[int], menu_id: Optional[int] = None) -> None:
        """Parent must exist and must not be the menu itself or one of its descendants."""
        if parent_id is None:
            return
        if menu_id is not None and parent_id == menu_id:
            raise ValidationError("A menu cannot be its own parent")

        repo = MenuRepository(db)
        parent = repo.get(parent_id)
        if parent is None:
            raise ValidationError(f"Parent menu {parent_id} not found")
        if menu_id is None:
            return

        seen = set()
        current = parent
        while current is not None and current.id not in seen:
            if current.parent_id == menu_id:
                raise ValidationError("A menu cannot be moved under one of its descendants")
            seen.add(current.id)
            current = repo.get(current.parent_id) if current.parent_id is not None else None

    @staticmethod
    def list_menus(db: Session) -> List[Menu]:
        return MenuRepository(db).list_all()

    @staticmethod
    def get_menu(db: Session, menu_id: int) -> MenuDetailOut:
        """Get a menu with its parent and ordered children."""
        menu = MenuService._get_or_404(db, menu_id)
        return MenuDetailOut(
            **MenuOut.model_validate(menu).model_dump(),
            parent=MenuOut.model_validate(menu.parent) if menu.parent else None,
            children=[MenuOut.model_validate(child) for child in menu.children],
        )

    @staticmethod
    def create_menu(
        db: Session,
        body: MenuCreate,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> Menu:
        MenuService._validate_parent(db, body.parent_id)
        with transaction(db):
            menu = MenuRepository(db).create(body.model_dump(), actor_id=actor_id)
            audit_service.log(
                db, actor_id, "menu.created", "menu", menu.id,
                new_value=menu_snapshot(menu),
                request=request,
            )
        logger.info("menu_created", extra={"menu_id": menu.id, "title": menu.title})
        return menu

    @staticmethod
    def update_menu(
        db: Session,
        menu_id: int,
        body: MenuUpdate,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> Menu:
        """Partial update; an explicit ``parent_id: null`` moves the menu to the top level."""
        menu = MenuService._get_or_404(db, menu_id)
        changes = body.model_dump(exclude_unset=True)
        if "parent_id" in changes:
            MenuService._validate_parent(db, changes["parent_id"], menu_id)

        old = menu_snapshot(menu)
        with transaction(db):
            MenuRepository(db).update(menu, changes, actor_id=actor_id)
            audit_service.log(
                db, actor_id, "menu.updated", "menu", menu_id,
                old_value=old,
                new_value=menu_snapshot(menu),
                request=request,
            )
        logger.info("menu_updated", extra={"menu_id": menu_id})
        return menu

    @staticmethod
    def delete_menu(
        db: Session,
        menu_id: int,
        actor_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> None:
        """Delete a menu; its children and permission rows cascade."""
        menu = MenuService._get_or_404(db, menu_id)
        old = menu_snapshot(menu)
        with transaction(db):
            MenuRepository(db).delete(menu)
            audit_service.log(
                db, actor_id, "menu.deleted", "menu", menu_id,
                old_value=old,
                request=request,
            )
        logger.info("menu_deleted", extra={"menu_id": menu_id})

    @staticmethod
    def menu_hierarchy(db: Session) -> List[MenuTreeOut]:
        """Active menus as a tree. A menu under an inactive parent is listed at the top level."""
        menus = MenuRepository(db).list_active()
        active_ids = {m.id for m in menus}

        children: Dict[Optional[int], List[Menu]] = defaultdict(list)
        for menu in menus:
            parent_id = menu.parent_id if menu.parent_id in active_ids else None
            children[parent_id].append(menu)

        def build(menu: Menu, path: frozenset) -> MenuTreeOut:
            return MenuTreeOut(
                **MenuOut.model_validate(menu).model_dump(),
                children=[
                    build(child, path | {child.id})
                    for child in children[menu.id]
                    if child.id not in path
                ],
            )

        return [build(root, frozenset({root.id})) for root in children[None]]


menu_service = MenuService()
