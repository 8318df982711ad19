"""Menus API router: navigation menu administration."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from backoffice.core.response import create_response
from backoffice.core.security import AuthContext, RequireMenuPermission, require_admin
from backoffice.db.session import get_db
from backoffice.schemas.schemas import MenuCreate, MenuOut, MenuUpdate
from backoffice.services.menu_service import menu_service

router = APIRouter(prefix="/menus", tags=["menus"])

# The seeded "Menu Management" entry; writes also need its matching flag
MENU_MANAGEMENT_URL = "/menus"


def _out(menu) -> dict:
    return MenuOut.model_validate(menu).model_dump(mode="json")


@router.get("")
async def list_menus(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """List every menu, flat, in display order."""
    return create_response([_out(m) for m in menu_service.list_menus(db)])


@router.get("/hierarchy")
async def menu_hierarchy(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Active menus as a tree."""
    tree = menu_service.menu_hierarchy(db)
    return create_response([node.model_dump(mode="json") for node in tree])


@router.get("/{menu_id}")
async def get_menu(
    menu_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Get a menu with its parent and children."""
    return create_response(menu_service.get_menu(db, menu_id).model_dump(mode="json"))


@router.post(
    "", status_code=201,
    dependencies=[Depends(RequireMenuPermission(MENU_MANAGEMENT_URL, "can_create"))],
)
async def create_menu(
    body: MenuCreate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Create a menu."""
    menu = menu_service.create_menu(db, body, actor_id=auth.user_id, request=request)
    return create_response(_out(menu), "Menu created", 201)


@router.put(
    "/{menu_id}",
    dependencies=[Depends(RequireMenuPermission(MENU_MANAGEMENT_URL, "can_update"))],
)
async def update_menu(
    menu_id: int,
    body: MenuUpdate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Update a menu."""
    menu = menu_service.update_menu(db, menu_id, body, actor_id=auth.user_id, request=request)
    return create_response(_out(menu), "Menu updated")


@router.delete(
    "/{menu_id}",
    dependencies=[Depends(RequireMenuPermission(MENU_MANAGEMENT_URL, "can_delete"))],
)
async def delete_menu(
    menu_id: int,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Delete a menu and its descendants."""
    menu_service.delete_menu(db, menu_id, actor_id=auth.user_id, request=request)
    return create_response(None, "Menu deleted")
