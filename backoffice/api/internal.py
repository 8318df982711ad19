"""Internal API router: machine-to-machine endpoints behind HTTP Basic auth."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.core.exceptions import ValidationError
from backoffice.core.logging_config import get_logger
from backoffice.core.response import create_response
from backoffice.core.security import require_internal_basic_auth
from backoffice.db.session import get_db
from backoffice.services.permission_service import PermissionService

logger = get_logger("api.internal")

router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(require_internal_basic_auth)],
)


def database_ok(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.exception("database_health_check_failed")
        return False


@router.get("/health")
async def internal_health(db: Session = Depends(get_db)):
    """Database reachability."""
    db_ok = database_ok(db)
    return create_response(
        {"database": "ok" if db_ok else "error", "status": "healthy" if db_ok else "degraded"},
        status=200,
    )


@router.get("/users/{user_id}/permissions")
async def user_permissions(user_id: int, db: Session = Depends(get_db)):
    """Flat permissions and menu tree of any user."""
    service = PermissionService(db)
    return create_response({
        "permissions": [p.model_dump() for p in service.resolve_flat_permissions(user_id)],
        "menus": [m.model_dump() for m in service.resolve_accessible_menus(user_id)],
    })


@router.get("/users/{user_id}/access")
async def user_access(
    user_id: int,
    menu_id: Optional[int] = Query(None),
    url: Optional[str] = Query(None),
    permission: str = Query("can_view"),
    db: Session = Depends(get_db),
):
    """Check one permission of any user, by menu id or by menu URL."""
    service = PermissionService(db)
    if menu_id is not None:
        allowed = service.check_access(user_id, menu_id, permission)
    elif url:
        allowed = service.check_access_by_url(user_id, url, permission)
    else:
        raise ValidationError("menu_id or url is required")
    return create_response({
        "user_id": user_id,
        "menu_id": menu_id,
        "url": url,
        "permission": permission,
        "allowed": allowed,
    })
