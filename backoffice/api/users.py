"""Users API router: administration plus the caller's menus and permissions."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from backoffice.core.response import create_response
from backoffice.core.security import AuthContext, get_current_user, require_admin
from backoffice.db.session import get_db
from backoffice.schemas.schemas import AuditLogOut, UserCreate, UserUpdate
from backoffice.services.permission_service import PermissionService
from backoffice.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["users"])


def get_permission_service(db: Session = Depends(get_db)) -> PermissionService:
    return PermissionService(db)


@router.get("/menus")
async def my_menus(
    auth: AuthContext = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    """Menu tree the caller's role can reach."""
    menus = permissions.resolve_accessible_menus(auth.user_id)
    return create_response({"menus": [m.model_dump() for m in menus]})


@router.get("/permissions")
async def my_permissions(
    auth: AuthContext = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    """Flat permission rows of the caller's role."""
    rows = permissions.resolve_flat_permissions(auth.user_id)
    return create_response({"permissions": [r.model_dump() for r in rows]})


@router.get("/sidebar")
async def my_sidebar(
    auth: AuthContext = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    """Sidebar navigation for the caller."""
    return create_response(permissions.sidebar(auth.user_id))


@router.get("/access")
async def my_access(
    menu_id: int = Query(...),
    permission: str = Query("can_view"),
    auth: AuthContext = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    """Whether the caller holds one permission on one menu."""
    allowed = permissions.check_access(auth.user_id, menu_id, permission)
    return create_response({"menu_id": menu_id, "permission": permission, "allowed": allowed})


@router.get("")
async def list_users(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """List all users (super_admin only)."""
    result = user_service.list_users(db, auth, limit=limit, offset=offset)
    return create_response(
        [u.model_dump(mode="json") for u in result["users"]],
        pagination={"total": result["total"], "limit": limit, "offset": offset},
    )


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Get a user by id."""
    return create_response(user_service.get_user(db, user_id).model_dump(mode="json"))


@router.get("/{user_id}/logs")
async def get_user_logs(
    user_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Audit history of a user record."""
    result = user_service.user_logs(db, user_id, limit=limit, offset=offset)
    return create_response(
        [AuditLogOut.model_validate(log).model_dump(mode="json") for log in result["logs"]],
        pagination={"total": result["total"], "limit": limit, "offset": offset},
    )


@router.post("", status_code=201)
async def create_user(
    body: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Create a user."""
    user = user_service.create_user(db, body, actor_id=auth.user_id, request=request)
    return create_response(user.model_dump(mode="json"), "User created", 201)


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Update a user."""
    user = user_service.update_user(db, user_id, body, actor_id=auth.user_id, request=request)
    return create_response(user.model_dump(mode="json"), "User updated")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Delete a user. Deleting yourself is refused."""
    user_service.delete_user(db, user_id, actor_id=auth.user_id, request=request)
    return create_response(None, "User deleted")
