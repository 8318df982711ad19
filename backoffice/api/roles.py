"""Roles API router: role CRUD and the role's menu permission matrix."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from backoffice.core.response import create_response
from backoffice.core.security import AuthContext, require_admin
from backoffice.db.session import get_db
from backoffice.schemas.schemas import (
    RoleCreate, RoleOut, RolePermissionsUpdate, RoleUpdate,
)
from backoffice.services.role_service import role_service

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("")
async def list_roles(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """List roles, most senior first."""
    roles = role_service.list_roles(db)
    return create_response([RoleOut.model_validate(r).model_dump(mode="json") for r in roles])


@router.get("/{role_id}")
async def get_role(
    role_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Get a role with its menu permissions."""
    return create_response(role_service.get_role(db, role_id).model_dump(mode="json"))


@router.post("", status_code=201)
async def create_role(
    body: RoleCreate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Create a role, optionally with its menu permissions."""
    role = role_service.create_role(db, body, actor_id=auth.user_id, request=request)
    return create_response(role.model_dump(mode="json"), "Role created", 201)


@router.put("/{role_id}")
async def update_role(
    role_id: int,
    body: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Update a role; ``menu_permissions`` replaces the whole set."""
    role = role_service.update_role(db, role_id, body, actor_id=auth.user_id, request=request)
    return create_response(role.model_dump(mode="json"), "Role updated")


@router.put("/{role_id}/permissions")
async def set_role_permissions(
    role_id: int,
    body: RolePermissionsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Replace every menu permission of the role."""
    role = role_service.set_menu_permissions(
        db, role_id, body.menu_permissions, actor_id=auth.user_id, request=request,
    )
    return create_response(role.model_dump(mode="json"), "Permissions updated")


@router.delete("/{role_id}")
async def delete_role(
    role_id: int,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Delete a role that no user holds."""
    role_service.delete_role(db, role_id, actor_id=auth.user_id, request=request)
    return create_response(None, "Role deleted")
