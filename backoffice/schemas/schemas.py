"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime


# ---- Auth ----
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)

class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3)

class ResetPasswordRequest(BaseModel):
    user_id: int
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


# ---- User ----
class UserOut(BaseModel):
    id: int
    email: str
    name: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    status: str
    role_id: Optional[int] = None
    role_name: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    gender: Optional[str] = None
    status: str = "active"
    role_id: int

class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    gender: Optional[str] = None
    status: Optional[str] = None
    role_id: Optional[int] = None


# ---- Permission ----
class MenuPermissionIn(BaseModel):
    menu_id: int
    can_view: bool = False
    can_create: bool = False
    can_update: bool = False
    can_delete: bool = False
    can_confirm: bool = False

class MenuPermissionOut(BaseModel):
    menu_id: int
    can_view: bool
    can_create: bool
    can_update: bool
    can_delete: bool
    can_confirm: bool

    class Config:
        from_attributes = True

class MenuPermissionNode(BaseModel):
    id: int
    title: str
    url: Optional[str] = None
    icon: Optional[str] = None
    order: int = 0
    is_active: bool = True
    can_view: bool
    can_create: bool
    can_update: bool
    can_delete: bool
    can_confirm: bool
    children: List["MenuPermissionNode"] = []


# ---- Role ----
class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    level: int = 0
    menu_permissions: Optional[List[MenuPermissionIn]] = None

class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    level: Optional[int] = None
    menu_permissions: Optional[List[MenuPermissionIn]] = None

class RolePermissionsUpdate(BaseModel):
    menu_permissions: List[MenuPermissionIn]

class RoleOut(BaseModel):
    id: int
    name: str
    level: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RoleDetailOut(RoleOut):
    menu_permissions: List[MenuPermissionOut] = []


# ---- Menu ----
class MenuCreate(BaseModel):
    title: str = Field(..., min_length=1)
    url: Optional[str] = None
    icon: Optional[str] = None
    parent_id: Optional[int] = None
    order: int = 0
    is_active: bool = True
    can_view: bool = True
    can_add: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_confirm: bool = False

class MenuUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    url: Optional[str] = None
    icon: Optional[str] = None
    parent_id: Optional[int] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
    can_view: Optional[bool] = None
    can_add: Optional[bool] = None
    can_edit: Optional[bool] = None
    can_delete: Optional[bool] = None
    can_confirm: Optional[bool] = None

class MenuOut(BaseModel):
    id: int
    title: str
    url: Optional[str] = None
    icon: Optional[str] = None
    parent_id: Optional[int] = None
    order: int
    is_active: bool
    can_view: bool
    can_add: bool
    can_edit: bool
    can_delete: bool
    can_confirm: bool
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MenuTreeOut(MenuOut):
    children: List["MenuTreeOut"] = []

class MenuDetailOut(MenuOut):
    parent: Optional[MenuOut] = None
    children: List[MenuOut] = []


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    actor_id: Optional[int] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    old_value_json: Optional[str] = None
    new_value_json: Optional[str] = None
    request_id: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


MenuPermissionNode.model_rebuild()
MenuTreeOut.model_rebuild()
