"""Closed enumerations with their wire string form."""

import enum

from backoffice.core.exceptions import ValidationError


class WireEnum(str, enum.Enum):
    """String enum that rejects unknown wire values with a ValidationError."""

    @classmethod
    def from_wire(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise ValidationError(
                f"Invalid {cls.__name__} '{value}'. Allowed: {allowed}"
            ) from None


class UserStatus(WireEnum):
    active = "active"
    inactive = "inactive"
    pending = "pending"
    suspended = "suspended"


class UserGender(WireEnum):
    male = "male"
    female = "female"


class PermissionKind(WireEnum):
    """The five flags a RoleMenuPermission row grants."""

    can_view = "can_view"
    can_create = "can_create"
    can_update = "can_update"
    can_delete = "can_delete"
    can_confirm = "can_confirm"
