from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional

from eventadmin.modules.permissions.schemas import ASSIGNABLE_ROLES, Role


class RoleAssign(BaseModel):
    email: EmailStr
    role: Role
    client_ids: List[str] = Field(..., min_length=1)
    event_ids: Optional[List[str]] = None

    @field_validator("role")
    @classmethod
    def _assignable(cls, value: Role) -> Role:
        if value not in ASSIGNABLE_ROLES:
            allowed = ", ".join(r.value for r in ASSIGNABLE_ROLES)
            raise ValueError(f"role must be one of: {allowed}")
        return value


class RoleAssignResponse(BaseModel):
    success: bool = True
    user_id: str


class RoleRemove(BaseModel):
    user_id: str = Field(..., min_length=1)


class RoleRemoveResponse(BaseModel):
    success: bool = True
