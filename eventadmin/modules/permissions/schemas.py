from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum


class Role(str, Enum):
    SUPERADMIN = "superadmin"
    CLIENT_ADMIN = "clientAdmin"
    EVENT_ADMIN = "eventAdmin"


# Roles that may be granted through the role-assignment endpoint
ASSIGNABLE_ROLES = (Role.CLIENT_ADMIN, Role.EVENT_ADMIN)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PermissionRecord(BaseModel):
    """Durable authorization grant for one principal (table: user_permissions).

    client_ids / event_ids keep None ("all") and [] ("none") apart.
    """
    user_id: str
    email: Optional[str] = None
    role: Role
    client_ids: Optional[List[str]] = None
    event_ids: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def to_row(self) -> Dict[str, Any]:
        """Row shape written to the store."""
        return self.model_dump(mode="json")


class TokenClaims(BaseModel):
    """Recognised custom claims carried by an identity token (app_metadata).

    Unknown keys are ignored; an unrecognised role string is treated as absent.
    """
    superadmin: bool = False
    admin: bool = False  # legacy superadmin flag
    role: Optional[Role] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("superadmin", "admin", mode="before")
    @classmethod
    def _strict_true(cls, value: Any) -> bool:
        return value is True

    @field_validator("role", mode="before")
    @classmethod
    def _known_role(cls, value: Any) -> Optional[str]:
        if value in (Role.CLIENT_ADMIN.value, Role.EVENT_ADMIN.value):
            return value
        return None

    @classmethod
    def from_metadata(cls, metadata: Optional[Dict[str, Any]]) -> "TokenClaims":
        return cls.model_validate(metadata or {})

    @property
    def is_superadmin(self) -> bool:
        return self.superadmin or self.admin


def claims_for_role(role: Optional[Role]) -> Dict[str, Any]:
    """Claims payload that makes a token carry `role`. None clears the role."""
    if role == Role.SUPERADMIN:
        return {"superadmin": True, "role": None}
    return {"role": role.value if role else None}


def synthesize_superadmin_record(user_id: str, email: Optional[str]) -> PermissionRecord:
    now = utcnow()
    return PermissionRecord(
        user_id=user_id,
        email=email,
        role=Role.SUPERADMIN,
        client_ids=None,
        event_ids=None,
        created_at=now,
        updated_at=now,
        created_by=user_id,
        updated_by=user_id,
    )
