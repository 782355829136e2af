from pydantic import BaseModel
from typing import Optional

from eventadmin.modules.permissions.schemas import PermissionRecord, Role, TokenClaims


class Principal(BaseModel):
    """An identity known to the identity provider."""
    uid: str
    email: Optional[str] = None
    claims: TokenClaims = TokenClaims()


class VerifiedToken(Principal):
    """Principal extracted from a bearer token that passed verification."""
    token: str


class Resolution(BaseModel):
    role: Optional[Role] = None
    permissions: Optional[PermissionRecord] = None


class CheckPermissionsResponse(BaseModel):
    role: Optional[Role] = None
    permissions: Optional[PermissionRecord] = None
