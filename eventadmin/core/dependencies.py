"""
Core dependencies for route protection and scope checking
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import Iterable, Optional
import logging

from eventadmin.core.errors import Forbidden, Unauthorized
from eventadmin.database.supabase_client import get_supabase_admin
from eventadmin.modules.auth.identity import IdentityProvider, SupabaseIdentityProvider
from eventadmin.modules.auth.schemas import VerifiedToken
from eventadmin.modules.permissions.predicates import (
    can_access_client, can_access_event, is_within_client_scope
)
from eventadmin.modules.permissions.schemas import PermissionRecord, Role
from eventadmin.modules.permissions.store import PermissionStore, SupabasePermissionStore

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class CallerScope(BaseModel):
    """Authorized caller of a privileged endpoint."""
    token: VerifiedToken
    role: Role
    # None for superadmin (implicitly unscoped), else the caller's stored record
    permissions: Optional[PermissionRecord] = None

    @property
    def uid(self) -> str:
        return self.token.uid

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.SUPERADMIN

    def effective_permissions(self) -> PermissionRecord:
        """Record to feed the predicates.

        The role comes from the verified claims, the scope from the stored
        record. A missing record means no clients and no events.
        """
        stored = self.permissions
        return PermissionRecord(
            user_id=self.uid,
            email=self.token.email,
            role=self.role,
            client_ids=stored.client_ids if stored else [],
            event_ids=stored.event_ids if stored else [],
        )


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Extract the raw token from a `Authorization: Bearer ...` header"""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthorized()
    return credentials.credentials


def get_identity_provider() -> IdentityProvider:
    return SupabaseIdentityProvider(get_supabase_admin())


def get_permission_store() -> PermissionStore:
    return SupabasePermissionStore(get_supabase_admin())


def get_verified_token(
    token: str = Depends(get_bearer_token),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> VerifiedToken:
    return identity.verify_token(token)


def require_admin_caller(*accepted_roles: Role):
    """Factory for the privileged endpoint guard.

    Superadmin (claim or legacy admin claim) always passes. Otherwise the
    caller's role claim must be one of `accepted_roles`, and the caller's own
    permission record is loaded so handlers can check target scope.
    """
    def guard(
        request: Request,
        token: VerifiedToken = Depends(get_verified_token),
        store: PermissionStore = Depends(get_permission_store)
    ) -> CallerScope:
        if token.claims.is_superadmin:
            return CallerScope(token=token, role=Role.SUPERADMIN)
        role = token.claims.role
        if role not in accepted_roles:
            logger.warning(f"Rejected caller uid={token.uid} role={role} on {request.url.path}")
            raise Forbidden("Insufficient role for this operation")
        return CallerScope(token=token, role=role, permissions=store.get(token.uid))
    return guard


def check_client_scope(caller: CallerScope, client_ids: Iterable[str], detail: Optional[str] = None) -> None:
    """Every client id must be within the caller's clients"""
    if caller.is_superadmin:
        return
    if not is_within_client_scope(caller.effective_permissions(), client_ids):
        raise Forbidden(detail or "You do not have access to these clients")


def check_event_scope(caller: CallerScope, client_id: str, event_id: str) -> None:
    if caller.is_superadmin:
        return
    permissions = caller.effective_permissions()
    if not can_access_client(permissions, client_id):
        raise Forbidden("You do not have access to this client")
    if not can_access_event(permissions, client_id, event_id):
        raise Forbidden("You do not have access to this event")
