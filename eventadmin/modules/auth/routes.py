from fastapi import APIRouter, Depends

from eventadmin.core.dependencies import (
    get_bearer_token, get_identity_provider, get_permission_store
)
from eventadmin.modules.auth.identity import IdentityProvider
from eventadmin.modules.auth.resolver import ClaimsResolver
from eventadmin.modules.auth.schemas import CheckPermissionsResponse
from eventadmin.modules.permissions.store import PermissionStore

router = APIRouter(prefix="/auth", tags=["auth"])


def get_claims_resolver(
    store: PermissionStore = Depends(get_permission_store),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> ClaimsResolver:
    return ClaimsResolver(store, identity)


@router.get("/check-permissions", response_model=CheckPermissionsResponse)
async def check_permissions(
    token: str = Depends(get_bearer_token),
    identity: IdentityProvider = Depends(get_identity_provider),
    resolver: ClaimsResolver = Depends(get_claims_resolver)
):
    """Resolve the caller's role and scope, healing stale claims on the way.

    503 when the identity provider admin client is not configured (the
    dashboard falls back instead of logging out); 401 for a missing or bad token.
    """
    verified = identity.verify_token(token)
    resolution = resolver.resolve(verified)
    return CheckPermissionsResponse(role=resolution.role, permissions=resolution.permissions)
