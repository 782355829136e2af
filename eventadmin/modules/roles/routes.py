from fastapi import APIRouter, Depends
from typing import List

from eventadmin.core.dependencies import (
    CallerScope, get_identity_provider, get_permission_store, require_admin_caller
)
from eventadmin.modules.auth.identity import IdentityProvider
from eventadmin.modules.permissions.schemas import PermissionRecord, Role
from eventadmin.modules.permissions.store import PermissionStore
from eventadmin.modules.roles.schemas import (
    RoleAssign, RoleAssignResponse, RoleRemove, RoleRemoveResponse
)
from eventadmin.modules.roles.service import RoleService

router = APIRouter(prefix="/roles", tags=["roles"])


def get_role_service(
    store: PermissionStore = Depends(get_permission_store),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> RoleService:
    return RoleService(store, identity)


@router.post("/assign", response_model=RoleAssignResponse)
async def assign_role(
    data: RoleAssign,
    caller: CallerScope = Depends(require_admin_caller(Role.CLIENT_ADMIN)),
    service: RoleService = Depends(get_role_service)
):
    """Grant clientAdmin / eventAdmin to a principal by email (superadmin or clientAdmin)"""
    user_id = service.assign_role(caller, data)
    return RoleAssignResponse(user_id=user_id)


@router.delete("/remove", response_model=RoleRemoveResponse)
async def remove_role(
    data: RoleRemove,
    caller: CallerScope = Depends(require_admin_caller(Role.CLIENT_ADMIN)),
    service: RoleService = Depends(get_role_service)
):
    """Revoke a principal's role and delete its permission record"""
    service.remove_role(caller, data.user_id)
    return RoleRemoveResponse()


@router.get("/admins", response_model=List[PermissionRecord])
async def list_admins(
    caller: CallerScope = Depends(require_admin_caller(Role.CLIENT_ADMIN)),
    service: RoleService = Depends(get_role_service)
):
    """List the permission records the caller can manage"""
    return service.list_admins(caller)
