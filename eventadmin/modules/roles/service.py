import logging
from typing import List

from eventadmin.core.dependencies import CallerScope, check_client_scope
from eventadmin.core.errors import Forbidden, NotFound
from eventadmin.modules.auth.identity import IdentityProvider
from eventadmin.modules.permissions.predicates import is_within_client_scope
from eventadmin.modules.permissions.schemas import (
    PermissionRecord, Role, claims_for_role, utcnow
)
from eventadmin.modules.permissions.store import PermissionStore
from eventadmin.modules.roles.schemas import RoleAssign

logger = logging.getLogger(__name__)


class RoleService:
    """Grant and revoke clientAdmin / eventAdmin roles.

    The permission record is written before the claims and deleted before the
    claims are cleared. A failure between the two steps therefore leaves either
    a record without claims (healed by the claims resolver on next sign-in) or
    claims without a record (resolved as a role with no scope).
    """

    def __init__(self, store: PermissionStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    def _check_client_admin_target(self, caller: CallerScope, target: PermissionRecord, action: str) -> None:
        if target.role != Role.EVENT_ADMIN:
            raise Forbidden(f"ClientAdmins can only {action} eventAdmin roles")
        check_client_scope(
            caller, target.client_ids or [],
            detail=f"You can only {action} roles for admins within your clients"
        )

    def assign_role(self, caller: CallerScope, data: RoleAssign) -> str:
        """Grant `data.role` to the principal with `data.email`. Returns its user id"""
        email = data.email.lower()

        if caller.role == Role.CLIENT_ADMIN:
            if data.role != Role.EVENT_ADMIN:
                raise Forbidden("ClientAdmins can only assign the eventAdmin role")
            check_client_scope(caller, data.client_ids, detail="You can only assign roles for your assigned clients")

        target = self.identity.get_user_by_email(email)
        if target is None:
            # Pre-provision so claims and scope are ready on first sign-in
            logger.info(f"Creating principal for {email} ahead of first sign-in")
            target = self.identity.create_user(email)

        existing = self.store.get(target.uid)
        if target.claims.is_superadmin or (existing is not None and existing.role == Role.SUPERADMIN):
            raise Forbidden("Cannot change a superadmin's role")
        if existing is not None and caller.role == Role.CLIENT_ADMIN:
            self._check_client_admin_target(caller, existing, "reassign")

        now = utcnow()
        record = PermissionRecord(
            user_id=target.uid,
            email=target.email or email,
            role=data.role,
            client_ids=list(data.client_ids),
            event_ids=list(data.event_ids) if data.event_ids else None,
            created_at=existing.created_at if existing else now,
            updated_at=now,
            created_by=existing.created_by if existing else caller.uid,
            updated_by=caller.uid,
        )
        self.store.upsert(record)
        self.identity.set_claims(target.uid, claims_for_role(data.role))
        logger.info(f"Assigned {data.role.value} to uid={target.uid} by uid={caller.uid}")
        return target.uid

    def remove_role(self, caller: CallerScope, user_id: str) -> None:
        target = self.store.get(user_id)
        if target is None:
            raise NotFound("User permissions not found")
        if target.role == Role.SUPERADMIN:
            raise Forbidden("Cannot remove superadmin role via API")
        if caller.role == Role.CLIENT_ADMIN:
            self._check_client_admin_target(caller, target, "remove")

        self.store.delete(user_id)
        self.identity.set_claims(user_id, claims_for_role(None))
        logger.info(f"Removed {target.role.value} from uid={user_id} by uid={caller.uid}")

    def list_admins(self, caller: CallerScope) -> List[PermissionRecord]:
        """Records the caller may manage: all for superadmin, in-scope eventAdmins for clientAdmin"""
        records = self.store.list_all()
        if caller.is_superadmin:
            return records
        scope = caller.effective_permissions()
        return [
            record for record in records
            if record.role == Role.EVENT_ADMIN
            and is_within_client_scope(scope, record.client_ids or [])
        ]
