"""
Claims resolution with self-healing.

Given a verified token, decide the caller's role and scope. Lookup order is
strictly sequential and first match wins:

1. superadmin claim (or legacy admin claim): no record read.
2. clientAdmin/eventAdmin claim: record by user id, which may be absent.
3. no usable claim: record by user id, healing the claims when found;
   otherwise record by email, migrating it to the current user id.

Store failures propagate as StoreOperationFailed; only a missing record is
treated as "no permissions".
"""

import logging
from typing import Tuple

from eventadmin.modules.auth.identity import IdentityProvider
from eventadmin.modules.auth.schemas import Principal, Resolution, VerifiedToken
from eventadmin.modules.permissions.schemas import (
    PermissionRecord, Role, claims_for_role, utcnow
)
from eventadmin.modules.permissions.store import PermissionStore

logger = logging.getLogger(__name__)


class ClaimsResolver:
    def __init__(self, store: PermissionStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    def resolve(self, token: VerifiedToken) -> Resolution:
        uid = token.uid
        claims = token.claims
        logger.info(
            f"Resolving uid={uid} email={token.email} claims="
            f"superadmin={claims.superadmin} admin={claims.admin} role={claims.role}"
        )

        if claims.is_superadmin:
            logger.info("-> superadmin (from claims)")
            return Resolution(role=Role.SUPERADMIN, permissions=None)

        if claims.role in (Role.CLIENT_ADMIN, Role.EVENT_ADMIN):
            record = self.store.get(uid)
            if record is None:
                logger.warning(f"-> {claims.role.value} (from claims) but no permission record for uid={uid}")
            else:
                logger.info(f"-> {claims.role.value} (from claims)")
            return Resolution(role=claims.role, permissions=record)

        record = self.store.get(uid)
        if record is not None:
            logger.info(f"-> {record.role.value} (from record by uid, healing claims)")
            self._heal_claims(uid, record.role)
            return Resolution(role=record.role, permissions=record)

        if not token.email:
            logger.info("-> no permissions (no record by uid, no email to fall back on)")
            return Resolution()

        legacy = self.store.find_by_email(token.email)
        if legacy is None:
            logger.info("-> no permissions found anywhere")
            return Resolution()

        migrated = self._migrate(legacy, uid)
        self._heal_claims(uid, migrated.role)
        return Resolution(role=migrated.role, permissions=migrated)

    def _migrate(self, legacy: PermissionRecord, uid: str) -> PermissionRecord:
        """Move a record found by email to the canonical user id"""
        old_id = legacy.user_id
        logger.info(f"-> {legacy.role.value} (from email lookup, old id={old_id}, migrating to uid={uid})")
        migrated = legacy.model_copy(update={"user_id": uid, "updated_at": utcnow()})
        migrated = self.store.upsert(migrated)
        if old_id != uid:
            self.store.delete(old_id)
        return migrated

    def _heal_claims(self, uid: str, role: Role) -> None:
        self.identity.set_claims(uid, claims_for_role(role))

    def preview(self, principal: Principal) -> Tuple[Resolution, str]:
        """What resolve() would return and which step decides it, without writing anything"""
        claims = principal.claims
        if claims.is_superadmin:
            return Resolution(role=Role.SUPERADMIN), "superadmin claim"
        if claims.role in (Role.CLIENT_ADMIN, Role.EVENT_ADMIN):
            return Resolution(role=claims.role, permissions=self.store.get(principal.uid)), "role claim"

        record = self.store.get(principal.uid)
        if record is not None:
            return Resolution(role=record.role, permissions=record), "record by user id (claims would be healed)"
        if principal.email:
            legacy = self.store.find_by_email(principal.email)
            if legacy is not None:
                return Resolution(role=legacy.role, permissions=legacy), "record by email (would be migrated)"
        return Resolution(), "no permissions"
