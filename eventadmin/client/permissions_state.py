"""
Client-side permission state.

Tracks which principal a resolution belongs to, so `loading` stays true until
permissions for the *current* principal arrive. A principal switch cancels the
in-flight resolution, and a result that still lands for a superseded principal
is dropped. Resolution errors resolve to no role and no permissions, except a
503 from the resolver endpoint, which hands over to the optional fallback
fetch (usually `direct_fetch`, reading claims and the stored record itself).

Must be driven from a running event loop.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Union

from eventadmin.client.permissions_api import PermissionsApiError
from eventadmin.modules.auth.schemas import Principal
from eventadmin.modules.permissions.schemas import (
    PermissionRecord, Role, synthesize_superadmin_record
)
from eventadmin.modules.permissions.store import PermissionStore

logger = logging.getLogger(__name__)

# principal -> (role, permissions); the principal exposes .uid and .email
Fetch = Callable[[Any], Awaitable[Tuple[Optional[Role], Optional[PermissionRecord]]]]


@dataclass(frozen=True)
class Loading:
    principal_id: Optional[str] = None  # None while auth is initializing


@dataclass(frozen=True)
class Resolved:
    principal_id: str
    role: Optional[Role] = None
    permissions: Optional[PermissionRecord] = None


@dataclass(frozen=True)
class SignedOut:
    pass


PermissionState = Union[Loading, Resolved, SignedOut]


class PermissionsStateMachine:
    def __init__(self, fetch: Fetch, fallback: Optional[Fetch] = None):
        self._fetch = fetch
        self._fallback = fallback
        self._state: PermissionState = Loading()
        self._principal_id: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> PermissionState:
        return self._state

    def _current(self) -> Optional[Resolved]:
        state = self._state
        if isinstance(state, Resolved) and state.principal_id == self._principal_id:
            return state
        return None

    @property
    def loading(self) -> bool:
        return not isinstance(self._state, SignedOut) and self._current() is None

    @property
    def role(self) -> Optional[Role]:
        current = self._current()
        return current.role if current else None

    @property
    def permissions(self) -> Optional[PermissionRecord]:
        current = self._current()
        return current.permissions if current else None

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPERADMIN

    @property
    def is_client_admin(self) -> bool:
        return self.role == Role.CLIENT_ADMIN

    @property
    def is_event_admin(self) -> bool:
        return self.role == Role.EVENT_ADMIN

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def auth_initializing(self) -> None:
        self._cancel()
        self._principal_id = None
        self._state = Loading()

    def principal_changed(self, principal: Optional[Any]) -> None:
        """Feed the identity provider's current principal (None on sign-out)"""
        if principal is None:
            self._cancel()
            self._principal_id = None
            self._state = SignedOut()
            return

        if principal.uid == self._principal_id and self._state != Loading():
            # Same principal re-emitted (e.g. token refresh)
            return

        self._cancel()
        self._principal_id = principal.uid
        self._state = Loading(principal.uid)
        self._task = asyncio.get_running_loop().create_task(self._resolve(principal))

    async def _resolve(self, principal: Any) -> None:
        try:
            role, permissions = await self._fetch(principal)
        except PermissionsApiError as e:
            if e.status_code == 503 and self._fallback is not None:
                logger.warning(f"Resolver unavailable for uid={principal.uid}, reading permissions directly")
                role, permissions = await self._run_fallback(principal)
            else:
                logger.warning(f"Permission resolution failed for uid={principal.uid}: {e}")
                role, permissions = None, None
        except Exception as e:
            logger.warning(f"Permission resolution failed for uid={principal.uid}: {e}")
            role, permissions = None, None

        if principal.uid != self._principal_id:
            logger.debug(f"Discarding stale permissions for uid={principal.uid}")
            return

        if role == Role.SUPERADMIN and permissions is None:
            permissions = synthesize_superadmin_record(principal.uid, principal.email)
        self._state = Resolved(principal.uid, role, permissions)

    async def _run_fallback(self, principal: Any) -> Tuple[Optional[Role], Optional[PermissionRecord]]:
        try:
            return await self._fallback(principal)
        except Exception as e:
            logger.warning(f"Fallback permission read failed for uid={principal.uid}: {e}")
            return None, None

    async def wait_resolved(self) -> PermissionState:
        """Wait for the in-flight resolution, following principal switches"""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._state

    def close(self) -> None:
        self._cancel()


def direct_fetch(store: PermissionStore) -> Fetch:
    """Fetch that reads the principal's claims and stored record without the resolver.

    Claims are trusted as-is and nothing is healed or migrated.
    """
    async def fetch(principal: Principal) -> Tuple[Optional[Role], Optional[PermissionRecord]]:
        claims = principal.claims
        if claims.is_superadmin:
            return Role.SUPERADMIN, None
        record = store.get(principal.uid)
        if claims.role:
            return claims.role, record
        if record:
            return record.role, record
        return None, None

    return fetch
