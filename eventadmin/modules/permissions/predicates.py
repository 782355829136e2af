"""
Authorization predicates over a PermissionRecord.

Pure and total: no I/O, no exceptions, only booleans. Consumed by the
endpoint guard on the server and by permission-gated UI on the client.

None means "all" and is only honoured for superadmin; for scoped roles a
missing or empty list means no access. A missing record (a role claim whose
permissions could not be loaded) grants nothing.
"""

from typing import Iterable, List, Optional

from eventadmin.modules.permissions.schemas import PermissionRecord, Role


def can_manage_admins(role: Optional[Role]) -> bool:
    """Only superadmins can add/remove clientAdmins."""
    return role == Role.SUPERADMIN


def can_manage_event_admins(role: Optional[Role]) -> bool:
    return role in (Role.SUPERADMIN, Role.CLIENT_ADMIN)


def can_access_client(permissions: Optional[PermissionRecord], client_id: str) -> bool:
    if permissions is None:
        return False
    if permissions.role == Role.SUPERADMIN:
        return True
    if not permissions.client_ids:
        return False
    return client_id in permissions.client_ids


def can_access_event(permissions: Optional[PermissionRecord], client_id: str, event_id: str) -> bool:
    if permissions is None:
        return False
    if permissions.role == Role.SUPERADMIN:
        return True
    if not can_access_client(permissions, client_id):
        return False
    # clientAdmins see every event of their clients; stored event_ids is ignored
    if permissions.role == Role.CLIENT_ADMIN:
        return True
    if not permissions.event_ids:
        return False
    return event_id in permissions.event_ids


def can_write_client(role: Optional[Role]) -> bool:
    """Clients are a superadmin-only resource."""
    return role == Role.SUPERADMIN


def can_write_event(permissions: Optional[PermissionRecord], client_id: str) -> bool:
    """Structural event writes (create/delete the event itself). Never eventAdmin."""
    if permissions is None:
        return False
    if permissions.role == Role.SUPERADMIN:
        return True
    if permissions.role == Role.CLIENT_ADMIN:
        return can_access_client(permissions, client_id)
    return False


def can_write_event_content(permissions: Optional[PermissionRecord], client_id: str, event_id: str) -> bool:
    """Sessions, posts, brands, ... inside an event."""
    if permissions is None:
        return False
    if permissions.role == Role.SUPERADMIN:
        return True
    if permissions.role == Role.CLIENT_ADMIN:
        return can_access_client(permissions, client_id)
    if permissions.role == Role.EVENT_ADMIN:
        return can_access_event(permissions, client_id, event_id)
    return False


def get_accessible_client_ids(permissions: Optional[PermissionRecord]) -> Optional[List[str]]:
    if permissions is None:
        return []
    if permissions.role == Role.SUPERADMIN:
        return None
    return list(permissions.client_ids or [])


def get_accessible_event_ids(permissions: Optional[PermissionRecord]) -> Optional[List[str]]:
    if permissions is None:
        return []
    if permissions.role in (Role.SUPERADMIN, Role.CLIENT_ADMIN):
        return None
    return list(permissions.event_ids or [])


def is_within_client_scope(permissions: Optional[PermissionRecord], client_ids: Iterable[str]) -> bool:
    """Every one of `client_ids` must be accessible (subset, not intersection)."""
    if permissions is None:
        return False
    return all(can_access_client(permissions, client_id) for client_id in client_ids)
