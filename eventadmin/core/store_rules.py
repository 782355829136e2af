"""
Evaluator for the declarative store access rules.

Documents are addressed by slash-separated paths. A "list" operation is
addressed by the collection path and matched against rule patterns minus
their last segment. Unauthenticated callers are denied everywhere.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from eventadmin.config.store_rules_config import STORE_RULES
from eventadmin.modules.permissions.schemas import Role, TokenClaims

logger = logging.getLogger(__name__)

READ_OPERATIONS = ("get", "list")
WRITE_OPERATIONS = ("create", "update", "delete")

# Reads a stored document by path; None when it does not exist
Lookup = Callable[[str], Optional[Dict[str, Any]]]


@dataclass(frozen=True)
class RuleContext:
    """The caller as the store sees it."""
    uid: Optional[str] = None
    claims: TokenClaims = field(default_factory=TokenClaims)

    @property
    def authenticated(self) -> bool:
        return bool(self.uid)


@dataclass
class RuleRequest:
    context: RuleContext
    operation: str
    path: str
    params: Dict[str, str]
    get: Lookup

    def param(self, name: str) -> Optional[str]:
        return self.params.get(name)

    def admin_record(self) -> Optional[Dict[str, Any]]:
        """The caller's permission record, only when it carries a scoped role claim"""
        if self.context.claims.role is None:
            return None
        return self.get(f"userPermissions/{self.context.uid}")

    def participant_doc(self) -> Optional[Dict[str, Any]]:
        client_id, event_id = self.param("client_id"), self.param("event_id")
        if client_id is None or event_id is None:
            return None
        return self.get(f"clients/{client_id}/events/{event_id}/users/{self.context.uid}")


def is_superadmin(request: RuleRequest) -> bool:
    return request.context.claims.is_superadmin


def is_scoped_admin_for_client(request: RuleRequest) -> bool:
    record = request.admin_record()
    return record is not None and request.param("client_id") in (record.get("client_ids") or [])


def is_client_admin_for_client(request: RuleRequest) -> bool:
    return request.context.claims.role == Role.CLIENT_ADMIN and is_scoped_admin_for_client(request)


def is_event_admin_for_event(request: RuleRequest) -> bool:
    if not is_scoped_admin_for_client(request):
        return False
    if request.context.claims.role == Role.CLIENT_ADMIN:
        return True
    record = request.admin_record() or {}
    return request.param("event_id") in (record.get("event_ids") or [])


def is_active_participant(request: RuleRequest) -> bool:
    doc = request.participant_doc()
    return doc is not None and doc.get("is_active") is True


def is_authenticated(request: RuleRequest) -> bool:
    return request.context.authenticated


def is_owner(request: RuleRequest) -> bool:
    return request.param("user_id") == request.context.uid


def is_owner_with_admin_role(request: RuleRequest) -> bool:
    return is_owner(request) and request.context.claims.role is not None


def is_owner_creating_or_active(request: RuleRequest) -> bool:
    """Owners may create their own participant doc, then update it while active"""
    if not is_owner(request):
        return False
    existing = request.get(request.path)
    if existing is None:
        return request.operation == "create"
    return request.operation in ("create", "update") and existing.get("is_active") is True


def is_owner_while_active(request: RuleRequest) -> bool:
    return is_owner(request) and is_active_participant(request)


CONDITIONS: Dict[str, Callable[[RuleRequest], bool]] = {
    "superadmin": is_superadmin,
    "scoped_admin_for_client": is_scoped_admin_for_client,
    "client_admin_for_client": is_client_admin_for_client,
    "event_admin_for_event": is_event_admin_for_event,
    "active_participant": is_active_participant,
    "authenticated": is_authenticated,
    "owner": is_owner,
    "owner_with_admin_role": is_owner_with_admin_role,
    "owner_creating_or_active": is_owner_creating_or_active,
    "owner_while_active": is_owner_while_active,
}


def _split(path: str) -> List[str]:
    return [segment for segment in path.strip("/").split("/") if segment]


def _match(rule: Dict[str, Any], segments: List[str], operation: str) -> Optional[Dict[str, str]]:
    parts = _split(rule["path"])
    if operation == "list":
        parts = parts[:-1]
    if len(parts) != len(segments):
        return None

    constraints = rule.get("constraints", {})
    params = {}
    for part, segment in zip(parts, segments):
        if part.startswith("{") and part.endswith("}"):
            name = part[1:-1]
            if name in constraints and segment not in constraints[name]:
                return None
            params[name] = segment
        elif part != segment:
            return None
    return params


def _conditions_for(rule: Dict[str, Any], operation: str) -> Sequence[str]:
    if operation in rule:
        return rule[operation]
    kind = "read" if operation in READ_OPERATIONS else "write"
    return rule.get(kind, [])


def is_allowed(
    context: RuleContext,
    operation: str,
    path: str,
    get: Lookup,
    rules: Optional[List[Dict[str, Any]]] = None
) -> bool:
    """Whether `context` may perform `operation` on `path`"""
    if operation not in READ_OPERATIONS + WRITE_OPERATIONS:
        raise ValueError(f"Unknown store operation: {operation}")
    if not context.authenticated:
        return False

    segments = _split(path)
    for rule in rules if rules is not None else STORE_RULES:
        params = _match(rule, segments, operation)
        if params is None:
            continue
        request = RuleRequest(context=context, operation=operation, path="/".join(segments), params=params, get=get)
        allowed = any(CONDITIONS[name](request) for name in _conditions_for(rule, operation))
        logger.debug(f"{operation} {path} uid={context.uid}: {'allow' if allowed else 'deny'} ({rule['path']})")
        return allowed

    logger.debug(f"{operation} {path} uid={context.uid}: deny (no matching rule)")
    return False
