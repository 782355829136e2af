# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

The permission store and identity provider are replaced with in-memory fakes
through app.dependency_overrides. Every fake principal gets the bearer token
"token-<uid>".
"""

import pytest
from fastapi.testclient import TestClient
from typing import Any, Dict, Generator, Iterator, List, Optional

from eventadmin.core.dependencies import get_identity_provider, get_permission_store
from eventadmin.core.errors import InvalidToken, StoreOperationFailed
from eventadmin.main import app as fastapi_app
from eventadmin.modules.auth.schemas import Principal, VerifiedToken
from eventadmin.modules.permissions.schemas import PermissionRecord, Role, TokenClaims


class FakePermissionStore:
    def __init__(self):
        self.records: Dict[str, PermissionRecord] = {}
        self.calls: List[str] = []
        self.fail = False

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            raise StoreOperationFailed(f"{name} failed")

    def get(self, user_id: str) -> Optional[PermissionRecord]:
        self._call("get")
        return self.records.get(user_id)

    def find_by_email(self, email: str) -> Optional[PermissionRecord]:
        self._call("find_by_email")
        for record in self.records.values():
            if record.email == email.lower():
                return record
        return None

    def upsert(self, record: PermissionRecord) -> PermissionRecord:
        self._call("upsert")
        self.records[record.user_id] = record
        return record

    def delete(self, user_id: str) -> None:
        self._call("delete")
        self.records.pop(user_id, None)

    def list_all(self) -> List[PermissionRecord]:
        self._call("list_all")
        return sorted(self.records.values(), key=lambda r: r.email or "")


class FakeIdentityProvider:
    def __init__(self):
        self.metadata: Dict[str, Dict[str, Any]] = {}
        self.emails: Dict[str, Optional[str]] = {}
        self.claim_writes: List[tuple] = []
        self.created: List[str] = []

    def add_user(self, uid: str, email: Optional[str], claims: Optional[Dict[str, Any]] = None) -> Principal:
        self.emails[uid] = email.lower() if email else None
        self.metadata[uid] = dict(claims or {})
        return self.principal(uid)

    def principal(self, uid: str) -> Principal:
        return Principal(uid=uid, email=self.emails[uid], claims=TokenClaims.from_metadata(self.metadata[uid]))

    def token_for(self, uid: str) -> VerifiedToken:
        return VerifiedToken(token=f"token-{uid}", **self.principal(uid).model_dump())

    def verify_token(self, token: str) -> VerifiedToken:
        uid = token[len("token-"):] if token.startswith("token-") else None
        if uid not in self.metadata:
            raise InvalidToken()
        return self.token_for(uid)

    def iter_users(self) -> Iterator[Principal]:
        for uid in list(self.metadata):
            yield self.principal(uid)

    def get_user_by_email(self, email: str) -> Optional[Principal]:
        for principal in self.iter_users():
            if principal.email == email.lower():
                return principal
        return None

    def create_user(self, email: str) -> Principal:
        uid = f"new-{len(self.created) + 1}"
        self.created.append(uid)
        return self.add_user(uid, email)

    def set_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        self.claim_writes.append((uid, dict(claims)))
        self.metadata[uid].update(claims)


def make_record(user_id: str, email: str, role: Role, client_ids=None, event_ids=None) -> PermissionRecord:
    return PermissionRecord(
        user_id=user_id,
        email=email,
        role=role,
        client_ids=client_ids,
        event_ids=event_ids,
        created_by="seed",
        updated_by="seed",
    )


def auth_headers(uid: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer token-{uid}"}


@pytest.fixture
def store() -> FakePermissionStore:
    return FakePermissionStore()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def seeded(store: FakePermissionStore, identity: FakeIdentityProvider):
    """Superadmin, assigned/unassigned clientAdmin and eventAdmin, and a plain participant."""
    identity.add_user("super-1", "super@test.com", {"superadmin": True})
    identity.add_user("ca-1", "clientadmin@test.com", {"role": "clientAdmin"})
    identity.add_user("ca-2", "unassigned-ca@test.com", {"role": "clientAdmin"})
    identity.add_user("ea-1", "eventadmin@test.com", {"role": "eventAdmin"})
    identity.add_user("ea-2", "unassigned-ea@test.com", {"role": "eventAdmin"})
    identity.add_user("user-1", "flutter@test.com")

    store.upsert(make_record("ca-1", "clientadmin@test.com", Role.CLIENT_ADMIN, ["client-1"]))
    store.upsert(make_record("ca-2", "unassigned-ca@test.com", Role.CLIENT_ADMIN, ["client-2"]))
    store.upsert(make_record("ea-1", "eventadmin@test.com", Role.EVENT_ADMIN, ["client-1"], ["event-1"]))
    store.upsert(make_record("ea-2", "unassigned-ea@test.com", Role.EVENT_ADMIN, ["client-2"], ["event-2"]))
    store.calls.clear()
    return store, identity


@pytest.fixture(scope="function")
def app(store: FakePermissionStore, identity: FakeIdentityProvider):
    """FastAPI application wired to the in-memory fakes."""
    fastapi_app.dependency_overrides[get_permission_store] = lambda: store
    fastapi_app.dependency_overrides[get_identity_provider] = lambda: identity
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client
