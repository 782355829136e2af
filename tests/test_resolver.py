# tests/test_resolver.py

"""
Tests for claims resolution and self-healing.
"""

import pytest

from conftest import make_record
from eventadmin.core.errors import StoreOperationFailed
from eventadmin.modules.auth.resolver import ClaimsResolver
from eventadmin.modules.permissions.schemas import Role


@pytest.fixture
def resolver(store, identity):
    return ClaimsResolver(store, identity)


@pytest.mark.parametrize("claims", [{"superadmin": True}, {"admin": True}])
def test_superadmin_claim_skips_store(resolver, store, identity, claims):
    identity.add_user("s1", "s1@test.com", claims)

    result = resolver.resolve(identity.token_for("s1"))

    assert result.role == Role.SUPERADMIN
    assert result.permissions is None
    assert store.calls == []


def test_role_claim_with_record(resolver, store, identity):
    identity.add_user("ca", "ca@test.com", {"role": "clientAdmin"})
    store.upsert(make_record("ca", "ca@test.com", Role.CLIENT_ADMIN, ["c1"]))

    result = resolver.resolve(identity.token_for("ca"))

    assert result.role == Role.CLIENT_ADMIN
    assert result.permissions.client_ids == ["c1"]
    assert identity.claim_writes == []


def test_role_claim_without_record_is_degraded_not_error(resolver, identity):
    identity.add_user("ca", "ca@test.com", {"role": "clientAdmin"})

    result = resolver.resolve(identity.token_for("ca"))

    assert result.role == Role.CLIENT_ADMIN
    assert result.permissions is None


def test_unknown_role_claim_is_ignored(resolver, identity):
    identity.add_user("u", None, {"role": "owner", "plan": "pro"})

    result = resolver.resolve(identity.token_for("u"))

    assert result.role is None
    assert result.permissions is None


def test_record_by_uid_heals_claims(resolver, store, identity):
    identity.add_user("ea", "ea@test.com")
    store.upsert(make_record("ea", "ea@test.com", Role.EVENT_ADMIN, ["c1"], ["e1"]))

    result = resolver.resolve(identity.token_for("ea"))

    assert result.role == Role.EVENT_ADMIN
    assert identity.claim_writes == [("ea", {"role": "eventAdmin"})]
    assert identity.principal("ea").claims.role == Role.EVENT_ADMIN


def test_superadmin_record_heals_superadmin_claim(resolver, store, identity):
    identity.add_user("s", "s@test.com")
    store.upsert(make_record("s", "s@test.com", Role.SUPERADMIN))

    result = resolver.resolve(identity.token_for("s"))

    assert result.role == Role.SUPERADMIN
    assert identity.principal("s").claims.is_superadmin


def test_email_fallback_migrates_record(resolver, store, identity):
    identity.add_user("new-id", "legacy@test.com")
    store.upsert(make_record("old-id", "legacy@test.com", Role.EVENT_ADMIN, ["c1"], ["e1"]))

    result = resolver.resolve(identity.token_for("new-id"))

    assert result.role == Role.EVENT_ADMIN
    assert result.permissions.user_id == "new-id"
    assert "old-id" not in store.records
    assert set(store.records) == {"new-id"}
    assert identity.principal("new-id").claims.role == Role.EVENT_ADMIN


def test_resolution_is_idempotent(resolver, store, identity):
    identity.add_user("new-id", "legacy@test.com")
    store.upsert(make_record("old-id", "legacy@test.com", Role.EVENT_ADMIN, ["c1"], ["e1"]))

    first = resolver.resolve(identity.token_for("new-id"))
    second = resolver.resolve(identity.token_for("new-id"))

    assert first.role == second.role
    assert first.permissions.client_ids == second.permissions.client_ids
    assert list(store.records) == ["new-id"]


def test_no_record_anywhere(resolver, store, identity):
    identity.add_user("u", "nobody@test.com")

    result = resolver.resolve(identity.token_for("u"))

    assert result.role is None
    assert result.permissions is None
    assert store.calls == ["get", "find_by_email"]


def test_no_email_skips_email_lookup(resolver, store, identity):
    identity.add_user("u", None)

    result = resolver.resolve(identity.token_for("u"))

    assert result.role is None
    assert "find_by_email" not in store.calls


def test_store_failure_is_not_no_permissions(resolver, store, identity):
    identity.add_user("u", "u@test.com")
    store.fail = True

    with pytest.raises(StoreOperationFailed):
        resolver.resolve(identity.token_for("u"))


def test_preview_does_not_write(resolver, store, identity):
    identity.add_user("new-id", "legacy@test.com")
    store.upsert(make_record("old-id", "legacy@test.com", Role.EVENT_ADMIN, ["c1"], ["e1"]))

    resolution, source = resolver.preview(identity.principal("new-id"))

    assert resolution.role == Role.EVENT_ADMIN
    assert "email" in source
    assert "old-id" in store.records
    assert identity.claim_writes == []
