# tests/test_event_users.py

"""
Tests for participant deactivation and reactivation.
"""

import re

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock, call

from conftest import auth_headers
from eventadmin.core.errors import NotFound, StoreOperationFailed
from eventadmin.database.supabase_client import get_supabase_admin
from eventadmin.modules.event_users.schemas import EventUserTarget
from eventadmin.modules.event_users.service import EventUserService

DEACTIVATE = "/api/v1/event-users/deactivate"
REACTIVATE = "/api/v1/event-users/reactivate"

TARGET = {"client_id": "client-1", "event_id": "event-1", "user_id": "user-1"}
PARTICIPANT = {"client_id": "client-1", "event_id": "event-1", "user_id": "user-1", "email": "Flutter@Test.com", "is_active": True}


def make_query(rows):
    query = Mock()
    for method in ("select", "eq", "ilike", "limit", "update", "delete", "upsert"):
        getattr(query, method).return_value = query
    query.execute.return_value = Mock(data=rows)
    return query


@pytest.fixture
def tables():
    return {
        "event_users": make_query([PARTICIPANT]),
        "event_whitelist": make_query([]),
    }


@pytest.fixture
def mock_supabase_client(tables):
    mock_client = Mock()
    mock_client.table.side_effect = lambda name: tables[name]
    return mock_client


@pytest.fixture
def event_client(app, client: TestClient, mock_supabase_client):
    app.dependency_overrides[get_supabase_admin] = lambda: mock_supabase_client
    return client


class TestDeactivate:
    def test_requires_auth(self, event_client: TestClient, seeded):
        assert event_client.post(DEACTIVATE, json=TARGET).status_code == 401

    def test_invalid_body_is_400(self, event_client: TestClient, seeded):
        response = event_client.post(DEACTIVATE, json={"client_id": "client-1"}, headers=auth_headers("super-1"))
        assert response.status_code == 400

    def test_participant_caller_forbidden(self, event_client: TestClient, seeded):
        assert event_client.post(DEACTIVATE, json=TARGET, headers=auth_headers("user-1")).status_code == 403

    @pytest.mark.parametrize("uid,detail", [
        ("ca-2", "You do not have access to this client"),
        ("ea-2", "You do not have access to this client"),
    ])
    def test_out_of_scope_client(self, event_client: TestClient, seeded, uid, detail):
        response = event_client.post(DEACTIVATE, json=TARGET, headers=auth_headers(uid))
        assert response.status_code == 403
        assert response.json()["detail"] == detail

    def test_event_admin_other_event(self, event_client: TestClient, seeded):
        body = dict(TARGET, event_id="event-9")
        response = event_client.post(DEACTIVATE, json=body, headers=auth_headers("ea-1"))
        assert response.status_code == 403
        assert response.json()["detail"] == "You do not have access to this event"

    def test_client_admin_any_event_of_client(self, event_client: TestClient, seeded, tables):
        body = dict(TARGET, event_id="event-9")
        response = event_client.post(DEACTIVATE, json=body, headers=auth_headers("ca-1"))
        assert response.status_code == 200

    @pytest.mark.parametrize("uid", ["super-1", "ca-1", "ea-1"])
    def test_deactivates_and_drops_whitelist(self, event_client: TestClient, seeded, tables, uid):
        response = event_client.post(DEACTIVATE, json=TARGET, headers=auth_headers(uid))

        assert response.status_code == 200
        assert response.json() == {"success": True}
        tables["event_users"].update.assert_called_once_with({"is_active": False})
        whitelist = tables["event_whitelist"]
        whitelist.delete.assert_called_once()
        assert call("client_id", "client-1") in whitelist.eq.call_args_list
        assert call("event_id", "event-1") in whitelist.eq.call_args_list
        whitelist.ilike.assert_called_once_with("email", "Flutter@Test.com")

    def test_missing_participant_is_404(self, event_client: TestClient, seeded, tables):
        tables["event_users"].execute.return_value = Mock(data=[])
        response = event_client.post(DEACTIVATE, json=TARGET, headers=auth_headers("super-1"))
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"
        tables["event_users"].update.assert_not_called()


class TestReactivate:
    def test_requires_whitelist_data(self, event_client: TestClient, seeded):
        response = event_client.post(REACTIVATE, json=TARGET, headers=auth_headers("super-1"))
        assert response.status_code == 400

    def test_reactivates_and_restores_whitelist(self, event_client: TestClient, seeded, tables):
        body = dict(TARGET, whitelist_data={"email": "flutter@test.com", "company": "Acme"})
        response = event_client.post(REACTIVATE, json=body, headers=auth_headers("ea-1"))

        assert response.status_code == 200
        tables["event_users"].update.assert_called_once_with({"is_active": True})
        row, kwargs = tables["event_whitelist"].upsert.call_args
        entry = row[0]
        assert entry["id"] == "user-1"
        assert entry["email"] == "flutter@test.com"
        assert entry["access_tier"] == "standard"
        assert entry["company"] == "Acme"
        assert entry["locked_fields"] is None
        assert kwargs["on_conflict"] == "client_id,event_id,id"

    def test_out_of_scope_event_admin(self, event_client: TestClient, seeded):
        body = dict(TARGET, whitelist_data={"email": "flutter@test.com"})
        response = event_client.post(REACTIVATE, json=body, headers=auth_headers("ea-2"))
        assert response.status_code == 403


def test_service_store_failure(mock_supabase_client, tables):
    tables["event_users"].execute.side_effect = Exception("connection reset")
    service = EventUserService(mock_supabase_client)
    with pytest.raises(StoreOperationFailed):
        service.deactivate(EventUserTarget(**TARGET))


class CaseSensitiveWhitelist:
    """In-memory whitelist table: `eq` compares exactly, `ilike` ignores case.

    Only literal (wildcard-free) ilike patterns are supported.
    """

    def __init__(self, rows):
        self.rows = rows
        self.filters = []

    def delete(self):
        self.filters = []
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column, pattern):
        literal = re.sub(r"\\(.)", r"\1", pattern).lower()
        self.filters.append(lambda row: str(row.get(column, "")).lower() == literal)
        return self

    def execute(self):
        self.rows = [row for row in self.rows if not all(f(row) for f in self.filters)]
        return Mock(data=[])


def test_deactivate_removes_mixed_case_whitelist_row(mock_supabase_client, tables):
    participant = dict(PARTICIPANT, email="Alice@X.com")
    tables["event_users"].execute.return_value = Mock(data=[participant])
    whitelist = CaseSensitiveWhitelist([
        {"id": "w1", "client_id": "client-1", "event_id": "event-1", "email": "Alice@X.com"},
        {"id": "w2", "client_id": "client-1", "event_id": "event-1", "email": "alice@x.com"},
        {"id": "w3", "client_id": "client-1", "event_id": "event-1", "email": "bob@x.com"},
        {"id": "w4", "client_id": "client-1", "event_id": "event-2", "email": "Alice@X.com"},
    ])
    tables["event_whitelist"] = whitelist

    EventUserService(mock_supabase_client).deactivate(EventUserTarget(**TARGET))

    assert [row["id"] for row in whitelist.rows] == ["w3", "w4"]


def test_deactivate_escapes_wildcards_in_email(mock_supabase_client, tables):
    participant = dict(PARTICIPANT, email="first_last%1@x.com")
    tables["event_users"].execute.return_value = Mock(data=[participant])

    EventUserService(mock_supabase_client).deactivate(EventUserTarget(**TARGET))

    tables["event_whitelist"].ilike.assert_called_once_with("email", "first\\_last\\%1@x.com")


def test_service_missing_participant(mock_supabase_client, tables):
    tables["event_users"].execute.return_value = Mock(data=[])
    service = EventUserService(mock_supabase_client)
    with pytest.raises(NotFound):
        service.deactivate(EventUserTarget(**TARGET))
