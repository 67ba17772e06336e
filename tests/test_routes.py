import pytest
from fastapi.testclient import TestClient

from admin_portal.core.config import settings
from admin_portal.core.exceptions import TokenRequestFailed
from admin_portal.core.session import PortalSession, SessionRegistry
from admin_portal.main import app


@pytest.fixture
def client(admin_api, auth_client):
    with TestClient(app) as test_client:
        app.state.sessions = SessionRegistry(
            lambda session_id: PortalSession(
                session_id, auth_client=auth_client, api_transport=admin_api.transport
            )
        )
        yield test_client


@pytest.fixture
def signed_in(client):
    resp = client.post("/auth/login", json={"username": "dispatcher1", "password": "pw"})
    assert resp.status_code == 200
    return client


class TestAuthRoutes:
    def test_login_sets_session_cookie(self, client):
        resp = client.post("/auth/login", json={"username": "dispatcher1", "password": "pw"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["authenticated"] is True
        assert body["principal"]["username"] == "dispatcher1"
        assert settings.SESSION_COOKIE_NAME in resp.cookies

        me = client.get("/auth/me").json()
        assert me["authenticated"] is True
        assert me["principal"]["role"] == "Staff"

    def test_login_rejected(self, client, auth_client, rejected):
        auth_client.error = rejected
        resp = client.post("/auth/login", json={"username": "dispatcher1", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid username or password."
        assert len(app.state.sessions) == 0

    def test_login_auth_server_down(self, client, auth_client):
        auth_client.error = TokenRequestFailed(None, "connection refused")
        resp = client.post("/auth/login", json={"username": "dispatcher1", "password": "pw"})
        assert resp.status_code == 502

    def test_login_requires_credentials(self, client):
        resp = client.post("/auth/login", json={"username": "", "password": ""})
        assert resp.status_code == 422

    def test_me_when_anonymous(self, client):
        assert client.get("/auth/me").json() == {"authenticated": False, "principal": None}

    def test_refresh(self, signed_in, auth_client):
        resp = signed_in.post("/auth/refresh")
        assert resp.status_code == 200
        assert resp.json() == {"refreshed": True}
        assert auth_client.refresh_calls == ["refresh-initial"]

    def test_logout_ends_session(self, signed_in):
        assert signed_in.post("/auth/logout").status_code == 200
        signed_in.cookies.clear()
        assert signed_in.get("/quotes").status_code == 401
        assert len(app.state.sessions) == 0

    def test_second_login_replaces_session(self, signed_in):
        signed_in.post("/auth/login", json={"username": "dispatcher2", "password": "pw"})
        assert len(app.state.sessions) == 1
        assert signed_in.get("/auth/me").json()["principal"]["username"] == "dispatcher2"


class TestQuoteRoutes:
    def test_requires_session(self, client):
        resp = client.get("/quotes")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Not signed in."

    def test_list_quotes(self, signed_in, admin_api):
        admin_api.add_quote("q-1")
        admin_api.add_quote("q-2", status="Responded")
        body = signed_in.get("/quotes", params={"take": 10}).json()
        assert body["count"] == 2
        assert body["quotes"][1]["status"] == "Responded"
        assert admin_api.requests[0].headers["Authorization"].startswith("Bearer ")

    def test_quote_detail(self, signed_in, admin_api):
        admin_api.add_quote("q-1")
        body = signed_in.get("/quotes/q-1").json()
        assert body["action_panel"] == "pending"
        assert body["can_acknowledge"] is True
        assert body["status_label"] == "Pending"

    def test_quote_not_found(self, signed_in):
        assert signed_in.get("/quotes/missing").status_code == 404

    def test_quote_forbidden(self, signed_in, admin_api):
        admin_api.add_quote("q-1")
        admin_api.deny.add("/quotes/q-1")
        resp = signed_in.get("/quotes/q-1")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Access denied. You don't have permission to view this quote."

    def test_backend_failure_is_bad_gateway(self, signed_in, admin_api):
        admin_api.fail_with = (500, "boom")
        resp = signed_in.get("/quotes")
        assert resp.status_code == 502
        assert resp.json()["status_code"] == 500
        assert resp.json()["body"] == "boom"

    def test_malformed_quote_is_bad_gateway(self, signed_in, admin_api):
        admin_api.add_quote("q-1", passengerName=None)
        resp = signed_in.get("/quotes/q-1")
        assert resp.status_code == 502
        assert resp.json()["status_code"] == 200

    def test_acknowledge(self, signed_in, admin_api):
        admin_api.add_quote("q-1")
        resp = signed_in.post("/quotes/q-1/acknowledge", json={"notes": "on it"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"] == "success"
        assert body["action_panel"] == "acknowledged"
        assert body["quote"]["notes"] == "on it"

    def test_respond(self, signed_in, admin_api):
        admin_api.add_quote("q-1", status="Acknowledged")
        resp = signed_in.post(
            "/quotes/q-1/respond",
            json={"estimated_price": "125.00", "estimated_pickup_time": "2026-03-01T14:30:00Z"},
        )
        assert resp.status_code == 200
        assert resp.json()["quote"]["status"] == "Responded"
        assert admin_api.quotes["q-1"]["estimatedPrice"] == 125.0

    def test_respond_missing_price(self, signed_in, admin_api):
        admin_api.add_quote("q-1", status="Acknowledged")
        resp = signed_in.post(
            "/quotes/q-1/respond", json={"estimated_pickup_time": "2026-03-01T14:30:00Z"}
        )
        assert resp.status_code == 422
        assert resp.json()["error_message"] == "Estimated price and pickup time are both required."
        assert admin_api.posts() == []

    def test_action_not_allowed_for_status(self, signed_in, admin_api):
        admin_api.add_quote("q-1")
        resp = signed_in.post("/quotes/q-1/cancel")
        assert resp.status_code == 422
        assert resp.json()["outcome"] == "rejected"

    def test_denied_action(self, signed_in, admin_api):
        admin_api.add_quote("q-1", status="Responded")
        admin_api.deny.add("/quotes/q-1/accept")
        resp = signed_in.post("/quotes/q-1/accept")
        assert resp.status_code == 403
        assert resp.json()["error_message"] == "Access denied. You do not have permission to accept this quote."

    def test_update(self, signed_in, admin_api):
        admin_api.add_quote("q-1")
        resp = signed_in.put("/quotes/q-1", json={"adminNotes": "VIP client"})
        assert resp.status_code == 200
        assert admin_api.quotes["q-1"]["adminNotes"] == "VIP client"


class TestAuditLogRoutes:
    def test_page(self, signed_in, admin_api):
        admin_api.audit_logs = {
            "logs": [{"id": "a-1", "action": "Quote.Acknowledged", "entityType": "Quote", "username": "alice"}],
            "pagination": {"total": 1, "skip": 0, "take": 50, "returned": 1},
        }
        resp = signed_in.get("/audit-logs", params={"take": 50, "action": "Quote.Acknowledged"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["logs"][0]["action"] == "Quote.Acknowledged"
        sent = admin_api.requests[0].url.params
        assert sent["action"] == "Quote.Acknowledged"
        assert sent["take"] == "50"

    def test_admin_only(self, signed_in, admin_api):
        admin_api.deny.add("/api/admin/audit-logs")
        resp = signed_in.get("/audit-logs")
        assert resp.status_code == 403
        assert resp.json()["detail"] == (
            "Access denied. You do not have permission to view audit logs. Admin role required."
        )

    def test_take_bounds(self, signed_in):
        assert signed_in.get("/audit-logs", params={"take": 0}).status_code == 422
