"""
Shared fixtures for the admin portal test suite.

AdminAPI is replaced by an in-memory quote backend served through
httpx.MockTransport; AuthServer by either a fake client object or a real
aiohttp application under aiohttp.test_utils.TestServer.
"""
import asyncio
import json
import re
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import httpx
import jwt
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from admin_portal.core.exceptions import TokenRequestFailed
from admin_portal.models.auth import TokenResponse

SIGNING_KEY = "portal-test-signing-key-0123456789abcdef"


def make_token(sub="dispatcher1", role="Staff", uid="user-1", expires_in=timedelta(hours=1), **claims):
    payload = {"sub": sub, **claims}
    if role is not None:
        payload["role"] = role
    if uid is not None:
        payload["uid"] = uid
    if expires_in is not None:
        payload["exp"] = int((datetime.now(timezone.utc) + expires_in).timestamp())
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


@pytest.fixture
def token_factory():
    return make_token


# ─── AdminAPI fake ────────────────────────────────────────────────────────────

QUOTE_PATH = re.compile(r"^/quotes/(?P<id>[^/]+)(?:/(?P<action>acknowledge|respond|accept|cancel))?$")

TRANSITIONS = {
    "acknowledge": ("Pending", "Acknowledged"),
    "respond": ("Acknowledged", "Responded"),
    "accept": ("Responded", "Accepted"),
    "cancel": ("Responded", "Cancelled"),
}


class FakeAdminApi:
    """In-memory AdminAPI that enforces the quote state machine like the real backend."""

    def __init__(self):
        self.quotes = {}
        self.requests = []
        self.deny = set()
        self.fail_with = None
        self.fail_reads_with = None
        self.audit_logs = {"logs": [], "pagination": {"total": 0, "skip": 0, "take": 100, "returned": 0}}

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    def add_quote(self, quote_id="q-1", status="Pending", **fields):
        quote = {
            "id": quote_id,
            "createdUtc": "2026-02-27T10:00:00Z",
            "status": status,
            "bookerName": "Alice Booker",
            "bookerEmail": "alice@example.com",
            "passengerName": "Bob Rider",
            "vehicleClass": "Sedan",
            "pickupLocation": "O'Hare Terminal 1",
            "pickupDateTime": "2026-03-01T14:00:00Z",
            "passengerCount": 2,
            "luggage": 1,
        }
        quote.update(fields)
        self.quotes[quote_id] = quote
        return quote

    def posts(self):
        return [r for r in self.requests if r.method == "POST"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.deny or "*" in self.deny:
            return httpx.Response(403)
        if self.fail_reads_with is not None and request.method == "GET":
            status, body = self.fail_reads_with
            return httpx.Response(status, text=body)
        if self.fail_with is not None:
            status, body = self.fail_with
            return httpx.Response(status, text=body)

        if path == "/api/admin/audit-logs":
            return httpx.Response(200, json=self.audit_logs)

        if path == "/quotes/list":
            take = int(request.url.params.get("take", 100))
            return httpx.Response(200, json=list(self.quotes.values())[:take])

        match = QUOTE_PATH.match(path)
        if not match:
            return httpx.Response(404)

        quote = self.quotes.get(match["id"])
        if quote is None:
            return httpx.Response(404, json={"error": "Quote not found"})

        action = match["action"]
        if action is None:
            if request.method == "GET":
                return httpx.Response(200, json=quote)
            if request.method == "PUT":
                body = json.loads(request.content or b"{}")
                for key in ("quotedPrice", "status", "adminNotes"):
                    if body.get(key) is not None:
                        quote[key] = body[key]
                return httpx.Response(204)
            return httpx.Response(405)

        source, target = TRANSITIONS[action]
        if quote["status"] != source:
            return httpx.Response(
                400, json={"error": f"Cannot {action} quote with status {quote['status']}"}
            )

        now = datetime.now(timezone.utc).isoformat()
        body = json.loads(request.content) if request.content else {}
        if action == "acknowledge":
            quote.update(acknowledgedAt=now, acknowledgedByUserId="user-1", notes=body.get("notes"))
        elif action == "respond":
            quote.update(
                respondedAt=now,
                respondedByUserId="user-1",
                estimatedPrice=body["estimatedPrice"],
                estimatedPickupTime=body["estimatedPickupTime"],
            )
            if body.get("notes"):
                quote["notes"] = body["notes"]
        elif action == "accept":
            quote["bookingId"] = f"bk-{quote['id']}"
        else:
            quote["updatedUtc"] = now
        quote["status"] = target
        return httpx.Response(200, json={"id": quote["id"], "status": target})


@pytest.fixture
def admin_api():
    return FakeAdminApi()


# ─── AuthServer fakes ─────────────────────────────────────────────────────────

class FakeAuthClient:
    def __init__(self, token_factory=make_token):
        self.token_factory = token_factory
        self.refresh_calls = []
        self.login_calls = []
        self.delay = 0
        self.error = None
        self.rotate = True
        self.next_sub = "dispatcher1"

    async def login(self, username, password):
        self.login_calls.append(username)
        if self.error is not None:
            raise self.error
        return TokenResponse(
            access_token=self.token_factory(sub=username),
            refresh_token="refresh-initial",
            expires_in=3600,
        )

    async def exchange_refresh_token(self, refresh_token):
        self.refresh_calls.append(refresh_token)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return TokenResponse(
            access_token=self.token_factory(sub=self.next_sub),
            refresh_token=f"refresh-{len(self.refresh_calls)}" if self.rotate else None,
            expires_in=3600,
        )


@pytest.fixture
def auth_client():
    return FakeAuthClient()


@pytest.fixture
def rejected():
    return TokenRequestFailed(400, '{"error":"invalid_grant"}')


@asynccontextmanager
async def serve_token_endpoint(handler):
    app = web.Application()
    app.router.add_post("/connect/token", handler)
    async with TestServer(app) as server:
        yield str(server.make_url("/")).rstrip("/")


@pytest.fixture
def token_endpoint():
    return serve_token_endpoint
