"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Backend:
    Tests never talk to a real backend project. FakeSupabase is an
    in-memory stand-in for the auth (GoTrue) and data (PostgREST) endpoints
    the application calls, served through httpx.MockTransport:

        async def test_sign_in(backend, fake_backend):
            fake_backend.add_user("ada@example.com", "secret")
            ...

    Forced failures are keyed by (method, path):

        fake_backend.fail("GET", "/rest/v1/notes", 500)
        fake_backend.fail("POST", "/auth/v1/logout", "network")

Secrets:
    config/.env is not required. SUPABASE_ANON_KEY and SESSION_SECRET are
    set in the environment for every test and the config caches are
    cleared around each test.
"""

import base64
import hashlib
import itertools
import json
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from notebookweb.backend.core.config import get_app_config, get_settings
from notebookweb.backend.schemas.note import Note
from notebookweb.backend.schemas.session import Session
from notebookweb.backend.supabase.client import SupabaseClient

TEST_ANON_KEY = "test-anon-key"
TEST_SESSION_SECRET = "test-session-secret-that-is-long-enough-for-testing"
TEST_BACKEND_URL = "http://supabase.test"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _test_secrets(monkeypatch: pytest.MonkeyPatch):
    """Provide secrets through the environment and reset config caches."""
    monkeypatch.setenv("SUPABASE_ANON_KEY", TEST_ANON_KEY)
    monkeypatch.setenv("SESSION_SECRET", TEST_SESSION_SECRET)
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


# =============================================================================
# Fake Backend
# =============================================================================


class FakeSupabase:
    """In-memory auth and notes backend behind an httpx.MockTransport."""

    def __init__(self, anon_key: str = TEST_ANON_KEY) -> None:
        self.anon_key = anon_key
        self.users: dict[str, dict[str, Any]] = {}
        self.access_tokens: dict[str, str] = {}
        self.refresh_tokens: dict[str, str] = {}
        self.auth_codes: dict[str, tuple[str, str]] = {}
        self.notes: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], int | str] = {}
        self.expires_in = 3600
        self.confirm_email = False
        self.recovery_emails: list[str] = []
        self._ids = itertools.count(1)
        self._clock = datetime(2025, 3, 5, 12, 0, tzinfo=timezone.utc)

    # -------------------------------------------------------------------------
    # Test setup helpers
    # -------------------------------------------------------------------------

    def add_user(self, email: str, password: str, full_name: str | None = None) -> dict[str, Any]:
        user = {
            "id": f"user-{next(self._ids)}",
            "email": email,
            "password": password,
            "user_metadata": {"full_name": full_name} if full_name else {},
        }
        self.users[email] = user
        return user

    def add_note(self, user_id: str, title: str, content: str) -> dict[str, Any]:
        self._clock += timedelta(minutes=1)
        row = {
            "id": next(self._ids),
            "title": title,
            "content": content,
            "user_id": user_id,
            "created_at": self._clock.isoformat(),
        }
        self.notes.append(row)
        return row

    def grant_code(self, email: str, code_challenge: str) -> str:
        """Simulate the provider round-trip: issue an auth code for a user."""
        code = f"code-{next(self._ids)}"
        self.auth_codes[code] = (email, code_challenge)
        return code

    def fail(self, method: str, path: str, status: int | str) -> None:
        """Force a status code (or "network") for every matching request."""
        self.failures[(method, path)] = status

    def clear_failures(self) -> None:
        self.failures.clear()

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def notes_of(self, user_id: str) -> list[dict[str, Any]]:
        return [n for n in self.notes if n["user_id"] == user_id]

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        forced = self.failures.get((request.method, request.url.path))
        if forced == "network":
            raise httpx.ConnectError("connection refused", request=request)
        if forced is not None:
            return httpx.Response(forced, json={"message": "forced failure"})

        if request.headers.get("apikey") != self.anon_key:
            return httpx.Response(401, json={"message": "Invalid API key"})

        path = request.url.path
        if path == "/auth/v1/health":
            return httpx.Response(200, json={"name": "GoTrue"})
        if path == "/auth/v1/token":
            return self._token(request)
        if path == "/auth/v1/signup":
            return self._signup(request)
        if path == "/auth/v1/logout":
            return self._logout(request)
        if path == "/auth/v1/recover":
            return self._recover(request)
        if path == "/rest/v1/notes":
            return self._notes(request)
        return httpx.Response(404, json={"message": "not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # -------------------------------------------------------------------------
    # Auth endpoints
    # -------------------------------------------------------------------------

    @staticmethod
    def _body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    def _issue(self, user: dict[str, Any]) -> dict[str, Any]:
        n = next(self._ids)
        access_token = f"at-{n}"
        refresh_token = f"rt-{n}"
        self.access_tokens[access_token] = user["id"]
        self.refresh_tokens[refresh_token] = user["email"]
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": self.expires_in,
            "user": {
                "id": user["id"],
                "email": user["email"],
                "user_metadata": user["user_metadata"],
            },
        }

    def _token(self, request: httpx.Request) -> httpx.Response:
        grant_type = request.url.params.get("grant_type")
        body = self._body(request) or {}

        if grant_type == "password":
            user = self.users.get(body.get("email"))
            if user is None or user["password"] != body.get("password"):
                return httpx.Response(
                    400,
                    json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
                )
            return httpx.Response(200, json=self._issue(user))

        if grant_type == "refresh_token":
            email = self.refresh_tokens.pop(body.get("refresh_token"), None)
            if email is None:
                return httpx.Response(
                    400,
                    json={"error": "invalid_grant", "error_description": "Invalid Refresh Token: Already Used"},
                )
            return httpx.Response(200, json=self._issue(self.users[email]))

        if grant_type == "pkce":
            grant = self.auth_codes.pop(body.get("auth_code"), None)
            if grant is None:
                return httpx.Response(400, json={"msg": "invalid flow state, no valid flow state found"})
            email, challenge = grant
            digest = hashlib.sha256(body.get("code_verifier", "").encode()).digest()
            if base64.urlsafe_b64encode(digest).rstrip(b"=").decode() != challenge:
                return httpx.Response(400, json={"msg": "code challenge does not match previously saved code verifier"})
            return httpx.Response(200, json=self._issue(self.users[email]))

        return httpx.Response(400, json={"msg": "unsupported_grant_type"})

    def _signup(self, request: httpx.Request) -> httpx.Response:
        body = self._body(request) or {}
        email = body.get("email")
        if email in self.users:
            return httpx.Response(422, json={"msg": "User already registered"})

        user = self.add_user(email, body.get("password"))
        if self.confirm_email:
            return httpx.Response(200, json={"id": user["id"], "email": email})
        return httpx.Response(200, json=self._issue(user))

    def _logout(self, request: httpx.Request) -> httpx.Response:
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if self.access_tokens.pop(token, None) is None:
            return httpx.Response(401, json={"msg": "invalid JWT"})
        return httpx.Response(204)

    def _recover(self, request: httpx.Request) -> httpx.Response:
        body = self._body(request) or {}
        self.recovery_emails.append(body.get("email"))
        return httpx.Response(200, json={})

    # -------------------------------------------------------------------------
    # Data endpoints
    # -------------------------------------------------------------------------

    def _notes(self, request: httpx.Request) -> httpx.Response:
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        user_id = self.access_tokens.get(token)
        if user_id is None:
            return httpx.Response(401, json={"message": "JWT expired"})

        if request.method == "GET":
            rows = sorted(self.notes_of(user_id), key=lambda n: n["created_at"], reverse=True)
            return httpx.Response(200, json=rows)

        if request.method == "POST":
            created = []
            for row in self._body(request):
                if row.get("user_id") != user_id:
                    return httpx.Response(403, json={"message": "new row violates row-level security policy"})
                created.append(self.add_note(user_id, row["title"], row["content"]))
            return httpx.Response(201, json=created)

        if request.method == "DELETE":
            note_id = request.url.params.get("id", "").removeprefix("eq.")
            self.notes = [
                n for n in self.notes
                if not (str(n["id"]) == note_id and n["user_id"] == user_id)
            ]
            return httpx.Response(204)

        return httpx.Response(405, json={"message": "method not allowed"})


@pytest.fixture
def fake_backend() -> FakeSupabase:
    """Fresh in-memory backend per test."""
    return FakeSupabase()


@pytest.fixture
async def backend(fake_backend: FakeSupabase) -> AsyncGenerator[SupabaseClient, None]:
    """Backend client wired to the fake backend."""
    client = SupabaseClient(
        url=TEST_BACKEND_URL,
        anon_key=TEST_ANON_KEY,
        timeout=5.0,
        transport=fake_backend.transport(),
    )
    yield client
    await client.close()


# =============================================================================
# Model Factories
# =============================================================================


@pytest.fixture
def make_session() -> Callable[..., Session]:
    """
    Build a Session.

    Usage:
        session = make_session(user_id="user-1", expires_in=30)
    """
    counter = itertools.count(1)

    def factory(
        user_id: str = "user-1",
        email: str = "ada@example.com",
        expires_in: int = 3600,
    ) -> Session:
        n = next(counter)
        return Session.model_validate({
            "access_token": f"access-{n}",
            "refresh_token": f"refresh-{n}",
            "expires_in": expires_in,
            "user": {"id": user_id, "email": email},
        })

    return factory


@pytest.fixture
def make_note() -> Callable[..., Note]:
    """Build a Note."""
    counter = itertools.count(1)

    def factory(title: str = "Groceries", content: str = "Milk, eggs", user_id: str = "user-1") -> Note:
        n = next(counter)
        return Note(
            id=str(n),
            title=title,
            content=content,
            user_id=user_id,
            created_at=datetime(2025, 3, 5, 12, n),
        )

    return factory


# =============================================================================
# Utility Fixtures
# =============================================================================


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"
