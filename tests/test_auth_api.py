"""HTTP tests for the /api/v1/auth and /api/v1/health routes."""

from unittest.mock import AsyncMock

import pytest
from starlette.requests import Request

from backend.app.api import deps
from backend.app.core.exceptions import ServiceError

API = "/api/v1"
STRONG_PASSWORD = "Str0ng!Pass"


async def register(client, email="user@example.com", password=STRONG_PASSWORD):
    return await client.post(
        f"{API}/auth/register", json={"email": email, "password": password}
    )


def session_header(token):
    return {"X-Session-Id": token}


class TestRegisterRoute:
    @pytest.mark.asyncio
    async def test_register_returns_account_and_session(self, client):
        response = await register(client, "New@Example.com")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Account created successfully"
        assert body["user"]["email"] == "new@example.com"
        assert body["user"]["has_secret"] is False
        assert len(body["session_id"]) == 64
        assert "password" not in str(body)

    @pytest.mark.asyncio
    async def test_register_sets_session_cookie(self, client):
        response = await register(client)

        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith("sessionid=")
        assert "httponly" in cookie
        assert "samesite=strict" in cookie
        assert "max-age=2592000" in cookie
        # Plain HTTP outside production
        assert "secure" not in cookie

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, client):
        await register(client, "dup@example.com")
        response = await register(client, "DUP@example.com")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Registration failed",
            "message": "An account with this email already exists",
        }

    @pytest.mark.asyncio
    async def test_weak_password_names_field(self, client):
        response = await register(client, password="password")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Validation failed"
        assert body["field"] == "password"

    @pytest.mark.asyncio
    async def test_bad_email_names_field(self, client):
        response = await register(client, email="not-an-email")

        assert response.status_code == 400
        assert response.json()["field"] == "email"

    @pytest.mark.asyncio
    async def test_missing_field(self, client):
        response = await client.post(f"{API}/auth/register", json={"password": STRONG_PASSWORD})

        assert response.status_code == 400
        body = response.json()
        assert body["field"] == "email"
        assert body["message"] == "Email is required"


class TestLoginRoute:
    @pytest.mark.asyncio
    async def test_login_success(self, client):
        registered = (await register(client, "login@example.com")).json()

        response = await client.post(
            f"{API}/auth/login",
            json={"email": "LOGIN@example.com", "password": STRONG_PASSWORD},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["user"]["id"] == registered["user"]["id"]
        assert body["session_id"] != registered["session_id"]
        assert "sessionid=" in response.headers["set-cookie"].lower()

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_identical(self, client):
        await register(client, "known@example.com")

        wrong = await client.post(
            f"{API}/auth/login",
            json={"email": "known@example.com", "password": "Wr0ng!Pass"},
        )
        unknown = await client.post(
            f"{API}/auth/login",
            json={"email": "unknown@example.com", "password": STRONG_PASSWORD},
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["message"] == "Invalid email or password"
        assert "set-cookie" not in wrong.headers

    @pytest.mark.asyncio
    async def test_empty_password_is_validation_error(self, client):
        response = await client.post(
            f"{API}/auth/login", json={"email": "someone@example.com", "password": ""}
        )

        assert response.status_code == 400
        assert response.json()["field"] == "password"


class TestSessionGate:
    @pytest.mark.asyncio
    async def test_me_with_header(self, client):
        token = (await register(client, "me@example.com")).json()["session_id"]
        client.cookies.clear()

        response = await client.get(f"{API}/auth/me", headers=session_header(token))

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "me@example.com"

    @pytest.mark.asyncio
    async def test_me_with_cookie(self, client):
        token = (await register(client, "cookie@example.com")).json()["session_id"]
        client.cookies.clear()

        response = await client.get(f"{API}/auth/me", headers={"Cookie": f"sessionId={token}"})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "cookie@example.com"

    @pytest.mark.asyncio
    async def test_header_wins_over_cookie(self, client):
        first = (await register(client, "first@example.com")).json()["session_id"]
        second = (await register(client, "second@example.com")).json()["session_id"]
        client.cookies.clear()

        response = await client.get(
            f"{API}/auth/me",
            headers={"X-Session-Id": first, "Cookie": f"sessionId={second}"},
        )

        assert response.json()["user"]["email"] == "first@example.com"

    @pytest.mark.asyncio
    async def test_no_token_is_unauthenticated(self, client):
        client.cookies.clear()

        response = await client.get(f"{API}/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_unknown_token_is_invalid_session(self, client):
        client.cookies.clear()

        response = await client.get(f"{API}/auth/me", headers=session_header("0" * 64))

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid session"

    @pytest.mark.asyncio
    async def test_expired_session_rejected(self, client, clock):
        token = (await register(client)).json()["session_id"]
        client.cookies.clear()
        clock.advance(days=30)

        response = await client.get(f"{API}/auth/me", headers=session_header(token))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_service_failure_is_500(self, client, auth_service):
        auth_service.validate_session = AsyncMock(side_effect=ServiceError())
        client.cookies.clear()

        response = await client.get(f"{API}/auth/me", headers=session_header("a" * 64))

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestLogoutRoute:
    @pytest.mark.asyncio
    async def test_logout_invalidates_session(self, client):
        token = (await register(client)).json()["session_id"]
        client.cookies.clear()

        response = await client.post(f"{API}/auth/logout", headers=session_header(token))

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert "sessionid=" in response.headers["set-cookie"].lower()

        again = await client.get(f"{API}/auth/me", headers=session_header(token))
        assert again.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_without_session(self, client):
        client.cookies.clear()

        response = await client.post(f"{API}/auth/logout")

        assert response.status_code == 401


class TestApiKeyRoutes:
    @pytest.mark.asyncio
    async def test_no_key_configured(self, client):
        token = (await register(client)).json()["session_id"]

        response = await client.get(f"{API}/auth/api-key", headers=session_header(token))

        assert response.status_code == 200
        assert response.json() == {"success": True, "has_secret": False}

    @pytest.mark.asyncio
    async def test_store_and_read_key(self, client):
        token = (await register(client)).json()["session_id"]

        put = await client.put(
            f"{API}/auth/api-key",
            json={"api_key": "sk-test-123"},
            headers=session_header(token),
        )
        assert put.status_code == 200
        assert put.json()["message"] == "API key updated successfully"

        got = await client.get(f"{API}/auth/api-key", headers=session_header(token))
        assert got.json() == {"success": True, "has_secret": True, "secret": "sk-test-123"}

        me = await client.get(f"{API}/auth/me", headers=session_header(token))
        assert me.json()["user"]["has_secret"] is True

    @pytest.mark.asyncio
    async def test_camel_case_field_accepted(self, client):
        token = (await register(client)).json()["session_id"]

        response = await client.put(
            f"{API}/auth/api-key",
            json={"apiKey": "sk-camel"},
            headers=session_header(token),
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_bad_key_shape_rejected(self, client):
        token = (await register(client)).json()["session_id"]

        response = await client.put(
            f"{API}/auth/api-key",
            json={"api_key": "pk-wrong"},
            headers=session_header(token),
        )

        assert response.status_code == 400
        assert response.json()["field"] == "api_key"

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        client.cookies.clear()

        get = await client.get(f"{API}/auth/api-key")
        put = await client.put(f"{API}/auth/api-key", json={"api_key": "sk-x"})

        assert get.status_code == 401
        assert put.status_code == 401


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_eleventh_attempt_is_throttled(self, client, auth_service):
        auth_service.login = AsyncMock(wraps=auth_service.login)
        payload = {"email": "victim@example.com", "password": "Wr0ng!Pass"}

        statuses = []
        for _ in range(11):
            response = await client.post(f"{API}/auth/login", json=payload)
            statuses.append(response.status_code)

        assert statuses == [401] * 10 + [429]
        assert int(response.headers["retry-after"]) > 0
        assert response.json()["error"] == "Too many authentication attempts"
        # The throttled attempt never reached the service
        assert auth_service.login.await_count == 10

    @pytest.mark.asyncio
    async def test_register_and_login_share_budget(self, client):
        for i in range(10):
            await register(client, f"user{i}@example.com")

        response = await client.post(
            f"{API}/auth/login",
            json={"email": "user0@example.com", "password": STRONG_PASSWORD},
        )

        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_session_routes_not_throttled(self, client):
        token = (await register(client)).json()["session_id"]

        for _ in range(15):
            response = await client.get(f"{API}/auth/me", headers=session_header(token))
            assert response.status_code == 200


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get(f"{API}/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["version"]
        assert body["timestamp"]

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert "message" in response.json()


@pytest.mark.asyncio
async def test_full_account_lifecycle(client):
    registered = await register(client, "User@Example.com")
    assert registered.status_code == 201
    user_id = registered.json()["user"]["id"]
    client.cookies.clear()

    login = await client.post(
        f"{API}/auth/login",
        json={"email": "user@example.com", "password": STRONG_PASSWORD},
    )
    assert login.status_code == 200
    assert login.json()["user"]["id"] == user_id
    token = login.json()["session_id"]
    client.cookies.clear()

    me = await client.get(f"{API}/auth/me", headers=session_header(token))
    assert me.json()["user"] == {"id": user_id, "email": "user@example.com", "has_secret": False}

    await client.put(
        f"{API}/auth/api-key", json={"apiKey": "sk-test-123"}, headers=session_header(token)
    )
    secret = await client.get(f"{API}/auth/api-key", headers=session_header(token))
    assert secret.json()["secret"] == "sk-test-123"

    logout = await client.post(f"{API}/auth/logout", headers=session_header(token))
    assert logout.status_code == 200

    after = await client.get(f"{API}/auth/me", headers=session_header(token))
    assert after.status_code == 401


def make_request(headers=None):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


class TestOptionalSession:
    @pytest.mark.asyncio
    async def test_anonymous_without_token(self, auth_service):
        assert await deps.optional_session(make_request(), auth_service) is None

    @pytest.mark.asyncio
    async def test_invalid_token_is_anonymous(self, auth_service):
        request = make_request(session_header("0" * 64))
        assert await deps.optional_session(request, auth_service) is None

    @pytest.mark.asyncio
    async def test_valid_token_attaches_account(self, auth_service):
        result = await auth_service.register("opt@example.com", STRONG_PASSWORD)
        request = make_request({"Cookie": f"sessionId={result.session_token}"})

        current = await deps.optional_session(request, auth_service)

        assert current.email == "opt@example.com"
        assert request.state.account == current

    @pytest.mark.asyncio
    async def test_service_failure_is_anonymous(self, auth_service):
        auth_service.validate_session = AsyncMock(side_effect=ServiceError())
        request = make_request(session_header("a" * 64))

        assert await deps.optional_session(request, auth_service) is None
