"""
Unit tests for AuthManager.
"""

import httpx
import pytest

from shared.errors import SESSION_EXPIRED_MESSAGE
from service_client.app.auth import AuthManager, AuthState, landing_path_for_role
from service_client.app.errors import CONNECTIVITY_MESSAGE, AuthenticationError, ConnectivityError, ServerError
from service_client.app.storage import REDIRECT_KEY, TOKEN_KEY, USER_KEY


OWNER = {"_id": "u1", "username": "nimal", "fullName": "Nimal Perera", "role": "owner", "email": "n@s.lk"}


def auth_ok(token="abc123", user=OWNER):
    return httpx.Response(200, json={"success": True, "data": {"token": token, "user": user}})


@pytest.fixture
def auth(api_client, storage):
    return AuthManager(api_client, storage)


class TestLogin:

    @pytest.mark.asyncio
    async def test_owner_login_lands_on_reports(self, auth, storage, api_client, recorder):
        recorder.on("POST", "/api/auth/login", auth_ok())

        user = await auth.login({"username": "nimal", "password": "Sweet@2024"})

        assert user.role == "owner"
        assert auth.state is AuthState.AUTHENTICATED
        assert storage.get(TOKEN_KEY) == "abc123"
        assert storage.get_json(USER_KEY)["_id"] == "u1"
        assert api_client.default_headers["Authorization"] == "Bearer abc123"
        assert auth.landing_path == "/reports"

    @pytest.mark.asyncio
    async def test_failed_login_leaves_storage_untouched(self, auth, storage, recorder):
        storage.set(TOKEN_KEY, "previous")
        recorder.on("POST", "/api/auth/login", httpx.Response(401, json={"message": "Invalid credentials"}))

        with pytest.raises(AuthenticationError):
            await auth.login({"username": "nimal", "password": "wrong"})

        assert auth.error == "Invalid credentials"
        assert auth.user is None
        assert storage.get(TOKEN_KEY) == "previous"
        assert storage.get(USER_KEY) is None

    @pytest.mark.asyncio
    async def test_login_without_connection_reports_transport_message(self, auth, recorder):
        recorder.on("POST", "/api/auth/login", httpx.ConnectError("refused"))

        with pytest.raises(ConnectivityError):
            await auth.login({"username": "nimal", "password": "x"})

        assert auth.error == CONNECTIVITY_MESSAGE

    @pytest.mark.asyncio
    async def test_login_server_failure_without_message_uses_login_text(self, auth, storage, recorder):
        recorder.on("POST", "/api/auth/login", httpx.Response(500, content=b""))

        with pytest.raises(ServerError):
            await auth.login({"username": "nimal", "password": "x"})

        assert auth.error == "Login failed. Please try again."
        assert storage.get(TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_login_accepts_user_with_role_only(self, auth, storage, recorder):
        recorder.on("POST", "/api/auth/login", httpx.Response(200, json={"token": "abc123", "user": {"role": "owner"}}))

        user = await auth.login({"username": "u1", "password": "P@ssw0rd1"})

        assert user.role == "owner"
        assert user.id is None
        assert auth.state is AuthState.AUTHENTICATED
        assert storage.get(TOKEN_KEY) == "abc123"
        assert storage.get_json(USER_KEY)["role"] == "owner"
        assert auth.landing_path == "/reports"

    @pytest.mark.asyncio
    async def test_register_accepts_flat_response_shape(self, auth, recorder):
        recorder.on("POST", "/api/auth/register", httpx.Response(201, json={"token": "t2", "user": dict(OWNER, role="shop")}))

        user = await auth.register({"username": "shop1"})

        assert user.role == "shop"
        assert auth.landing_path == "/orders"


class TestInitialize:

    @pytest.mark.asyncio
    async def test_no_token_is_anonymous(self, auth, recorder):
        assert await auth.initialize() is AuthState.ANONYMOUS
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_confirmed_session_refreshes_fallback(self, auth, storage, recorder):
        storage.set(TOKEN_KEY, "abc123")
        recorder.on("GET", "/api/auth/me", httpx.Response(200, json={"success": True, "data": OWNER}))

        assert await auth.initialize() is AuthState.AUTHENTICATED
        assert recorder.last.headers["Authorization"] == "Bearer abc123"
        assert auth.user.name == "Nimal Perera"
        assert auth.degraded is False
        assert storage.get_json(USER_KEY)["fullName"] == "Nimal Perera"

    @pytest.mark.asyncio
    async def test_unconfirmed_session_uses_fallback_identity(self, auth, storage, recorder):
        storage.set(TOKEN_KEY, "abc123")
        storage.set_json(USER_KEY, OWNER)
        recorder.on("GET", "/api/auth/me", httpx.ConnectError("refused"))

        assert await auth.initialize() is AuthState.AUTHENTICATED
        assert auth.degraded is True
        assert auth.user.id == "u1"
        assert storage.get(TOKEN_KEY) == "abc123"

    @pytest.mark.asyncio
    async def test_unconfirmed_session_without_fallback_is_cleared(self, auth, storage, recorder):
        storage.set(TOKEN_KEY, "abc123")
        recorder.on("GET", "/api/auth/me", httpx.Response(500, json={"message": "boom"}))

        assert await auth.initialize() is AuthState.ANONYMOUS
        assert storage.get(TOKEN_KEY) is None
        assert auth.user is None

    @pytest.mark.asyncio
    async def test_expired_session_is_cleared(self, auth, storage, recorder):
        storage.set(TOKEN_KEY, "abc123")
        storage.set_json(USER_KEY, OWNER)
        recorder.on("GET", "/api/auth/me", httpx.Response(401, json={"message": SESSION_EXPIRED_MESSAGE}))

        assert await auth.initialize() is AuthState.ANONYMOUS
        assert storage.get(TOKEN_KEY) is None
        assert storage.get(USER_KEY) is None


class TestLogout:

    @pytest.mark.asyncio
    async def test_logout_clears_storage_when_server_fails(self, auth, storage, recorder):
        recorder.on("POST", "/api/auth/login", auth_ok())
        recorder.on("POST", "/api/auth/logout", httpx.Response(500, json={"message": "down"}))
        await auth.login({"username": "nimal", "password": "x"})

        await auth.logout()

        assert auth.state is AuthState.ANONYMOUS
        assert auth.user is None
        assert storage.get(TOKEN_KEY) is None
        assert storage.get(USER_KEY) is None

    @pytest.mark.asyncio
    async def test_logout_clears_storage_when_server_unreachable(self, auth, storage, recorder):
        storage.set(TOKEN_KEY, "abc123")
        recorder.on("POST", "/api/auth/logout", httpx.ConnectError("refused"))

        await auth.logout()

        assert storage.get(TOKEN_KEY) is None


class TestSessionExpiry:

    @pytest.mark.asyncio
    async def test_expiry_on_any_call_drops_user(self, auth, api_client, storage, recorder):
        recorder.on("POST", "/api/auth/login", auth_ok())
        recorder.on("GET", "/api/products", httpx.Response(401, json={"message": SESSION_EXPIRED_MESSAGE}))
        await auth.login({"username": "nimal", "password": "x"})

        with pytest.raises(AuthenticationError):
            await api_client.get("/api/products")

        assert auth.state is AuthState.ANONYMOUS
        assert auth.user is None
        assert storage.get(TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_post_login_destination_prefers_saved_path(self, auth, storage, recorder):
        recorder.on("POST", "/api/auth/login", auth_ok())
        storage.set(REDIRECT_KEY, "/suppliers")
        await auth.login({"username": "nimal", "password": "x"})

        assert auth.post_login_destination() == "/suppliers"
        assert auth.post_login_destination() == "/reports"


class TestPasswords:

    @pytest.mark.asyncio
    async def test_update_password_sends_confirmation(self, auth, recorder):
        recorder.on("PUT", "/api/auth/update-password", httpx.Response(200, json={"success": True}))

        await auth.update_password("Old@2024x", "New@2024x")

        assert b'"confirmPassword":"New@2024x"' in recorder.last.content.replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_forgot_password_error_is_recorded(self, auth, recorder):
        recorder.on("POST", "/api/auth/forgot-password", httpx.Response(500, json={}))

        with pytest.raises(ServerError):
            await auth.forgot_password("n@s.lk")

        assert auth.error == "Could not send reset instructions. Please try again."


@pytest.mark.parametrize("role,path", [
    ("owner", "/reports"),
    ("warehouse_manager", "/inventory"),
    ("salesman", "/dashboard/salesman"),
    ("shop", "/orders"),
    ("auditor", "/dashboard"),
    (None, "/dashboard"),
])
def test_landing_path_for_role(role, path):
    assert landing_path_for_role(role) == path
