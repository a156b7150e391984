"""
Tests for AuthSession, AuthApi and UserApi.

The client talks to the real FastAPI app through httpx.ASGITransport, with
the in-memory repository behind it.
"""

from datetime import timedelta

import httpx
import pytest

from user_management.app import app
from user_management.client import ApiClient, AuthApi, AuthSession, TokenStore, UserApi
from user_management.client.user_service import clean_params
from user_management.security import create_access_token


@pytest.fixture
def store():
    return TokenStore()


@pytest.fixture
def api_client(repo, store):
    return ApiClient(
        base_url="http://testserver/api",
        store=store,
        transport=httpx.ASGITransport(app=app),
    )


@pytest.fixture
def session(api_client):
    return AuthSession(AuthApi(api_client))


class TestAuthSession:
    """Test session lifecycle."""

    @pytest.mark.asyncio
    async def test_initial_state(self, session):
        assert session.is_loading is True
        assert session.is_authenticated is False
        assert session.is_admin is False

    @pytest.mark.asyncio
    async def test_initialize_without_token(self, session):
        await session.initialize()
        assert session.is_loading is False
        assert session.is_authenticated is False

    @pytest.mark.asyncio
    async def test_login(self, session, store, user):
        result = await session.login(user["email"], "User@1234")

        assert result["success"] is True
        assert session.is_authenticated is True
        assert session.user["email"] == user["email"]
        assert store.get_token() == session.token
        assert session.is_loading is False

    @pytest.mark.asyncio
    async def test_login_failure_sets_error(self, session, user):
        result = await session.login(user["email"], "Wrong@1234")

        assert result == {"success": False, "message": "Invalid email or password"}
        assert session.error == "Invalid email or password"
        assert session.is_authenticated is False

        session.clear_error()
        assert session.error is None

    @pytest.mark.asyncio
    async def test_signup_validation_errors(self, session, repo):
        result = await session.signup("not-an-email", "weak", "X")

        assert result["success"] is False
        assert {error["field"] for error in result["errors"]} == {"email", "password", "full_name"}

    @pytest.mark.asyncio
    async def test_signup(self, session, repo):
        result = await session.signup("new.user@example.com", "Secure@123", "New User")

        assert result["success"] is True
        assert session.user["role"] == "user"
        assert session.has_role("user")
        assert not session.has_role(["admin"])

    @pytest.mark.asyncio
    async def test_initialize_restores_stored_session(self, api_client, store, admin):
        await AuthApi(api_client).login(admin["email"], "Admin@123")

        restored = AuthSession(AuthApi(api_client))
        await restored.initialize()

        assert restored.is_authenticated is True
        assert restored.is_admin is True
        assert restored.user["id"] == admin["id"]

    @pytest.mark.asyncio
    async def test_initialize_with_invalid_token_clears(self, session, store, repo):
        store.save("not-a-real-token", {"id": "x", "role": "admin"})

        await session.initialize()

        assert session.is_authenticated is False
        assert session.user is None
        assert store.get_token() is None
        assert session.is_loading is False

    @pytest.mark.asyncio
    async def test_logout(self, session, store, user):
        await session.login(user["email"], "User@1234")
        session.logout()

        assert session.is_authenticated is False
        assert session.token is None
        assert store.get_token() is None

    @pytest.mark.asyncio
    async def test_refresh_and_update_user(self, session, store, repo, user):
        await session.login(user["email"], "User@1234")
        repo.rows[user["id"]]["full_name"] = "Renamed Elsewhere"

        result = await session.refresh_user()
        assert result["success"] is True
        assert session.user["full_name"] == "Renamed Elsewhere"

        session.update_user({"full_name": "Local Change"})
        assert store.get_user()["full_name"] == "Local Change"

    @pytest.mark.asyncio
    async def test_expired_token_logs_session_out(self, session, store, user):
        await session.login(user["email"], "User@1234")
        expired = create_access_token(
            user["id"], user["email"], user["role"], expires_delta=timedelta(seconds=-5)
        )
        store.set_token(expired)

        result = await session.refresh_user()

        assert result == {"success": False, "message": "Token has expired"}
        assert session.is_authenticated is False
        assert session.user is None
        assert store.get_token() is None

    @pytest.mark.asyncio
    async def test_deleted_user_logs_session_out(self, session, store, repo, user):
        await session.login(user["email"], "User@1234")
        repo.rows.clear()

        result = await session.refresh_user()

        assert result["success"] is False
        assert session.is_authenticated is False
        assert session.token is None
        assert store.get_token() is None

    @pytest.mark.asyncio
    async def test_refresh_token_updates_session(self, session, store, user):
        await session.login(user["email"], "User@1234")
        session.token = "stale-token"

        token = await session.refresh_token()

        assert token
        assert session.token == token
        assert store.get_token() == token
        assert session.is_authenticated is True


class TestUserApi:
    """Test user endpoints through the client."""

    @pytest.mark.asyncio
    async def test_admin_flow(self, api_client, admin, user):
        await AuthApi(api_client).login(admin["email"], "Admin@123")
        users = UserApi(api_client)

        listing = await users.get_all_users(page=1, limit=10, role="user", search="")
        assert [item["email"] for item in listing["data"]] == [user["email"]]

        stats = await users.get_user_stats()
        assert stats["data"]["total_users"] == 2

        deactivated = await users.deactivate_user(user["id"])
        assert deactivated["data"]["user"]["status"] == "inactive"

        assert await users.delete_user(user["id"]) == {}

    @pytest.mark.asyncio
    async def test_change_password(self, api_client, user):
        auth = AuthApi(api_client)
        await auth.login(user["email"], "User@1234")

        await UserApi(api_client).change_password(user["id"], "User@1234", "Changed@5678")

        auth.logout()
        response = await auth.login(user["email"], "Changed@5678")
        assert response["success"] is True

    @pytest.mark.asyncio
    async def test_refresh_and_server_logout(self, api_client, store, user):
        auth = AuthApi(api_client)
        await auth.login(user["email"], "User@1234")

        token = await auth.refresh_token()
        assert token
        assert store.get_token() == token
        assert auth.is_authenticated()

        response = await auth.server_logout()
        assert response["success"] is True
        assert auth.is_authenticated() is False
        assert auth.get_stored_user() is None

    @pytest.mark.asyncio
    async def test_verify_token_without_token(self, api_client, repo):
        assert await AuthApi(api_client).verify_token() == {
            "success": False,
            "data": {"valid": False},
        }


def test_clean_params():
    assert clean_params({"page": 1, "role": "", "status": None, "search": "jo"}) == {
        "page": 1,
        "search": "jo",
    }
