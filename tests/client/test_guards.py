"""
Tests for the client route guards.
"""

from unittest.mock import MagicMock

import pytest

from user_management.client.guards import ROUTES, protected_route, public_route
from user_management.client.session import AuthSession


def make_session(is_loading=False, user=None):
    session = AuthSession(MagicMock())
    session.is_loading = is_loading
    session.user = user
    session.is_authenticated = user is not None
    return session


ADMIN = {"id": "1", "role": "admin"}
USER = {"id": "2", "role": "user"}


class TestProtectedRoute:
    def test_loading(self):
        assert protected_route(make_session(is_loading=True)).action == "loading"

    def test_redirects_anonymous_to_login(self):
        result = protected_route(make_session(), current_path="/users")
        assert result.action == "redirect"
        assert result.target == ROUTES["LOGIN"]
        assert result.state == {"from": "/users"}

    def test_allows_authenticated(self):
        result = protected_route(make_session(user=USER))
        assert result.allowed

    @pytest.mark.parametrize("roles", ["admin", ["admin"]])
    def test_denies_missing_role(self, roles):
        result = protected_route(make_session(user=USER), roles=roles)
        assert result.action == "deny"
        assert result.target == ROUTES["DASHBOARD"]

    def test_allows_matching_role(self):
        assert protected_route(make_session(user=ADMIN), roles="admin").allowed


class TestPublicRoute:
    def test_loading(self):
        assert public_route(make_session(is_loading=True)).action == "loading"

    def test_allows_anonymous(self):
        assert public_route(make_session()).allowed

    def test_redirects_authenticated_to_dashboard(self):
        result = public_route(make_session(user=USER))
        assert result.action == "redirect"
        assert result.target == ROUTES["DASHBOARD"]

    def test_redirects_to_origin(self):
        result = public_route(make_session(user=USER), from_path="/profile")
        assert result.target == "/profile"

    def test_unrestricted_allows_authenticated(self):
        assert public_route(make_session(user=USER), restricted=False).allowed
