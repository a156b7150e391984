"""
Authentication calls against ``/api/auth``.

Signup and login persist the returned token and user in the client's
token store; logout only forgets them locally.
"""

from typing import Any, Dict, Optional

from ..logging_config import get_logger
from .api_client import ApiClient, ApiError

logger = get_logger(__name__)

AUTH_ENDPOINTS = {
    "SIGNUP": "/auth/signup",
    "LOGIN": "/auth/login",
    "ME": "/auth/me",
    "VERIFY": "/auth/verify",
    "REFRESH": "/auth/refresh",
    "LOGOUT": "/auth/logout",
}


class AuthApi:
    """Authentication endpoints of the user management API."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    @property
    def store(self):
        return self.client.store

    def _remember(self, response: Dict[str, Any]) -> None:
        data = response.get("data") or {}
        if response.get("success") and data.get("token"):
            self.store.save(data["token"], data.get("user") or {})

    async def signup(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        """
        Register a new account and store its token.

        Returns:
            Response envelope with ``data.user`` and ``data.token``
        """
        response = await self.client.post(
            AUTH_ENDPOINTS["SIGNUP"],
            {"email": email, "password": password, "full_name": full_name},
        )
        self._remember(response)
        return response

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        response = await self.client.post(
            AUTH_ENDPOINTS["LOGIN"], {"email": email, "password": password}
        )
        self._remember(response)
        return response

    def logout(self) -> None:
        self.store.clear()

    async def get_current_user(self) -> Dict[str, Any]:
        response = await self.client.get(AUTH_ENDPOINTS["ME"])
        user = (response.get("data") or {}).get("user")
        if response.get("success") and user:
            self.store.set_user(user)
        return response

    async def verify_token(self) -> Dict[str, Any]:
        """
        Ask the server whether the stored token is still valid.

        Never raises for API failures: an invalid token clears the store and
        yields ``{"success": False, "data": {"valid": False}}``.
        """
        if not self.store.get_token():
            return {"success": False, "data": {"valid": False}}

        try:
            return await self.client.post(AUTH_ENDPOINTS["VERIFY"])
        except ApiError as e:
            logger.info("Stored token rejected", reason=e.message)
            self.logout()
            return {"success": False, "data": {"valid": False}}

    async def refresh_token(self) -> Optional[str]:
        response = await self.client.post(AUTH_ENDPOINTS["REFRESH"])
        token = (response.get("data") or {}).get("token")
        if token:
            self.store.set_token(token)
        return token

    async def server_logout(self) -> Dict[str, Any]:
        """Notify the server, then forget the local credentials."""
        try:
            return await self.client.post(AUTH_ENDPOINTS["LOGOUT"])
        finally:
            self.logout()

    def get_token(self) -> Optional[str]:
        return self.store.get_token()

    def get_stored_user(self) -> Optional[Dict[str, Any]]:
        return self.store.get_user()

    def is_authenticated(self) -> bool:
        return self.store.has_token

    def is_admin(self) -> bool:
        user = self.store.get_user()
        return bool(user) and user.get("role") == "admin"
