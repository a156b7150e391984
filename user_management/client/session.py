"""
Client-side authentication session.

Keeps the current user and token for an application built on the API
client, restoring them from the token store on start.
"""

from typing import Any, Dict, Iterable, Optional, Union

from ..logging_config import get_logger
from .api_client import ApiError
from .auth_service import AuthApi

logger = get_logger(__name__)


class AuthSession:
    """
    Authentication state for one client.

    Attributes:
        user: Current user as returned by the API, or None
        token: Current bearer token, or None
        is_loading: True until ``initialize`` finished and while a login or
            signup is in flight
        is_authenticated: True once the server confirmed the session
        error: Last login or signup error message
    """

    def __init__(self, auth: AuthApi) -> None:
        self.auth = auth
        self.user: Optional[Dict[str, Any]] = None
        self.token: Optional[str] = None
        self.is_loading = True
        self.is_authenticated = False
        self.error: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    def has_role(self, roles: Union[str, Iterable[str]]) -> bool:
        if not self.user or not self.user.get("role"):
            return False
        if isinstance(roles, str):
            return self.user["role"] == roles
        return self.user["role"] in roles

    async def initialize(self) -> None:
        """
        Restore the session from the token store.

        The stored token is verified with the server and the user refetched;
        any failure leaves the session logged out.
        """
        try:
            stored_token = self.auth.get_token()
            if not stored_token:
                return

            self.token = stored_token
            self.user = self.auth.get_stored_user()

            verified = await self.auth.verify_token()
            if not (verified.get("success") and (verified.get("data") or {}).get("valid")):
                self.logout()
                return

            response = await self.auth.get_current_user()
            user = (response.get("data") or {}).get("user")
            if response.get("success") and user:
                self.user = user
                self.is_authenticated = True
            else:
                self.logout()
        except ApiError as e:
            logger.warning("Session initialization failed", reason=e.message)
            self.logout()
        finally:
            self.is_loading = False

    def _authenticated(self, response: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        data = response.get("data") or {}
        if response.get("success") and data.get("token"):
            self.user = data.get("user")
            self.token = data["token"]
            self.is_authenticated = True
            return self.user
        return None

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Log in and update the session.

        Returns:
            ``{"success": True, "user": ...}`` or ``{"success": False, "message": ...}``
        """
        self.error = None
        self.is_loading = True
        try:
            response = await self.auth.login(email, password)
            user = self._authenticated(response)
            if user is not None:
                return {"success": True, "user": user}
            return {"success": False, "message": response.get("message") or "Login failed"}
        except ApiError as e:
            self.error = e.message or "Login failed. Please try again."
            return {"success": False, "message": self.error}
        finally:
            self.is_loading = False

    async def signup(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        self.error = None
        self.is_loading = True
        try:
            response = await self.auth.signup(email, password, full_name)
            user = self._authenticated(response)
            if user is not None:
                return {"success": True, "user": user}
            return {"success": False, "message": response.get("message") or "Signup failed"}
        except ApiError as e:
            self.error = e.message or "Signup failed. Please try again."
            return {"success": False, "message": self.error, "errors": e.errors}
        finally:
            self.is_loading = False

    def logout(self) -> None:
        self.auth.logout()
        self.user = None
        self.token = None
        self.is_authenticated = False
        self.error = None

    def _handle_api_error(self, error: ApiError) -> None:
        # A 401 means the server no longer accepts the token; the client may
        # already have cleared the store.
        if error.status == 401 or (self.token and not self.auth.get_token()):
            self.logout()

    async def refresh_user(self) -> Dict[str, Any]:
        """Refetch the current user from the server."""
        try:
            response = await self.auth.get_current_user()
        except ApiError as e:
            logger.warning("Refreshing user failed", reason=e.message)
            self._handle_api_error(e)
            return {"success": False, "message": e.message}

        user = (response.get("data") or {}).get("user")
        if response.get("success") and user:
            self.user = user
            return {"success": True, "user": user}
        return {"success": False, "message": "Failed to refresh user data"}

    async def refresh_token(self) -> Optional[str]:
        """Exchange the current token for a fresh one."""
        try:
            token = await self.auth.refresh_token()
        except ApiError as e:
            logger.warning("Refreshing token failed", reason=e.message)
            self._handle_api_error(e)
            return None

        if token:
            self.token = token
        return token

    def update_user(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge local changes into the user and persist them, without an API call."""
        self.user = {**(self.user or {}), **updates}
        self.auth.store.set_user(self.user)
        return self.user

    def clear_error(self) -> None:
        self.error = None
