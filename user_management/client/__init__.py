"""
Python client for the user management API.

Typical use::

    client = ApiClient(store=FileTokenStore("~/.usermgmt/session.json"))
    session = AuthSession(AuthApi(client))
    await session.initialize()
"""

from .api_client import ApiClient, ApiError
from .auth_service import AuthApi
from .guards import ROUTES, GuardResult, protected_route, public_route
from .session import AuthSession
from .storage import FileTokenStore, TokenStore
from .user_service import UserApi

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthApi",
    "AuthSession",
    "FileTokenStore",
    "GuardResult",
    "ROUTES",
    "TokenStore",
    "UserApi",
    "protected_route",
    "public_route",
]
