"""
User management calls against ``/api/users``.
"""

from typing import Any, Dict, Optional

from .api_client import ApiClient

USER_ENDPOINTS = {
    "USERS": "/users",
    "STATS": "/users/stats",
    "PROFILE": "/users/profile",
}


def clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop None and empty-string values so they are not sent as filters."""
    return {key: value for key, value in (params or {}).items() if value is not None and value != ""}


class UserApi:
    """User endpoints of the user management API."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def get_all_users(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        List users (admin only).

        Returns:
            Envelope with the users in ``data`` and ``meta.pagination``
        """
        params = clean_params(
            {
                "page": page,
                "limit": limit,
                "role": role,
                "status": status,
                "search": search,
                "sortBy": sort_by,
                "sortOrder": sort_order,
            }
        )
        return await self.client.get(USER_ENDPOINTS["USERS"], params=params or None)

    async def get_user_by_id(self, user_id: str) -> Dict[str, Any]:
        return await self.client.get(f"{USER_ENDPOINTS['USERS']}/{user_id}")

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self.client.put(f"{USER_ENDPOINTS['USERS']}/{user_id}", updates)

    async def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> Dict[str, Any]:
        return await self.client.patch(
            f"{USER_ENDPOINTS['USERS']}/{user_id}/password",
            {"current_password": current_password, "new_password": new_password},
        )

    async def activate_user(self, user_id: str) -> Dict[str, Any]:
        return await self.client.patch(f"{USER_ENDPOINTS['USERS']}/{user_id}/activate")

    async def deactivate_user(self, user_id: str) -> Dict[str, Any]:
        return await self.client.patch(f"{USER_ENDPOINTS['USERS']}/{user_id}/deactivate")

    async def delete_user(self, user_id: str) -> Dict[str, Any]:
        return await self.client.delete(f"{USER_ENDPOINTS['USERS']}/{user_id}")

    async def get_user_stats(self) -> Dict[str, Any]:
        return await self.client.get(USER_ENDPOINTS["STATS"])

    async def get_profile(self) -> Dict[str, Any]:
        return await self.client.get(USER_ENDPOINTS["PROFILE"])

    async def update_profile(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self.client.put(USER_ENDPOINTS["PROFILE"], updates)
