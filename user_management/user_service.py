"""
User management service.

Implements profile editing and the admin user CRUD rules: who may read,
change, (de)activate and delete which account.
"""

from typing import Any, Dict, Optional, Tuple

from .exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from .logging_config import get_logger
from .models import CurrentUser, UserListQuery, UserUpdateRequest, serialize_user
from .repositories import UserRepository
from .security import hash_password, verify_password
from .validators import validate_pagination

logger = get_logger(__name__)


class UserService:
    """Business rules for user management on top of UserRepository."""

    def __init__(self, users: UserRepository) -> None:
        self.users = users

    async def _require_user(self, user_id: str, include_password: bool = False) -> Dict[str, Any]:
        user = await self.users.find_by_id(user_id, include_password=include_password)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def _ensure_email_available(
        self, email: Optional[str], existing: Dict[str, Any]
    ) -> None:
        if email and email != existing["email"]:
            if await self.users.email_exists(email, exclude_id=str(existing["id"])):
                raise ConflictError("Email already in use")

    async def list_users(self, query: UserListQuery) -> Dict[str, Any]:
        """
        Paginated user listing for admins.

        Out-of-range page/limit values are coerced rather than rejected.
        """
        page, limit = validate_pagination(query.page, query.limit)
        result = await self.users.find_all(
            page=page,
            limit=limit,
            role=query.role,
            status=query.status,
            search=query.search,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
        )
        return {
            "users": [serialize_user(user) for user in result["users"]],
            "pagination": result["pagination"],
        }

    async def get_stats(self) -> Dict[str, int]:
        return await self.users.get_stats()

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        return serialize_user(await self._require_user(user_id))

    async def update_user(
        self, actor: CurrentUser, user_id: str, update: UserUpdateRequest
    ) -> Dict[str, Any]:
        """
        Update a user as admin or as the account owner.

        Raises:
            ForbiddenError: If a non-admin targets another account or tries to
                change role or status
            NotFoundError: If the user does not exist
            ConflictError: If the new email is taken
        """
        if not actor.is_admin and actor.id != user_id:
            raise ForbiddenError("You do not have permission to update this user")

        changes = update.changes()
        if not actor.is_admin and ("role" in changes or "status" in changes):
            raise ForbiddenError("You do not have permission to change role or status")

        existing = await self._require_user(user_id)
        await self._ensure_email_available(changes.get("email"), existing)

        allowed = ("email", "full_name", "role", "status") if actor.is_admin else ("email", "full_name")
        data = {key: value for key, value in changes.items() if key in allowed}

        updated = await self.users.update(user_id, data)
        logger.info("User updated", user_id=user_id, actor_id=actor.id, fields=sorted(data))
        return serialize_user(updated)

    async def change_password(
        self,
        actor: CurrentUser,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Change the caller's own password.

        Raises:
            ForbiddenError: If the caller targets another account
            UnauthorizedError: If the current password does not match
        """
        if actor.id != user_id:
            raise ForbiddenError("You can only change your own password")

        user = await self._require_user(user_id, include_password=True)

        if not verify_password(current_password, user["password"]):
            raise UnauthorizedError("Current password is incorrect")

        await self.users.update(user_id, {"password": hash_password(new_password)})
        logger.info("Password changed", user_id=user_id)

    async def activate_user(self, user_id: str) -> Tuple[Dict[str, Any], str]:
        """
        Activate an account.

        Returns:
            Tuple of (user, message); activating an active user is a no-op
        """
        user = await self._require_user(user_id)

        if user["status"] == "active":
            return serialize_user(user), "User is already active"

        updated = await self.users.activate(user_id)
        logger.info("User activated", user_id=user_id)
        return serialize_user(updated), "User activated successfully"

    async def deactivate_user(
        self, actor: CurrentUser, user_id: str
    ) -> Tuple[Dict[str, Any], str]:
        if actor.id == user_id:
            raise ForbiddenError("You cannot deactivate your own account")

        user = await self._require_user(user_id)

        if user["status"] == "inactive":
            return serialize_user(user), "User is already inactive"

        updated = await self.users.deactivate(user_id)
        logger.info("User deactivated", user_id=user_id, actor_id=actor.id)
        return serialize_user(updated), "User deactivated successfully"

    async def delete_user(self, actor: CurrentUser, user_id: str) -> None:
        """
        Delete an account as admin or as its owner.

        Admins cannot delete their own account.
        """
        if not actor.is_admin and actor.id != user_id:
            raise ForbiddenError("You do not have permission to delete this user")

        if actor.is_admin and actor.id == user_id:
            raise ForbiddenError("Admin cannot delete their own account")

        await self._require_user(user_id)

        if not await self.users.delete(user_id):
            raise InternalError("Failed to delete user")
        logger.info("User deleted", user_id=user_id, actor_id=actor.id)

    async def get_profile(self, actor: CurrentUser) -> Dict[str, Any]:
        return serialize_user(await self._require_user(actor.id))

    async def update_profile(
        self, actor: CurrentUser, update: UserUpdateRequest
    ) -> Dict[str, Any]:
        """Update the caller's own email and name; role and status are ignored."""
        existing = await self._require_user(actor.id)
        changes = update.changes()
        await self._ensure_email_available(changes.get("email"), existing)

        data = {key: changes[key] for key in ("email", "full_name") if key in changes}
        return serialize_user(await self.users.update(actor.id, data))
