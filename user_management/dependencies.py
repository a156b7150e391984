"""
Dependency functions for the user management API.

Provides service wiring, bearer token authentication and role checks.
"""

from typing import Callable, Optional

from fastapi import Depends, Header, Path

from .auth_service import AuthService
from .database import DatabaseManager, get_db
from .exceptions import AppError, ForbiddenError, UnauthorizedError
from .logging_config import get_logger
from .models import CurrentUser
from .repositories import UserRepository
from .security import decode_access_token, extract_token_from_header
from .user_service import UserService
from .validators import validate_uuid_param

logger = get_logger(__name__)


def get_user_repository(db: DatabaseManager = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_auth_service(users: UserRepository = Depends(get_user_repository)) -> AuthService:
    return AuthService(users)


def get_user_service(users: UserRepository = Depends(get_user_repository)) -> UserService:
    return UserService(users)


async def _load_user(authorization: Optional[str], users: UserRepository) -> CurrentUser:
    token = extract_token_from_header(authorization)
    if not token:
        raise UnauthorizedError("No authentication token provided")

    payload = decode_access_token(token)
    if not payload.get("id"):
        raise UnauthorizedError("Invalid token")

    user = await users.find_by_id(payload["id"])
    if not user:
        raise UnauthorizedError("User not found. Please login again.")

    if user["status"] == "inactive":
        raise UnauthorizedError("Your account has been deactivated. Please contact support.")

    return CurrentUser(
        id=str(user["id"]),
        email=user["email"],
        full_name=user["full_name"],
        role=user["role"],
        status=user["status"],
    )


async def get_current_user(
    authorization: Optional[str] = Header(None),
    users: UserRepository = Depends(get_user_repository),
) -> CurrentUser:
    """
    Dependency that authenticates the caller from the bearer token.

    The token must verify and the user it names must still exist and be
    active.

    Args:
        authorization: Bearer token in Authorization header
        users: User repository

    Returns:
        The authenticated user (without password)

    Raises:
        UnauthorizedError: If the token is missing or invalid, or the account
            is gone or inactive
    """
    return await _load_user(authorization, users)


async def get_optional_user(
    authorization: Optional[str] = Header(None),
    users: UserRepository = Depends(get_user_repository),
) -> Optional[CurrentUser]:
    """Like get_current_user, but returns None instead of failing."""
    try:
        return await _load_user(authorization, users)
    except AppError as e:
        logger.debug("Optional authentication skipped", reason=e.message)
        return None


def require_roles(*allowed_roles: str) -> Callable:
    """
    Build a dependency that admits only the given roles.

    Args:
        *allowed_roles: Roles permitted to call the endpoint

    Returns:
        FastAPI dependency returning the current user
    """

    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed_roles:
            raise ForbiddenError(f"Access denied. Required role: {' or '.join(allowed_roles)}")
        return current_user

    return checker


require_admin = require_roles("admin")


def valid_user_id(id: str = Path(...)) -> str:
    """Path dependency rejecting ids that are not v4 UUIDs."""
    return validate_uuid_param(id, "id").lower()


async def verify_ownership(
    user_id: str = Depends(valid_user_id),
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    Allow admins, or the owner of the account named in the path.

    Raises:
        ForbiddenError: If a non-admin targets another account
    """
    if current_user.is_admin:
        return current_user

    if current_user.id != user_id:
        raise ForbiddenError("You do not have permission to access this resource")

    return current_user
