"""
Authentication service.

Provides business logic for registration, login and token renewal on top
of the user repository.
"""

from typing import Any, Dict

from .exceptions import ConflictError, NotFoundError, UnauthorizedError
from .logging_config import get_logger
from .models import serialize_user
from .repositories import UserRepository
from .security import create_access_token, hash_password, needs_rehash, verify_password

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def issue_token(user: Dict[str, Any]) -> str:
    return create_access_token(user_id=str(user["id"]), email=user["email"], role=user["role"])


class AuthService:
    """
    Service class for authentication operations.

    Handles user registration, login and token refresh. Logout is
    stateless: clients discard their token.
    """

    def __init__(self, users: UserRepository) -> None:
        self.users = users

    async def sign_up(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        """
        Register a new user.

        New accounts always get the ``user`` role and ``active`` status.

        Args:
            email: Normalized email address
            password: Plain text password (already policy-checked)
            full_name: Sanitized full name

        Returns:
            Dictionary with ``user`` and ``token``

        Raises:
            ConflictError: If the email is already registered
        """
        logger.info("Attempting to register user", email=email)

        if await self.users.find_by_email(email):
            logger.warning("Registration failed", reason="email_exists", email=email)
            raise ConflictError("User with this email already exists")

        user = await self.users.create(
            email=email,
            password=hash_password(password),
            full_name=full_name,
            role="user",
            status="active",
        )
        token = issue_token(user)
        user = await self.users.update_last_login(user["id"]) or user

        return {"user": serialize_user(user), "token": token}

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate a user with email and password.

        Unknown email, inactive account and wrong password all fail with the
        same message so callers cannot probe which accounts exist.

        Returns:
            Dictionary with ``user`` and ``token``

        Raises:
            UnauthorizedError: If authentication fails
        """
        logger.info("User sign in attempt", email=email)

        user = await self.users.find_by_email(email, include_password=True)
        if not user:
            logger.warning("Sign in failed", reason="user_not_found", email=email)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if not verify_password(password, user["password"]):
            logger.warning("Sign in failed", reason="invalid_password", email=email)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if user["status"] != "active":
            logger.warning("Sign in failed", reason="account_inactive", email=email)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if needs_rehash(user["password"]):
            await self.users.update(user["id"], {"password": hash_password(password)})
            logger.info("Rehashed password", user_id=str(user["id"]))

        token = issue_token(user)
        refreshed = await self.users.update_last_login(user["id"])

        return {"user": serialize_user(refreshed or user), "token": token}

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        user = await self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return serialize_user(user)

    async def refresh_token(self, user_id: str) -> str:
        """
        Issue a new token for a still-valid account.

        Raises:
            NotFoundError: If the user no longer exists
            UnauthorizedError: If the account was deactivated
        """
        user = await self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        if user["status"] != "active":
            raise UnauthorizedError("Your account has been deactivated")

        return issue_token(user)
