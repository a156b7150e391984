"""
Security utilities for authentication.

Provides password hashing, JWT token generation and validation.
"""

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from jwt.exceptions import (
    ExpiredSignatureError,
    ImmatureSignatureError,
    InvalidTokenError,
    PyJWTError,
)

from .config import settings
from .exceptions import UnauthorizedError
from .logging_config import get_logger

logger = get_logger(__name__)


# ==================== PASSWORD HASHING ====================


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string

    Raises:
        ValueError: If password is empty or not a string
    """
    if not password or not isinstance(password, str):
        raise ValueError("Password must be a non-empty string")

    salt = bcrypt.gensalt(rounds=settings.PASSWORD_HASH_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        password: Plain text password to verify
        hashed_password: Stored hash to verify against

    Returns:
        True if password matches, False otherwise
    """
    if not password or not hashed_password:
        return False

    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error("Password verification failed", error=str(e))
        return False


def get_hash_rounds(hashed_password: str) -> Optional[int]:
    """Read the cost factor out of a ``$2b$<rounds>$...`` bcrypt hash."""
    parts = hashed_password.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return None
    return int(parts[2])


def needs_rehash(hashed_password: str) -> bool:
    """
    Check whether a stored hash was produced with fewer rounds than configured.

    Args:
        hashed_password: Stored bcrypt hash

    Returns:
        True if the hash should be recomputed on next login
    """
    rounds = get_hash_rounds(hashed_password)
    if rounds is None:
        logger.warning("Could not read bcrypt rounds from stored hash")
        return False
    return rounds < settings.PASSWORD_HASH_ROUNDS


SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"


def generate_random_password(length: int = 12) -> str:
    """
    Generate a random password satisfying the password policy.

    The result always holds at least one uppercase letter, one lowercase
    letter, one digit and one special character.

    Args:
        length: Password length, minimum 4

    Returns:
        Random password string
    """
    length = max(length, 4)
    rng = secrets.SystemRandom()
    required = [
        rng.choice(string.ascii_uppercase),
        rng.choice(string.ascii_lowercase),
        rng.choice(string.digits),
        rng.choice(SPECIAL_CHARACTERS),
    ]
    alphabet = string.ascii_letters + string.digits + SPECIAL_CHARACTERS
    rest = [rng.choice(alphabet) for _ in range(length - len(required))]

    chars = required + rest
    rng.shuffle(chars)
    return "".join(chars)


# ==================== JWT TOKENS ====================


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: User's UUID
        email: User's email
        role: User's role (admin or user)
        expires_delta: Optional lifetime, defaults to JWT_EXPIRES_IN_DAYS

    Returns:
        Encoded JWT access token

    Raises:
        ValueError: If any identity claim is missing
    """
    if not user_id or not email or not role:
        raise ValueError("Invalid token payload: id, email, and role are required")

    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.JWT_EXPIRES_IN_DAYS))

    payload = {
        "id": str(user_id),
        "email": email,
        "role": role,
        "iat": now,
        "exp": expire,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }

    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    logger.debug("Created access token", user_id=str(user_id), expires_at=expire.isoformat())
    return token


def decode_access_token(token: Optional[str]) -> Dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded payload

    Raises:
        UnauthorizedError: If the token is missing, expired or invalid
    """
    if not token:
        raise UnauthorizedError("No token provided")

    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
        )
    except ExpiredSignatureError:
        logger.debug("Access token expired")
        raise UnauthorizedError("Token has expired")
    except ImmatureSignatureError:
        raise UnauthorizedError("Token not yet valid")
    except InvalidTokenError as e:
        logger.warning("Invalid access token", error=str(e))
        raise UnauthorizedError("Invalid token")
    except PyJWTError as e:
        logger.warning("Token verification failed", error=str(e))
        raise UnauthorizedError("Token verification failed")


def decode_unverified(token: str) -> Optional[Dict[str, Any]]:
    """Decode a token without checking its signature or claims."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except PyJWTError as e:
        logger.debug("Token decode error", error=str(e))
        return None


def get_token_expiration(token: str) -> Optional[datetime]:
    """
    Get the expiration time of a token without verifying it.

    Args:
        token: JWT token string

    Returns:
        Expiration as an aware datetime, or None if absent or undecodable
    """
    payload = decode_unverified(token)
    if not payload or "exp" not in payload:
        return None
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)


def is_token_expired(token: str) -> bool:
    expires_at = get_token_expiration(token)
    if expires_at is None:
        return True
    return expires_at < datetime.now(timezone.utc)


def extract_token_from_header(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token from an Authorization header.

    Accepts ``Bearer <token>``; a value without the prefix is treated as the
    token itself.

    Args:
        authorization: Authorization header value

    Returns:
        Token string, or None if the header is empty
    """
    if not authorization:
        return None

    if authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None

    return authorization.strip() or None
