"""
Authentication endpoints.

This module contains signup, login, token verification, token refresh,
logout and current-user lookup.
"""

from fastapi import APIRouter, Depends, status

from ..auth_service import AuthService
from ..dependencies import get_auth_service, get_current_user
from ..exceptions import UnauthorizedError
from ..logging_config import get_logger
from ..models import CurrentUser, LoginRequest, SignupRequest
from ..rate_limiter import check_login_rate_limit, login_rate_limiter
from ..responses import send_created, send_success
from ..validators import validate_login, validate_signup

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
)
async def sign_up(
    payload: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Register a new user with email, password and full name.

    Returns the created user and a token for immediate authentication.
    """
    data = validate_signup(payload)

    result = await auth_service.sign_up(
        email=data.email,
        password=data.password,
        full_name=data.full_name,
    )

    return send_created(message="User registered successfully", data=result)


@router.post("/login", summary="Login user")
async def login(
    payload: LoginRequest,
    client_ip: str = Depends(check_login_rate_limit),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate with email and password.

    Failed attempts count against the caller's IP; after too many the
    endpoint answers 429 until the window clears.
    """
    data = validate_login(payload)

    try:
        result = await auth_service.sign_in(email=data.email, password=data.password)
    except UnauthorizedError:
        login_rate_limiter.record_failure(client_ip)
        raise

    return send_success(message="Login successful", data=result)


@router.get("/me", summary="Get current user")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Get the authenticated user, freshly loaded from the database."""
    user = await auth_service.get_user(current_user.id)
    return send_success(message="User retrieved successfully", data={"user": user})


@router.post("/logout", summary="Logout user")
async def logout(current_user: CurrentUser = Depends(get_current_user)):
    """
    Acknowledge a logout.

    Tokens are stateless; the client is expected to discard its copy.
    """
    logger.info("User logged out", user_id=current_user.id)
    return send_success(message="Logout successful. Please remove the token from client storage.")


@router.post("/refresh", summary="Refresh token")
async def refresh(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    token = await auth_service.refresh_token(current_user.id)
    return send_success(message="Token refreshed successfully", data={"token": token})


@router.post("/verify", summary="Verify token")
async def verify(current_user: CurrentUser = Depends(get_current_user)):
    """Reaching this handler means the token passed authentication."""
    return send_success(
        message="Token is valid",
        data={"user": current_user.model_dump(), "valid": True},
    )
