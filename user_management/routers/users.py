"""
User management endpoints.

Profile routes act on the caller; the remaining routes implement the admin
user CRUD with owner access where allowed.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import (
    get_current_user,
    get_user_service,
    require_admin,
    valid_user_id,
    verify_ownership,
)
from ..models import CurrentUser, PasswordChangeRequest, UserListQuery, UserUpdateRequest
from ..responses import send_no_content, send_paginated, send_success
from ..user_service import UserService
from ..validators import (
    validate_list_filters,
    validate_pagination,
    validate_password_change,
    validate_user_update,
)

router = APIRouter(prefix="/users", tags=["User Management"])


# ==================== PROFILE (current user) ====================


@router.get("/profile", summary="Get own profile")
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.get_profile(current_user)
    return send_success(message="Profile retrieved successfully", data={"user": user})


@router.put("/profile", summary="Update own profile")
async def update_profile(
    payload: UserUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """Update the caller's email and full name. Role and status are ignored."""
    update = validate_user_update(payload)
    user = await user_service.update_profile(current_user, update)
    return send_success(message="Profile updated successfully", data={"user": user})


# ==================== ADMIN ====================


@router.get("", summary="List users (admin)")
async def list_users(
    page: str = Query("1"),
    limit: str = Query("10"),
    role: Optional[str] = Query(None),
    user_status: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("DESC", alias="sortOrder"),
    _admin: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
):
    """
    Paginated user listing.

    Supports exact ``role``/``status`` filters, a ``search`` substring on
    name or email, and ``sortBy``/``sortOrder``. Invalid page or limit
    values fall back to defaults; unknown role or status values are a 400.
    """
    validate_list_filters(role, user_status)
    page_number, page_size = validate_pagination(page, limit)
    query = UserListQuery(
        page=page_number,
        limit=page_size,
        role=role or None,
        status=user_status or None,
        search=search or None,
        sort_by=sort_by,
        sort_order=sort_order,
    )

    result = await user_service.list_users(query)
    return send_paginated(
        data=result["users"],
        pagination=result["pagination"],
        message="Users retrieved successfully",
    )


@router.get("/stats", summary="User statistics (admin)")
async def get_stats(
    _admin: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
):
    stats = await user_service.get_stats()
    return send_success(message="User statistics retrieved successfully", data=stats)


# ==================== USER MANAGEMENT ====================


@router.get("/{id}", summary="Get user by id")
async def get_user(
    user_id: str = Depends(valid_user_id),
    _caller: CurrentUser = Depends(verify_ownership),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.get_user(user_id)
    return send_success(message="User retrieved successfully", data={"user": user})


@router.put("/{id}", summary="Update user")
async def update_user(
    payload: UserUpdateRequest,
    user_id: str = Depends(valid_user_id),
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """
    Update a user.

    Admins may change any field of any user; other users may change their
    own email and name only.
    """
    update = validate_user_update(payload)
    user = await user_service.update_user(current_user, user_id, update)
    return send_success(message="User updated successfully", data={"user": user})


@router.patch("/{id}/password", summary="Change own password")
async def change_password(
    payload: PasswordChangeRequest,
    user_id: str = Depends(valid_user_id),
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    data = validate_password_change(payload)
    await user_service.change_password(
        current_user,
        user_id,
        current_password=data.current_password,
        new_password=data.new_password,
    )
    return send_success(
        message="Password changed successfully. Please login with your new password."
    )


@router.patch("/{id}/activate", summary="Activate user (admin)")
async def activate_user(
    user_id: str = Depends(valid_user_id),
    _admin: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
):
    user, message = await user_service.activate_user(user_id)
    return send_success(message=message, data={"user": user})


@router.patch("/{id}/deactivate", summary="Deactivate user (admin)")
async def deactivate_user(
    user_id: str = Depends(valid_user_id),
    admin: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
):
    user, message = await user_service.deactivate_user(admin, user_id)
    return send_success(message=message, data={"user": user})


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete user")
async def delete_user(
    user_id: str = Depends(valid_user_id),
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    await user_service.delete_user(current_user, user_id)
    return send_no_content()
