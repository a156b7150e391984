"""
Pydantic models for request/response schemas.

Request models are deliberately permissive: field rules live in
``validators`` so that every violation is reported in one 400 response.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

# Request Models


class SignupRequest(BaseModel):
    """Model for user registration."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    """Model for user login."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdateRequest(BaseModel):
    """Model for updating a user; role and status are honoured for admins only."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly present in the request body."""
        return self.model_dump(include=self.model_fields_set)


class PasswordChangeRequest(BaseModel):
    """Model for changing the caller's password."""

    model_config = ConfigDict(extra="ignore")

    current_password: Optional[str] = None
    new_password: Optional[str] = None


class UserListQuery(BaseModel):
    """Query parameters for the admin user listing."""

    page: int = 1
    limit: int = 10
    role: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "DESC"


# Response Models


class UserResponse(BaseModel):
    """Public view of a user. The password hash is never part of it."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: UUID
    email: str
    full_name: str
    role: str
    status: str
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CurrentUser(BaseModel):
    """Authenticated caller attached to a request."""

    id: str
    email: str
    full_name: str
    role: str
    status: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def serialize_user(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a database row into its public JSON form."""
    if row is None:
        return None
    return UserResponse.model_validate(dict(row)).model_dump(mode="json")
