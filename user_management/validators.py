"""
Validation utilities for the user management service.

Provides field validators for email, password strength, names, roles and
pagination, plus request validators that collect every problem into a
single ValidationError.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import ValidationError
from .models import (
    LoginRequest,
    PasswordChangeRequest,
    SignupRequest,
    UserUpdateRequest,
)

ROLES = ("admin", "user")
STATUSES = ("active", "inactive")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
FULL_NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class PasswordValidator:
    """
    Password strength validator.

    Enforces the password policy:
    - Minimum 8 characters
    - At most 72 bytes once UTF-8 encoded (bcrypt input limit)
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """

    MIN_LENGTH = 8
    MAX_BYTES = 72

    UPPERCASE_PATTERN = re.compile(r"[A-Z]")
    LOWERCASE_PATTERN = re.compile(r"[a-z]")
    DIGIT_PATTERN = re.compile(r"[0-9]")
    SPECIAL_CHAR_PATTERN = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

    @classmethod
    def validate(cls, password: Optional[str]) -> List[str]:
        """
        Validate password strength.

        Args:
            password: Password string to validate

        Returns:
            List of violated rules, empty when the password is acceptable
        """
        password = password or ""
        errors = []

        if len(password) < cls.MIN_LENGTH:
            errors.append(f"Password must be at least {cls.MIN_LENGTH} characters long")

        if len(password.encode("utf-8")) > cls.MAX_BYTES:
            errors.append(f"Password must not exceed {cls.MAX_BYTES} bytes")

        if not cls.UPPERCASE_PATTERN.search(password):
            errors.append("Password must contain at least one uppercase letter")

        if not cls.LOWERCASE_PATTERN.search(password):
            errors.append("Password must contain at least one lowercase letter")

        if not cls.DIGIT_PATTERN.search(password):
            errors.append("Password must contain at least one number")

        if not cls.SPECIAL_CHAR_PATTERN.search(password):
            errors.append("Password must contain at least one special character")

        return errors

    @classmethod
    def is_valid(cls, password: Optional[str]) -> bool:
        return not cls.validate(password)


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def is_valid_uuid(value: Any) -> bool:
    """Check for a version 4 UUID string."""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))


def validate_full_name(name: Any) -> Tuple[bool, str]:
    """
    Validate a full name.

    Args:
        name: Name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not name or not isinstance(name, str):
        return False, "Name is required"

    trimmed = name.strip()

    if len(trimmed) < 2:
        return False, "Name must be at least 2 characters long"

    if len(trimmed) > 100:
        return False, "Name must not exceed 100 characters"

    if not FULL_NAME_PATTERN.match(trimmed):
        return False, "Name contains invalid characters"

    return True, ""


def is_valid_role(role: Any) -> bool:
    return role in ROLES


def is_valid_status(status: Any) -> bool:
    return status in STATUSES


def sanitize_string(value: Any) -> str:
    """Trim a string and collapse internal whitespace runs to one space."""
    if not isinstance(value, str):
        return ""
    return re.sub(r"\s+", " ", value.strip())


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def validate_pagination(page: Any, limit: Any) -> Tuple[int, int]:
    """
    Coerce pagination parameters into a usable range.

    Args:
        page: Requested page (string or int)
        limit: Requested page size (string or int)

    Returns:
        Tuple of (page, limit); page defaults to 1, limit to 10 and is capped at 100
    """
    parsed_page = _to_int(page)
    parsed_limit = _to_int(limit)

    safe_page = parsed_page if parsed_page and parsed_page > 0 else DEFAULT_PAGE
    if parsed_limit and 0 < parsed_limit <= MAX_LIMIT:
        safe_limit = parsed_limit
    else:
        safe_limit = DEFAULT_LIMIT
    return safe_page, safe_limit


# ==================== REQUEST VALIDATORS ====================


def _field_error(field: str, message: str) -> Dict[str, str]:
    return {"field": field, "message": message}


def _raise_if_errors(errors: List[Dict[str, str]]) -> None:
    if errors:
        raise ValidationError("Validation failed", errors)


def validate_signup(payload: SignupRequest) -> SignupRequest:
    """
    Validate registration data.

    Returns:
        A copy with the email lower-cased and the name sanitized

    Raises:
        ValidationError: Listing every invalid field
    """
    errors = []

    if is_empty(payload.email):
        errors.append(_field_error("email", "Email is required"))
    elif not is_valid_email(payload.email):
        errors.append(_field_error("email", "Invalid email format"))

    if is_empty(payload.password):
        errors.append(_field_error("password", "Password is required"))
    else:
        for message in PasswordValidator.validate(payload.password):
            errors.append(_field_error("password", message))

    if is_empty(payload.full_name):
        errors.append(_field_error("full_name", "Full name is required"))
    else:
        valid, message = validate_full_name(payload.full_name)
        if not valid:
            errors.append(_field_error("full_name", message))

    _raise_if_errors(errors)

    return payload.model_copy(
        update={
            "email": sanitize_string(payload.email).lower(),
            "full_name": sanitize_string(payload.full_name),
        }
    )


def validate_login(payload: LoginRequest) -> LoginRequest:
    errors = []

    if is_empty(payload.email):
        errors.append(_field_error("email", "Email is required"))
    elif not is_valid_email(payload.email):
        errors.append(_field_error("email", "Invalid email format"))

    if is_empty(payload.password):
        errors.append(_field_error("password", "Password is required"))

    _raise_if_errors(errors)

    return payload.model_copy(update={"email": sanitize_string(payload.email).lower()})


def validate_user_update(payload: UserUpdateRequest) -> UserUpdateRequest:
    """
    Validate a partial user update.

    Only fields that were actually sent are checked. Email and name are
    normalized in the returned copy.
    """
    errors = []
    updates: Dict[str, Any] = {}
    sent = payload.model_fields_set

    if "email" in sent:
        if is_empty(payload.email):
            errors.append(_field_error("email", "Email cannot be empty"))
        elif not is_valid_email(payload.email):
            errors.append(_field_error("email", "Invalid email format"))
        else:
            updates["email"] = sanitize_string(payload.email).lower()

    if "full_name" in sent:
        if is_empty(payload.full_name):
            errors.append(_field_error("full_name", "Full name cannot be empty"))
        else:
            valid, message = validate_full_name(payload.full_name)
            if not valid:
                errors.append(_field_error("full_name", message))
            else:
                updates["full_name"] = sanitize_string(payload.full_name)

    if "role" in sent and not is_valid_role(payload.role):
        errors.append(_field_error("role", "Invalid role. Must be admin or user"))

    if "status" in sent and not is_valid_status(payload.status):
        errors.append(_field_error("status", "Invalid status. Must be active or inactive"))

    _raise_if_errors(errors)

    return payload.model_copy(update=updates)


def validate_list_filters(role: Optional[str], status: Optional[str]) -> None:
    """Reject role/status filters outside the enum values stored in the database."""
    errors = []
    if role and not is_valid_role(role):
        errors.append(_field_error("role", "Invalid role. Must be admin or user"))
    if status and not is_valid_status(status):
        errors.append(_field_error("status", "Invalid status. Must be active or inactive"))
    _raise_if_errors(errors)


def validate_password_change(payload: PasswordChangeRequest) -> PasswordChangeRequest:
    errors = []

    if is_empty(payload.current_password):
        errors.append(_field_error("current_password", "Current password is required"))

    if is_empty(payload.new_password):
        errors.append(_field_error("new_password", "New password is required"))
    else:
        for message in PasswordValidator.validate(payload.new_password):
            errors.append(_field_error("new_password", message))

    if not errors and payload.current_password == payload.new_password:
        errors.append(
            _field_error("new_password", "New password must be different from current password")
        )

    _raise_if_errors(errors)
    return payload


def validate_uuid_param(value: Any, param_name: str = "id") -> str:
    """
    Validate a UUID path parameter.

    Raises:
        ValidationError: If the parameter is missing or not a v4 UUID
    """
    if is_empty(value):
        raise ValidationError(f"Parameter '{param_name}' is required")

    if not is_valid_uuid(value):
        raise ValidationError(f"Invalid {param_name} format")

    return value
