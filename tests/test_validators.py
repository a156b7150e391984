"""
Tests for validators.py module.

Covers field validators, pagination coercion and request validators.
"""

import pytest

from user_management.exceptions import ValidationError
from user_management.models import (
    LoginRequest,
    PasswordChangeRequest,
    SignupRequest,
    UserUpdateRequest,
)
from user_management.validators import (
    PasswordValidator,
    is_empty,
    is_valid_email,
    is_valid_role,
    is_valid_status,
    is_valid_uuid,
    sanitize_string,
    validate_full_name,
    validate_list_filters,
    validate_login,
    validate_pagination,
    validate_password_change,
    validate_signup,
    validate_user_update,
    validate_uuid_param,
)


def fields(exc_info):
    return {error["field"] for error in exc_info.value.errors}


class TestPasswordValidator:
    """Test password policy."""

    def test_valid_password(self):
        assert PasswordValidator.validate("Secure@123") == []
        assert PasswordValidator.is_valid("Secure@123")

    def test_reports_every_violation(self):
        errors = PasswordValidator.validate("abc")
        assert "Password must be at least 8 characters long" in errors
        assert "Password must contain at least one uppercase letter" in errors
        assert "Password must contain at least one number" in errors
        assert "Password must contain at least one special character" in errors
        assert "Password must contain at least one lowercase letter" not in errors

    def test_none_password(self):
        assert len(PasswordValidator.validate(None)) == 5

    def test_rejects_more_than_72_bytes(self):
        assert PasswordValidator.validate("Aa1!" + "x" * 80) == [
            "Password must not exceed 72 bytes"
        ]
        assert PasswordValidator.is_valid("Aa1!" + "x" * 68)

    def test_byte_limit_counts_utf8(self):
        errors = PasswordValidator.validate("Aa1!" + "\u00e9" * 35)
        assert "Password must not exceed 72 bytes" in errors


class TestFieldValidators:
    """Test single-field validators."""

    @pytest.mark.parametrize("email", ["user@example.com", "first.last@sub.domain.org"])
    def test_valid_emails(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["invalid-email", "a@b", "has space@x.com", "", None])
    def test_invalid_emails(self, email):
        assert not is_valid_email(email)

    def test_uuid_v4_only(self):
        assert is_valid_uuid("3f2b8c1e-6d4a-4f7b-9c2e-1a2b3c4d5e6f")
        assert not is_valid_uuid("3f2b8c1e-6d4a-1f7b-9c2e-1a2b3c4d5e6f")
        assert not is_valid_uuid("not-a-uuid")

    def test_full_name(self):
        assert validate_full_name("Mary-Jane O'Neil") == (True, "")
        assert validate_full_name("A")[0] is False
        assert validate_full_name("x" * 101)[0] is False
        assert validate_full_name("R2D2")[0] is False

    def test_roles_and_statuses(self):
        assert is_valid_role("admin") and is_valid_role("user")
        assert not is_valid_role("superuser")
        assert is_valid_status("inactive")
        assert not is_valid_status("banned")

    def test_sanitize_string(self):
        assert sanitize_string("  John    Doe ") == "John Doe"
        assert sanitize_string(None) == ""

    def test_is_empty(self):
        assert is_empty(None)
        assert is_empty("   ")
        assert is_empty([])
        assert not is_empty("x")
        assert not is_empty(0)


class TestPagination:
    """Test pagination coercion."""

    def test_defaults(self):
        assert validate_pagination(None, None) == (1, 10)

    def test_valid_values(self):
        assert validate_pagination("3", "25") == (3, 25)

    def test_invalid_values_fall_back(self):
        assert validate_pagination("abc", "0") == (1, 10)
        assert validate_pagination(-2, 500) == (1, 10)

    def test_limit_upper_bound(self):
        assert validate_pagination(1, 100) == (1, 100)
        assert validate_pagination(1, 101) == (1, 10)


class TestRequestValidators:
    """Test whole-request validators."""

    def test_signup_normalizes(self):
        result = validate_signup(
            SignupRequest(email="  John@Example.COM ", password="Secure@123", full_name=" John   Doe ")
        )
        assert result.email == "john@example.com"
        assert result.full_name == "John Doe"

    def test_signup_collects_all_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_signup(SignupRequest(email="bad", password="weak"))
        assert exc_info.value.message == "Validation failed"
        assert fields(exc_info) == {"email", "password", "full_name"}

    def test_login_requires_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_login(LoginRequest())
        assert fields(exc_info) == {"email", "password"}

    def test_update_checks_only_sent_fields(self):
        result = validate_user_update(UserUpdateRequest(full_name="Jane  Smith"))
        assert result.full_name == "Jane Smith"
        assert result.changes() == {"full_name": "Jane Smith"}

    def test_update_rejects_bad_role_and_status(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_user_update(UserUpdateRequest(role="root", status="gone"))
        assert fields(exc_info) == {"role", "status"}

    def test_update_rejects_empty_email(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_user_update(UserUpdateRequest(email=""))
        assert fields(exc_info) == {"email"}

    def test_password_change_same_password(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_password_change(
                PasswordChangeRequest(current_password="Secure@123", new_password="Secure@123")
            )
        messages = [error["message"] for error in exc_info.value.errors]
        assert "New password must be different from current password" in messages

    def test_password_change_weak_new_password(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_password_change(
                PasswordChangeRequest(current_password="Secure@123", new_password="short")
            )
        assert fields(exc_info) == {"new_password"}

    def test_list_filters(self):
        validate_list_filters(None, None)
        validate_list_filters("admin", "inactive")

        with pytest.raises(ValidationError) as exc_info:
            validate_list_filters("superadmin", "active")
        assert fields(exc_info) == {"role"}

    def test_uuid_param(self):
        value = "3f2b8c1e-6d4a-4f7b-9c2e-1a2b3c4d5e6f"
        assert validate_uuid_param(value) == value

        with pytest.raises(ValidationError) as exc_info:
            validate_uuid_param("123")
        assert exc_info.value.message == "Invalid id format"
