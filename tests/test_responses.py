"""
Tests for the response envelope helpers and the exception hierarchy.
"""

import json
from datetime import datetime, timezone

from user_management.exceptions import (
    AppError,
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    TooManyRequestsError,
    UnauthorizedError,
    ValidationError,
)
from user_management.responses import (
    send_created,
    send_error,
    send_no_content,
    send_paginated,
    send_success,
)


def body_of(response):
    return json.loads(response.body)


class TestSuccessResponses:
    def test_send_success(self):
        response = send_success("Done", {"value": 1})
        assert response.status_code == 200
        assert body_of(response) == {"success": True, "message": "Done", "data": {"value": 1}}

    def test_send_success_omits_empty_parts(self):
        assert body_of(send_success()) == {"success": True}

    def test_send_success_encodes_datetimes(self):
        moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert body_of(send_success(data={"at": moment}))["data"]["at"].startswith("2024-01-02T03:04:05")

    def test_send_created(self):
        assert send_created("Created", {"id": 1}).status_code == 201

    def test_send_paginated(self):
        pagination = {"current_page": 1, "total_pages": 1}
        body = body_of(send_paginated([{"id": 1}], pagination, "Listed"))
        assert body["data"] == [{"id": 1}]
        assert body["meta"] == {"pagination": pagination}

    def test_send_no_content(self):
        response = send_no_content()
        assert response.status_code == 204
        assert response.body == b""


class TestErrorResponses:
    def test_send_error(self):
        response = send_error(404, "User not found", "NOT_FOUND")
        assert response.status_code == 404
        assert body_of(response) == {
            "success": False,
            "message": "User not found",
            "error": {"code": "NOT_FOUND", "status": 404},
        }

    def test_send_error_with_details_and_headers(self):
        details = [{"field": "email", "message": "Email is required"}]
        response = send_error(429, "Slow down", "TOO_MANY_REQUESTS", details, {"Retry-After": "30"})
        assert body_of(response)["error"]["details"] == details
        assert response.headers["Retry-After"] == "30"


class TestExceptions:
    def test_status_codes(self):
        assert ValidationError().status_code == 400
        assert UnauthorizedError().status_code == 401
        assert ForbiddenError().status_code == 403
        assert NotFoundError().status_code == 404
        assert ConflictError().status_code == 409
        assert TooManyRequestsError().status_code == 429
        assert DatabaseError().code == "DATABASE_ERROR"

    def test_validation_error_carries_details(self):
        error = ValidationError("Validation failed", [{"field": "email", "message": "bad"}])
        assert error.errors[0]["field"] == "email"
        assert ValidationError().errors == []

    def test_app_error_overrides(self):
        error = AppError("Teapot", status_code=418, code="TEAPOT")
        assert (error.status_code, error.code, str(error)) == (418, "TEAPOT", "Teapot")
        assert error.is_client_error is True
        assert AppError("boom").is_client_error is False
