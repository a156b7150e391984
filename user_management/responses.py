"""
Response envelope helpers.

Every endpoint answers with ``{"success": true, "message", "data", "meta"}``
on success and ``{"success": false, "message", "error"}`` on failure.
"""

from typing import Any, Dict, List, Optional

from fastapi import Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def send_success(
    message: Optional[str] = None,
    data: Any = None,
    meta: Optional[Dict[str, Any]] = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Build a success response.

    ``data`` and ``meta`` are omitted from the body when they are None.
    """
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if meta is not None:
        body["meta"] = meta
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def send_created(message: Optional[str] = None, data: Any = None) -> JSONResponse:
    return send_success(message=message, data=data, status_code=status.HTTP_201_CREATED)


def send_paginated(
    data: List[Any],
    pagination: Dict[str, Any],
    message: Optional[str] = None,
) -> JSONResponse:
    return send_success(message=message, data=data, meta={"pagination": pagination})


def send_no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def send_error(
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    message: str = "Internal Server Error",
    code: str = "ERROR",
    errors: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Build an error response.

    Args:
        status_code: HTTP status code
        message: Human-readable error message
        code: Machine-readable error code
        errors: Optional validation details, placed under ``error.details``
        headers: Optional extra response headers

    Returns:
        JSONResponse with the error envelope
    """
    body: Dict[str, Any] = {
        "success": False,
        "message": message,
        "error": {
            "code": code,
            "status": status_code,
        },
    }
    if errors:
        body["error"]["details"] = errors
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )
