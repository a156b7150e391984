"""
HTTP client module for the user management API.

Wraps ``httpx.AsyncClient`` with bearer token injection, envelope
unwrapping and translation of failures into ``ApiError``.
"""

import time
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..logging_config import get_logger
from .storage import TokenStore

logger = get_logger(__name__)

TIMEOUT_MESSAGE = "Request timeout. Please try again."
NETWORK_MESSAGE = "Network error. Please check your connection."
DEFAULT_ERROR_MESSAGE = "An error occurred"


class ApiError(Exception):
    """
    Error raised for any failed API call.

    Attributes:
        status: HTTP status code; 408 for timeouts, 0 for network failures
        message: Error message from the server or a client-side description
        errors: Field level validation details, if any
        data: Raw error body, if the server sent one
    """

    def __init__(
        self,
        status: int,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.status = status
        self.message = message
        self.errors = errors or []
        self.data = data
        super().__init__(self.message)


def is_session_expired(status: int, message: str) -> bool:
    """A 401 naming an expired or invalid token ends the stored session."""
    return status == 401 and ("expired" in message or "Invalid token" in message)


class ApiClient:
    """
    Client for the user management REST API.

    All methods are async and return the decoded success envelope
    ``{"success": True, "message", "data", "meta"}``.

    Attributes:
        base_url: API root, e.g. ``http://localhost:5000/api``
        timeout: Request timeout in seconds
        store: Token store consulted for the Authorization header
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize API client.

        Args:
            base_url: API root (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            store: Token store (defaults to a fresh in-memory store)
            transport: Optional httpx transport, used by tests
        """
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.store = store if store is not None else TokenStore()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
            logger.debug("Created HTTP client", base_url=self.base_url)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_request_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        token = self.store.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send a request and return the success envelope.

        Args:
            method: HTTP method
            path: Path relative to the API root, e.g. ``/auth/login``
            json: Optional JSON body
            params: Optional query parameters

        Returns:
            Decoded response body; empty dict for 204 responses

        Raises:
            ApiError: On error responses, timeouts and network failures
        """
        start_time = time.perf_counter()
        client = await self._get_client()

        try:
            response = await client.request(
                method,
                path,
                json=json,
                params=params,
                headers=self._get_request_headers(),
            )
        except httpx.TimeoutException as e:
            logger.warning("Request timed out", method=method, path=path, timeout=self.timeout)
            raise ApiError(408, TIMEOUT_MESSAGE) from e
        except httpx.TransportError as e:
            logger.warning("Request failed", method=method, path=path, error=str(e))
            raise ApiError(0, NETWORK_MESSAGE) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "Response received",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 1),
        )

        if response.status_code == 204 or not response.content:
            if response.is_error:
                raise ApiError(response.status_code, DEFAULT_ERROR_MESSAGE)
            return {}

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            self._raise_for_error(response.status_code, body)

        if not isinstance(body, dict):
            raise ApiError(response.status_code, "Unexpected response from server")
        return body

    def _raise_for_error(self, status: int, body: Any) -> None:
        data = body if isinstance(body, dict) else None
        message = (data or {}).get("message") or DEFAULT_ERROR_MESSAGE
        details = ((data or {}).get("error") or {}).get("details") or []

        if is_session_expired(status, message):
            logger.info("Session expired or token invalid, clearing stored credentials")
            self.store.clear()
        elif status == 403:
            logger.warning("Access denied", reason=message)
        elif status >= 500:
            logger.error("Server error", status=status, reason=message)

        raise ApiError(status, message, details, data)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Dict[str, Any]:
        return await self.request("DELETE", path)
