"""
Failed-login throttling.

Each client IP gets a sliding window of failure timestamps. Once the window
holds ``max_attempts`` failures, further login attempts are refused with 429
until the oldest failure ages out. Successful logins never enter the window.

State lives in process memory; every worker keeps its own counts.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Deque, Dict, Optional, Tuple

from fastapi import Request

from .config import settings
from .exceptions import TooManyRequestsError
from .logging_config import get_logger

logger = get_logger(__name__)

SWEEP_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class RateLimitConfig:
    max_attempts: int
    window_seconds: int


@dataclass
class FailureWindow:
    """Failure timestamps for one client, oldest first."""

    timestamps: Deque[float] = field(default_factory=deque)

    def trim(self, horizon: float) -> None:
        while self.timestamps and self.timestamps[0] <= horizon:
            self.timestamps.popleft()

    @property
    def last_seen(self) -> Optional[float]:
        return self.timestamps[-1] if self.timestamps else None


def get_client_ip(request: Request, trust_proxy: Optional[bool] = None) -> str:
    """
    Client address used to key the failure window.

    The first X-Forwarded-For hop is used only when ``trust_proxy`` (default
    ``settings.TRUST_PROXY``) is on; otherwise the header is client-supplied
    and ignored.
    """
    if trust_proxy is None:
        trust_proxy = settings.TRUST_PROXY
    if trust_proxy:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class LoginAttemptLimiter:
    """
    Sliding window over failed logins, keyed by client IP.

    All public methods take the internal lock, so one instance can be shared
    across threads.
    """

    def __init__(self, config: RateLimitConfig) -> None:
        self.config = config
        self._windows: Dict[str, FailureWindow] = {}
        self._lock = Lock()
        self._last_sweep = time.time()

    def _horizon(self, now: float) -> float:
        return now - self.config.window_seconds

    def _sweep(self, now: float) -> None:
        # Drops idle clients at most once per SWEEP_INTERVAL_SECONDS.
        if now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now

        horizon = self._horizon(now)
        idle = [
            ip
            for ip, window in self._windows.items()
            if window.last_seen is None or window.last_seen <= horizon
        ]
        for ip in idle:
            self._windows.pop(ip)
        if idle:
            logger.debug("Swept idle login windows", count=len(idle))

    def check(self, client_ip: str) -> Tuple[bool, Optional[int]]:
        """
        Decide whether ``client_ip`` may attempt a login now.

        Returns:
            ``(True, None)`` when allowed, otherwise ``(False, seconds)``
            where ``seconds`` is how long until the oldest failure expires
        """
        now = time.time()
        with self._lock:
            self._sweep(now)
            window = self._windows.get(client_ip)
            if window is None:
                return True, None

            window.trim(self._horizon(now))
            failures = len(window.timestamps)
            if failures < self.config.max_attempts:
                return True, None

            retry_after = int(window.timestamps[0] - self._horizon(now)) + 1
        logger.warning(
            "Login rate limit exceeded",
            client_ip=client_ip,
            failures=failures,
            retry_after=retry_after,
        )
        return False, retry_after

    def record_failure(self, client_ip: str) -> None:
        with self._lock:
            self._windows.setdefault(client_ip, FailureWindow()).timestamps.append(time.time())

    def get_remaining(self, client_ip: str) -> int:
        """Failed attempts the client may still make in the current window."""
        now = time.time()
        with self._lock:
            window = self._windows.get(client_ip)
            if window is None:
                return self.config.max_attempts
            window.trim(self._horizon(now))
            return max(0, self.config.max_attempts - len(window.timestamps))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


login_rate_limiter = LoginAttemptLimiter(
    RateLimitConfig(
        max_attempts=settings.LOGIN_MAX_ATTEMPTS,
        window_seconds=settings.LOGIN_WINDOW_SECONDS,
    )
)


def check_login_rate_limit(request: Request) -> str:
    """
    Dependency for the login route.

    Returns the client IP so the route can record a failure against it.

    Raises:
        TooManyRequestsError: When the client's failure window is full
    """
    client_ip = get_client_ip(request)
    allowed, retry_after = login_rate_limiter.check(client_ip)
    if not allowed:
        raise TooManyRequestsError(
            "Too many login attempts. Please try again later.",
            retry_after=retry_after,
        )
    return client_ip
