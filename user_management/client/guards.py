"""
Route guards for client applications.

Decide whether a navigation may proceed based on the session's
authentication state and role.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Union

from .session import AuthSession

ROUTES = {
    "HOME": "/",
    "LOGIN": "/login",
    "SIGNUP": "/signup",
    "DASHBOARD": "/dashboard",
    "PROFILE": "/profile",
    "USERS": "/users",
    "USER_DETAIL": "/users/:id",
    "SETTINGS": "/settings",
    "NOT_FOUND": "*",
}

ALLOW = "allow"
REDIRECT = "redirect"
DENY = "deny"
LOADING = "loading"


@dataclass
class GuardResult:
    """
    Outcome of a guard.

    Attributes:
        action: One of ``allow``, ``redirect``, ``deny`` or ``loading``
        target: Where to navigate for ``redirect`` and ``deny``
        state: Navigation state, e.g. ``{"from": "/users"}`` for post-login return
    """

    action: str
    target: Optional[str] = None
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def allowed(self) -> bool:
        return self.action == ALLOW


def protected_route(
    session: AuthSession,
    roles: Optional[Union[str, Iterable[str]]] = None,
    redirect_to: str = ROUTES["LOGIN"],
    current_path: Optional[str] = None,
) -> GuardResult:
    """
    Guard for pages that need a logged in user.

    Unauthenticated visitors are sent to ``redirect_to`` with the attempted
    path saved under ``state["from"]``. Authenticated users without one of
    ``roles`` are denied and pointed at the dashboard.
    """
    if session.is_loading:
        return GuardResult(LOADING)

    if not session.is_authenticated:
        state = {"from": current_path} if current_path else {}
        return GuardResult(REDIRECT, redirect_to, state)

    if roles and not session.has_role(roles):
        return GuardResult(DENY, ROUTES["DASHBOARD"])

    return GuardResult(ALLOW)


def public_route(
    session: AuthSession,
    restricted: bool = True,
    redirect_to: str = ROUTES["DASHBOARD"],
    from_path: Optional[str] = None,
) -> GuardResult:
    """
    Guard for login and signup pages.

    With ``restricted`` set, authenticated users are sent back to where they
    came from, or to ``redirect_to``.
    """
    if session.is_loading:
        return GuardResult(LOADING)

    if session.is_authenticated and restricted:
        return GuardResult(REDIRECT, from_path or redirect_to)

    return GuardResult(ALLOW)
