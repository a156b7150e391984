"""API routers mounted under ``/api``."""

from . import auth, users

__all__ = ["auth", "users"]
