"""
Repository layer for data access.
"""

from .user_repository import UserRepository, build_pagination, build_user_list_query

__all__ = ["UserRepository", "build_pagination", "build_user_list_query"]
