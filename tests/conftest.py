"""
Shared fixtures for the API tests.

The PostgreSQL repository is replaced by an in-memory implementation with
the same async interface, injected through ``app.dependency_overrides``.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from user_management.app import app
from user_management.auth_service import issue_token
from user_management.dependencies import get_user_repository
from user_management.rate_limiter import login_rate_limiter
from user_management.repositories import build_pagination
from user_management.repositories.user_repository import SORTABLE_COLUMNS, UPDATABLE_COLUMNS
from user_management.security import hash_password

ADMIN_PASSWORD = "Admin@123"
USER_PASSWORD = "User@1234"

PUBLIC_FIELDS = ("id", "email", "full_name", "role", "status", "last_login", "created_at", "updated_at")


class InMemoryUserRepository:
    """Dict-backed stand-in for UserRepository."""

    def __init__(self) -> None:
        self.rows: Dict[str, Dict[str, Any]] = {}

    def _public(self, row: Optional[Dict[str, Any]], include_password: bool = False):
        if row is None:
            return None
        fields = PUBLIC_FIELDS + (("password",) if include_password else ())
        return {key: row[key] for key in fields}

    def add_user(
        self,
        email: str,
        password: str,
        full_name: str = "Test User",
        role: str = "user",
        status: str = "active",
        created_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Insert a user synchronously, hashing the plain text password."""
        now = created_at or datetime.now(timezone.utc)
        row = {
            "id": str(uuid.uuid4()),
            "email": email.lower(),
            "password": hash_password(password),
            "full_name": full_name,
            "role": role,
            "status": status,
            "last_login": None,
            "created_at": now,
            "updated_at": now,
        }
        self.rows[row["id"]] = row
        return self._public(row)

    async def create(self, email, password, full_name, role="user", status="active"):
        now = datetime.now(timezone.utc)
        row = {
            "id": str(uuid.uuid4()),
            "email": email.lower(),
            "password": password,
            "full_name": full_name,
            "role": role,
            "status": status,
            "last_login": None,
            "created_at": now,
            "updated_at": now,
        }
        self.rows[row["id"]] = row
        return self._public(row)

    async def find_by_id(self, user_id, include_password=False):
        return self._public(self.rows.get(str(user_id)), include_password)

    async def find_by_email(self, email, include_password=False):
        for row in self.rows.values():
            if row["email"] == email.lower():
                return self._public(row, include_password)
        return None

    async def find_all(
        self,
        page=1,
        limit=10,
        role=None,
        status=None,
        search=None,
        sort_by="created_at",
        sort_order="DESC",
    ):
        rows: List[Dict[str, Any]] = list(self.rows.values())
        if role:
            rows = [row for row in rows if row["role"] == role]
        if status:
            rows = [row for row in rows if row["status"] == status]
        if search:
            term = search.lower()
            rows = [
                row
                for row in rows
                if term in row["full_name"].lower() or term in row["email"].lower()
            ]

        column = sort_by if sort_by in SORTABLE_COLUMNS else "created_at"
        rows.sort(key=lambda row: row[column], reverse=(sort_order or "").upper() != "ASC")

        offset = (page - 1) * limit
        return {
            "users": [self._public(row) for row in rows[offset:offset + limit]],
            "pagination": build_pagination(page, limit, len(rows)),
        }

    async def update(self, user_id, data):
        row = self.rows.get(str(user_id))
        if row is None:
            return None
        changes = {key: value for key, value in data.items() if key in UPDATABLE_COLUMNS and value is not None}
        if changes:
            row.update(changes)
            row["updated_at"] = datetime.now(timezone.utc)
        return self._public(row)

    async def delete(self, user_id):
        return self.rows.pop(str(user_id), None) is not None

    async def delete_all(self):
        count = len(self.rows)
        self.rows.clear()
        return count

    async def update_last_login(self, user_id):
        row = self.rows.get(str(user_id))
        if row is None:
            return None
        row["last_login"] = datetime.now(timezone.utc)
        return self._public(row)

    async def activate(self, user_id):
        return await self.update(user_id, {"status": "active"})

    async def deactivate(self, user_id):
        return await self.update(user_id, {"status": "inactive"})

    async def email_exists(self, email, exclude_id=None):
        return any(
            row["email"] == email.lower() and row["id"] != exclude_id
            for row in self.rows.values()
        )

    async def count_by_role(self):
        counts = {"admin": 0, "user": 0}
        for row in self.rows.values():
            counts[row["role"]] += 1
        return counts

    async def count_by_status(self):
        counts = {"active": 0, "inactive": 0}
        for row in self.rows.values():
            counts[row["status"]] += 1
        return counts

    async def get_stats(self):
        now = datetime.now(timezone.utc)
        roles = await self.count_by_role()
        statuses = await self.count_by_status()
        return {
            "total_users": len(self.rows),
            "admin_count": roles["admin"],
            "user_count": roles["user"],
            "active_count": statuses["active"],
            "inactive_count": statuses["inactive"],
            "new_users_this_week": sum(
                1 for row in self.rows.values() if row["created_at"] >= now - timedelta(days=7)
            ),
            "active_today": sum(
                1
                for row in self.rows.values()
                if row["last_login"] and row["last_login"] >= now - timedelta(hours=24)
            ),
        }


@pytest.fixture
def repo():
    """In-memory repository wired into the app for the duration of a test."""
    repository = InMemoryUserRepository()
    app.dependency_overrides[get_user_repository] = lambda: repository
    yield repository
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    login_rate_limiter.reset()
    yield
    login_rate_limiter.reset()


@pytest.fixture
def client(repo):
    return TestClient(app)


@pytest.fixture
def admin(repo):
    return repo.add_user("admin@example.com", ADMIN_PASSWORD, "System Administrator", role="admin")


@pytest.fixture
def user(repo):
    return repo.add_user("john.doe@example.com", USER_PASSWORD, "John Doe")


@pytest.fixture
def other_user(repo):
    return repo.add_user("jane.smith@example.com", USER_PASSWORD, "Jane Smith")


def auth_headers(account: Dict[str, Any]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(account)}"}


@pytest.fixture
def make_headers():
    return auth_headers


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def user_headers(user):
    return auth_headers(user)
