"""
User repository backed by PostgreSQL.

All statements are parameterized; the only interpolated SQL fragments are
column names taken from fixed allow-lists.
"""

import math
from typing import Any, Dict, List, Optional, Tuple

from ..database import DatabaseManager
from ..logging_config import get_logger

logger = get_logger(__name__)

PUBLIC_COLUMNS = "id, email, full_name, role, status, last_login, created_at, updated_at"
ALL_COLUMNS = "id, email, password, full_name, role, status, last_login, created_at, updated_at"

SORTABLE_COLUMNS = ("created_at", "updated_at", "email", "full_name", "role", "status")
UPDATABLE_COLUMNS = ("email", "full_name", "password", "role", "status")


def _columns(include_password: bool) -> str:
    return ALL_COLUMNS if include_password else PUBLIC_COLUMNS


def _row_to_dict(row: Any) -> Optional[Dict[str, Any]]:
    return dict(row) if row is not None else None


def _affected_rows(status: str) -> int:
    """Parse the row count out of an asyncpg status string like ``DELETE 1``."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


def build_user_list_query(
    page: int,
    limit: int,
    role: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "DESC",
) -> Tuple[str, str, List[Any]]:
    """
    Build the count and page queries for the user listing.

    Args:
        page: 1-based page number
        limit: Page size
        role: Exact role filter
        status: Exact status filter
        search: Case-insensitive substring matched against full name or email
        sort_by: Column to sort on; unknown columns fall back to created_at
        sort_order: ASC or DESC; anything else means DESC

    Returns:
        Tuple of (count_sql, page_sql, params). ``page_sql`` takes two extra
        trailing parameters, limit and offset.
    """
    params: List[Any] = []
    conditions: List[str] = []

    if role:
        params.append(role)
        conditions.append(f"role = ${len(params)}")

    if status:
        params.append(status)
        conditions.append(f"status = ${len(params)}")

    if search:
        params.append(f"%{search}%")
        conditions.append(f"(full_name ILIKE ${len(params)} OR email ILIKE ${len(params)})")

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    safe_sort_by = sort_by if sort_by in SORTABLE_COLUMNS else "created_at"
    safe_sort_order = "ASC" if (sort_order or "").upper() == "ASC" else "DESC"

    count_sql = f"SELECT COUNT(*) FROM users {where_clause}".strip()
    page_sql = (
        f"SELECT {PUBLIC_COLUMNS} FROM users {where_clause} "
        f"ORDER BY {safe_sort_by} {safe_sort_order} "
        f"LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}"
    )
    return count_sql, page_sql, params


def build_pagination(page: int, limit: int, total_count: int) -> Dict[str, Any]:
    return {
        "current_page": page,
        "total_pages": math.ceil(total_count / limit) if limit else 0,
        "total_count": total_count,
        "limit": limit,
        "has_next_page": page * limit < total_count,
        "has_prev_page": page > 1,
    }


class UserRepository:
    """
    Data access for the ``users`` table.

    Returned rows are plain dicts. Password hashes are only selected when a
    caller asks for them with ``include_password=True``.
    """

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    async def create(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str = "user",
        status: str = "active",
    ) -> Dict[str, Any]:
        """
        Insert a new user.

        Args:
            email: Email address, stored lower-cased
            password: Already hashed password
            full_name: Display name
            role: admin or user
            status: active or inactive

        Returns:
            The created user without its password
        """
        row = await self.db.fetchrow(
            f"""
            INSERT INTO users (email, password, full_name, role, status)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING {PUBLIC_COLUMNS}
            """,
            email.lower(),
            password,
            full_name,
            role,
            status,
        )
        logger.info("User created", email=row["email"], user_id=str(row["id"]))
        return dict(row)

    async def find_by_id(
        self, user_id: str, include_password: bool = False
    ) -> Optional[Dict[str, Any]]:
        row = await self.db.fetchrow(
            f"SELECT {_columns(include_password)} FROM users WHERE id = $1",
            str(user_id),
        )
        return _row_to_dict(row)

    async def find_by_email(
        self, email: str, include_password: bool = False
    ) -> Optional[Dict[str, Any]]:
        row = await self.db.fetchrow(
            f"SELECT {_columns(include_password)} FROM users WHERE email = $1",
            email.lower(),
        )
        return _row_to_dict(row)

    async def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "DESC",
    ) -> Dict[str, Any]:
        """
        List users with filtering, sorting and offset pagination.

        Returns:
            Dict with ``users`` and ``pagination`` keys
        """
        count_sql, page_sql, params = build_user_list_query(
            page, limit, role, status, search, sort_by, sort_order
        )
        offset = (page - 1) * limit

        total_count = int(await self.db.fetchval(count_sql, *params) or 0)
        rows = await self.db.fetch(page_sql, *params, limit, offset)

        return {
            "users": [dict(row) for row in rows],
            "pagination": build_pagination(page, limit, total_count),
        }

    async def update(self, user_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update allow-listed columns of a user.

        Keys outside the allow-list and None values are ignored. With nothing
        left to change the current row is returned unchanged.

        Returns:
            Updated user, or None if the id does not exist
        """
        params: List[Any] = []
        assignments: List[str] = []

        for column in UPDATABLE_COLUMNS:
            value = data.get(column)
            if value is None:
                continue
            params.append(value)
            assignments.append(f"{column} = ${len(params)}")

        if not assignments:
            return await self.find_by_id(user_id)

        params.append(str(user_id))
        row = await self.db.fetchrow(
            f"""
            UPDATE users
            SET {', '.join(assignments)}
            WHERE id = ${len(params)}
            RETURNING {PUBLIC_COLUMNS}
            """,
            *params,
        )
        return _row_to_dict(row)

    async def delete(self, user_id: str) -> bool:
        status = await self.db.execute("DELETE FROM users WHERE id = $1", str(user_id))
        return _affected_rows(status) > 0

    async def delete_all(self) -> int:
        status = await self.db.execute("DELETE FROM users")
        return _affected_rows(status)

    async def update_last_login(self, user_id: str) -> Optional[Dict[str, Any]]:
        row = await self.db.fetchrow(
            f"""
            UPDATE users
            SET last_login = CURRENT_TIMESTAMP
            WHERE id = $1
            RETURNING {PUBLIC_COLUMNS}
            """,
            str(user_id),
        )
        return _row_to_dict(row)

    async def activate(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.update(user_id, {"status": "active"})

    async def deactivate(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.update(user_id, {"status": "inactive"})

    async def email_exists(self, email: str, exclude_id: Optional[str] = None) -> bool:
        """
        Check whether an email is taken.

        Args:
            email: Email to look up (case-insensitive)
            exclude_id: User id to ignore, for updates of that user
        """
        if exclude_id:
            row = await self.db.fetchrow(
                "SELECT id FROM users WHERE email = $1 AND id != $2",
                email.lower(),
                str(exclude_id),
            )
        else:
            row = await self.db.fetchrow("SELECT id FROM users WHERE email = $1", email.lower())
        return row is not None

    async def count_by_role(self) -> Dict[str, int]:
        rows = await self.db.fetch("SELECT role, COUNT(*) AS count FROM users GROUP BY role")
        counts = {"admin": 0, "user": 0}
        for row in rows:
            counts[row["role"]] = int(row["count"])
        return counts

    async def count_by_status(self) -> Dict[str, int]:
        rows = await self.db.fetch("SELECT status, COUNT(*) AS count FROM users GROUP BY status")
        counts = {"active": 0, "inactive": 0}
        for row in rows:
            counts[row["status"]] = int(row["count"])
        return counts

    async def get_stats(self) -> Dict[str, int]:
        """Aggregate counts for the admin dashboard."""
        row = await self.db.fetchrow(
            """
            SELECT
                COUNT(*) AS total_users,
                COUNT(*) FILTER (WHERE role = 'admin') AS admin_count,
                COUNT(*) FILTER (WHERE role = 'user') AS user_count,
                COUNT(*) FILTER (WHERE status = 'active') AS active_count,
                COUNT(*) FILTER (WHERE status = 'inactive') AS inactive_count,
                COUNT(*) FILTER (
                    WHERE created_at >= CURRENT_DATE - INTERVAL '7 days'
                ) AS new_users_this_week,
                COUNT(*) FILTER (
                    WHERE last_login >= CURRENT_TIMESTAMP - INTERVAL '24 hours'
                ) AS active_today
            FROM users
            """
        )
        return {key: int(value or 0) for key, value in dict(row).items()}
