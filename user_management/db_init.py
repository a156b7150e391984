#!/usr/bin/env python3
"""
Database initialization script.

Creates the extensions, enum types, ``users`` table, indexes and the
``updated_at`` trigger from ``schema.sql``. Safe to run repeatedly.

Usage:
    usermgmt-db-init
    python -m user_management.db_init
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import asyncpg

from .config import settings
from .database import DatabaseManager
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


def load_schema(path: Path = SCHEMA_PATH) -> str:
    return path.read_text(encoding="utf-8")


async def list_tables(db: DatabaseManager) -> List[str]:
    rows = await db.fetch(
        """
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = 'public' AND table_type = 'BASE TABLE'
        ORDER BY table_name
        """
    )
    return [row["table_name"] for row in rows]


async def list_indexes(db: DatabaseManager, table: str = "users") -> List[str]:
    rows = await db.fetch(
        """
        SELECT indexname
        FROM pg_indexes
        WHERE schemaname = 'public' AND tablename = $1
        ORDER BY indexname
        """,
        table,
    )
    return [row["indexname"] for row in rows]


async def initialize_database(db: DatabaseManager) -> Dict[str, List[str]]:
    """
    Apply the schema and report what exists afterwards.

    Args:
        db: Connected database manager

    Returns:
        Dict with ``tables`` and ``indexes`` lists
    """
    logger.info("Applying schema", path=SCHEMA_PATH.name)

    async with db.transaction() as conn:
        await conn.execute(load_schema())

    tables = await list_tables(db)
    indexes = await list_indexes(db)

    logger.info("Tables present", tables=tables)
    logger.info("Indexes on users", indexes=indexes)
    return {"tables": tables, "indexes": indexes}


async def run(dsn: Optional[str] = None) -> int:
    db = DatabaseManager(dsn)
    try:
        await db.connect()
        result = await initialize_database(db)
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("Database initialization failed", error=str(e))
        return 1
    finally:
        await db.disconnect()

    print("\n" + "=" * 60)
    print("DATABASE INITIALIZED")
    print("=" * 60)
    print(f"Tables:  {', '.join(result['tables'])}")
    print(f"Indexes: {', '.join(result['indexes'])}")
    print("=" * 60)
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the user management schema")
    parser.add_argument(
        "--database-url",
        default=None,
        help="PostgreSQL DSN (default: DATABASE_URL from the environment)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(log_level=settings.LOG_LEVEL, service_name="user-management-db-init")
    return asyncio.run(run(args.database_url))


if __name__ == "__main__":
    sys.exit(main())
