#!/usr/bin/env python3
"""
Database seed script.

Creates the default admin account and, outside production or when asked
for, a handful of test users. Accounts whose email already exists are
skipped.

Usage:
    usermgmt-seed                     # Admin, plus test users outside production
    usermgmt-seed --with-test-users   # Force test users
    usermgmt-seed --reset             # Delete all users first
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import asyncpg

from .config import settings
from .database import DatabaseManager
from .logging_config import get_logger, setup_logging
from .repositories import UserRepository
from .security import hash_password

logger = get_logger(__name__)

ADMIN_USER: Dict[str, str] = {
    "email": "admin@example.com",
    "password": "Admin@123",
    "full_name": "System Administrator",
    "role": "admin",
    "status": "active",
}

TEST_USERS: List[Dict[str, str]] = [
    {
        "email": "john.doe@example.com",
        "password": "User@123",
        "full_name": "John Doe",
        "role": "user",
        "status": "active",
    },
    {
        "email": "jane.smith@example.com",
        "password": "User@123",
        "full_name": "Jane Smith",
        "role": "user",
        "status": "active",
    },
    {
        "email": "bob.wilson@example.com",
        "password": "User@123",
        "full_name": "Bob Wilson",
        "role": "user",
        "status": "inactive",
    },
]


@dataclass
class SeedResult:
    """Track seeding statistics."""

    created: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    def print_report(self) -> None:
        """Print seeding summary report."""
        print("\n" + "=" * 60)
        print("SEED SUMMARY")
        print("=" * 60)
        print(f"Created:  {len(self.created)}")
        print(f"Skipped:  {len(self.skipped)}")
        print(f"Failed:   {len(self.failed)}")
        print("=" * 60)

        if self.failed:
            print("\nERRORS:")
            for failure in self.failed:
                print(f"  - {failure['email']}: {failure['error']}")


def should_seed_test_users(with_test_users: bool) -> bool:
    return with_test_users or not settings.is_production


async def seed_users(users: UserRepository, entries: List[Dict[str, str]]) -> SeedResult:
    """
    Create the given accounts, skipping emails that already exist.

    Args:
        users: User repository
        entries: Account definitions with a plain text password

    Returns:
        SeedResult with created, skipped and failed emails
    """
    result = SeedResult()

    for entry in entries:
        email = entry["email"]
        try:
            if await users.find_by_email(email):
                logger.info("User already exists, skipping", email=email)
                result.skipped.append(email)
                continue

            user = await users.create(
                email=email,
                password=hash_password(entry["password"]),
                full_name=entry["full_name"],
                role=entry["role"],
                status=entry["status"],
            )
            logger.info(
                "Created user", email=user["email"], role=user["role"], status=user["status"]
            )
            result.created.append(email)
        except (asyncpg.PostgresError, ValueError) as e:
            logger.error("Failed to create user", email=email, error=str(e))
            result.failed.append({"email": email, "error": str(e)})

    return result


async def seed(
    users: UserRepository, with_test_users: bool = False, reset: bool = False
) -> SeedResult:
    """
    Seed the admin account and optionally the test users.

    Args:
        users: User repository
        with_test_users: Seed test users even in production
        reset: Delete every user before seeding

    Returns:
        Combined SeedResult
    """
    if reset:
        deleted = await users.delete_all()
        logger.warning("Reset removed existing users", deleted=deleted)

    entries = [ADMIN_USER]
    if should_seed_test_users(with_test_users):
        entries.extend(TEST_USERS)

    return await seed_users(users, entries)


async def run(with_test_users: bool, reset: bool) -> int:
    db = DatabaseManager()
    try:
        await db.connect()
        result = await seed(UserRepository(db), with_test_users=with_test_users, reset=reset)
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("Seeding failed", error=str(e))
        return 1
    finally:
        await db.disconnect()

    result.print_report()
    print("\nAdmin account:")
    print(f"  Email:    {ADMIN_USER['email']}")
    print(f"  Password: {ADMIN_USER['password']}")
    if should_seed_test_users(with_test_users):
        print("\nTest accounts:")
        for entry in TEST_USERS:
            print(f"  {entry['email']} / {entry['password']} ({entry['status']})")

    return 1 if result.failed else 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the user management database")
    parser.add_argument(
        "--with-test-users",
        action="store_true",
        help="Create test users even when ENVIRONMENT=production",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete all users before seeding",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(log_level=settings.LOG_LEVEL, service_name="user-management-seed")
    return asyncio.run(run(with_test_users=args.with_test_users, reset=args.reset))


if __name__ == "__main__":
    sys.exit(main())
