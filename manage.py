#!/usr/bin/env python3
"""
Database management script.
Creates and drops tables, seeds demo data and promotes admin accounts.
"""

import asyncio
import argparse
import logging
from datetime import timedelta
from decimal import Decimal

from sublets.config import settings
from sublets.database import AsyncSessionLocal, create_tables, drop_tables, close_db_connection, utcnow
from sublets.models.user import UserRole
from sublets.repositories.user import UserRepository
from sublets.repositories.listing import ListingRepository

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SEED_EMAIL = "test@wisc.edu"
SEED_PASSWORD = "password123"

SEED_LISTINGS = [
    {
        "title": "Sunny studio near Bascom Hill",
        "description": "Furnished studio five minutes from campus with lots of natural light and a lake view.",
        "price": Decimal("950.00"),
        "address": "123 State St, Madison, WI",
        "bedrooms": 1,
        "bathrooms": Decimal("1"),
        "amenities": ["WiFi", "Furnished", "Laundry"],
    },
    {
        "title": "Two bedroom on Langdon",
        "description": "Spacious two bedroom apartment steps from the Memorial Union terrace and the lakeshore path.",
        "price": Decimal("1400.00"),
        "address": "45 Langdon St, Madison, WI",
        "bedrooms": 2,
        "bathrooms": Decimal("1"),
        "amenities": ["WiFi", "Parking"],
    },
    {
        "title": "Room in a four bedroom house",
        "description": "Private room in a shared house on the east side with a backyard, bike storage and a big kitchen.",
        "price": Decimal("650.00"),
        "address": "900 Williamson St, Madison, WI",
        "bedrooms": 4,
        "bathrooms": Decimal("2"),
        "amenities": ["Parking", "Laundry", "Pet Friendly"],
    },
]


class DatabaseManager:
    """Schema and data management commands."""

    async def create(self) -> None:
        await create_tables()

    async def drop(self, confirm: bool) -> None:
        if not confirm:
            raise RuntimeError("Refusing to drop tables without --confirm")
        await drop_tables()

    async def seed(self) -> None:
        """Create a verified demo user with a few published listings."""
        async with AsyncSessionLocal() as session:
            users = UserRepository(session)
            if await users.get_by_email(SEED_EMAIL):
                logger.info(f"{SEED_EMAIL} already exists, skipping seed")
                return

            user = await users.create_user({
                "email": SEED_EMAIL,
                "password": SEED_PASSWORD,
                "name": "Test User",
                "email_verified": utcnow(),
            })

            listings = ListingRepository(session)
            start = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
            for offset, data in enumerate(SEED_LISTINGS):
                data = dict(data)
                amenities = data.pop("amenities")
                data.update({
                    "owner_id": user.id,
                    "available_from": start + timedelta(days=30 * offset),
                    "available_until": start + timedelta(days=30 * offset + 90),
                    "images": [],
                    "published": True,
                    "is_draft": False,
                })
                await listings.create_listing(data, amenities=amenities)

            logger.info("Database seeded successfully")
            logger.info(f"  Email: {SEED_EMAIL}")
            logger.info(f"  Password: {SEED_PASSWORD}")

    async def create_admin(self, email: str) -> None:
        """Promote an existing account to admin."""
        async with AsyncSessionLocal() as session:
            users = UserRepository(session)
            user = await users.get_by_email(email)
            if not user:
                raise RuntimeError(f"No user with email {email}")
            await users.update_user_role(user.id, UserRole.ADMIN)
            logger.info(f"{email} is now an admin")


async def run(args: argparse.Namespace) -> None:
    manager = DatabaseManager()
    try:
        if args.command == "create-tables":
            await manager.create()
        elif args.command == "drop-tables":
            await manager.drop(args.confirm)
        elif args.command == "seed":
            await manager.seed()
        elif args.command == "create-admin":
            await manager.create_admin(args.email)
    finally:
        await close_db_connection()


def main():
    parser = argparse.ArgumentParser(description=f"{settings.app_name} database management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all tables")

    drop_parser = subparsers.add_parser("drop-tables", help="Drop all tables")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping all data")

    subparsers.add_parser("seed", help="Seed a demo user and listings")

    admin_parser = subparsers.add_parser("create-admin", help="Grant the admin role to a user")
    admin_parser.add_argument("email", help="Email of an existing user")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 1

    try:
        asyncio.run(run(args))
    except Exception as e:
        logger.error(f"Command failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
