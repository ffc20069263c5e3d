"""
Database seeding script for the first superadmin.

Creates the SUPERADMIN account (and optionally a demo library with a bound
manager). Run once after the database is reachable:

    python -m seatledger.seed_users [--demo]
"""

import argparse
import asyncio

from sqlalchemy import select

from seatledger.app.db.session import AsyncSessionLocal, engine, Base
from seatledger.app.models.library import Library
from seatledger.app.models.user import User
from seatledger.app.models.enums import UserRole
from seatledger.app.core.security import get_password_hash
import seatledger.app.models.payment  # noqa: F401
import seatledger.app.models.payment_plan  # noqa: F401
import seatledger.app.models.seat  # noqa: F401
import seatledger.app.models.student  # noqa: F401


async def seed_users(demo: bool = False):
    """
    Seed the superadmin.

    Creates:
    - 1 SUPERADMIN user
    - with demo: 1 library and 1 MANAGER bound to it
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        result = await db.execute(select(User).where(User.username == "superadmin"))
        if result.scalar_one_or_none():
            print("ℹ️  SUPERADMIN user already exists, skipping seeding")
            return

        db.add(User(
            email="superadmin@seatledger.in",
            username="superadmin",
            hashed_password=get_password_hash("superadmin123"),
            display_name="Super Admin",
            role=UserRole.SUPERADMIN,
            library_id=None,
            is_active=True,
        ))
        print("✅ Created SUPERADMIN user (username: superadmin, password: superadmin123)")

        if demo:
            library = Library(name="Demo Library")
            db.add(library)
            await db.flush()
            db.add(User(
                email="manager@seatledger.in",
                username="manager",
                hashed_password=get_password_hash("manager123"),
                display_name="Demo Manager",
                role=UserRole.MANAGER,
                library_id=library.id,
                is_active=True,
            ))
            print(f"✅ Created library '{library.name}' with MANAGER (username: manager, password: manager123)")

        await db.commit()
        print("\n🎉 User seeding completed successfully!")
        print("\nNote: further managers are created via POST /v1/managers")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the SeatLedger database")
    parser.add_argument("--demo", action="store_true", help="Also create a demo library and manager")
    args = parser.parse_args()
    asyncio.run(seed_users(demo=args.demo))
