"""
Migration to create the transactions, bookings and settings tables
"""

import asyncio

from sqlalchemy import text

from reconciler.core.database import Base, engine, async_session
from reconciler.models import CabinBooking, HostelBooking, ProviderSetting, Transaction

TABLES = [Transaction.__table__, CabinBooking.__table__, HostelBooking.__table__, ProviderSetting.__table__]


async def create_tables():
    """Create the reconciler tables if they don't exist"""
    try:
        print("Creating reconciler tables...")

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, tables=TABLES)

        print("✅ Reconciler tables created successfully")

    except Exception as e:
        print(f"❌ Error creating reconciler tables: {e}")
        raise


async def verify_tables_exist():
    """Verify that every table exists and is accessible"""
    try:
        async with async_session() as session:
            for table in TABLES:
                result = await session.execute(text(f"SELECT COUNT(*) FROM {table.name}"))
                print(f"✅ {table.name} verified - current record count: {result.scalar()}")

    except Exception as e:
        print(f"❌ Error verifying reconciler tables: {e}")
        raise


async def main():
    """Main migration function"""
    print("Starting reconciler table migration...")

    await create_tables()
    await verify_tables_exist()
    await engine.dispose()

    print("Migration completed successfully!")


if __name__ == "__main__":
    asyncio.run(main())
