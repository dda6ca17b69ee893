#!/usr/bin/env python
"""Check database connectivity and sales data presence.

Usage:
    uv run python scripts/check_db.py
"""

import asyncio
import sys

from sqlalchemy import func, inspect, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import get_settings
from app.features.sales.models import SaleRecord, SaleRecordTag


async def check_database() -> int:
    """Verify connectivity, list tables, and report sales record counts."""
    settings = get_settings()

    print("SalesView - Database Check")
    print("=" * 45)
    print(f"Database URL: {settings.database_url.rsplit('@', 1)[-1]}")  # Hide credentials
    print()

    engine = create_async_engine(settings.database_url)

    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            if result.scalar() != 1:
                print("[FAIL] Unexpected response to SELECT 1")
                return 1
            print(f"[OK] Connected ({engine.dialect.name})")

            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
            print(f"[OK] Tables: {', '.join(sorted(tables)) or '(none)'}")

            if SaleRecord.__tablename__ not in tables:
                print(f"[WARN] Table '{SaleRecord.__tablename__}' missing")
                print("       Run: python scripts/import_sales_csv.py --create-tables")
                return 0

            records = (await conn.execute(select(func.count()).select_from(SaleRecord))).scalar()
            tags = (await conn.execute(select(func.count()).select_from(SaleRecordTag))).scalar()
            print(f"   - {SaleRecord.__tablename__}: {records:,} rows")
            print(f"   - {SaleRecordTag.__tablename__}: {tags:,} rows")

            if records:
                sample = (await conn.execute(select(SaleRecord.__table__).limit(1))).mappings().one()
                print(f"     Sample fields: {', '.join(sample.keys())}")

        print()
        print("Database check completed successfully!")
        return 0

    except (SQLAlchemyError, OSError) as e:
        print(f"[FAIL] Connection failed: {e}")
        print()
        print("Troubleshooting:")
        print("  1. Ensure PostgreSQL is running")
        print("  2. Check DATABASE_URL in .env file")
        return 1

    finally:
        await engine.dispose()


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
